"""Main CLI entry point for signal-notify management commands."""

import click

from signal_notify.cli.commands import db, queue, server
from signal_notify.infra.logging.config import setup_logging


@click.group()
@click.version_option(version="1.0.0", prog_name="signal-notify")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Signal Notify CLI - operate the notification delivery queue.

    \b
    Command Groups:
      queue   Process, inspect and retry queued notifications
      db      Database connectivity and table creation
      server  Run the API server

    \b
    Quick Start:
      signal-notify db create           # Create tables
      signal-notify queue process       # Run one processing cycle
      signal-notify server run          # Serve the API with the processor
    """
    ctx.ensure_object(dict)


cli.add_command(queue.queue)
cli.add_command(db.db)
cli.add_command(server.server)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
