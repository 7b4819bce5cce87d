"""Server management commands."""

import click
import uvicorn

from signal_notify.cli.utils import info
from signal_notify.core.settings import get_app_settings


@click.group(name="server")
def server() -> None:
    """Server management commands."""


@server.command()
@click.option("--host", default=None, help="Host to bind (default: APP_HOST)")
@click.option("--port", default=None, type=int, help="Port to bind (default: APP_PORT)")
@click.option(
    "--reload/--no-reload",
    default=False,
    help="Enable auto-reload on code changes",
)
@click.option(
    "--workers",
    default=1,
    type=int,
    help="Number of worker processes (ignored with --reload)",
)
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["critical", "error", "warning", "info", "debug", "trace"]),
    help="Uvicorn log level",
)
def run(host: str | None, port: int | None, reload: bool, workers: int, log_level: str) -> None:
    """Run the API server with the queue processor.

    Each worker process runs its own processor; SKIP LOCKED on PostgreSQL
    keeps them from claiming the same rows.
    """
    settings = get_app_settings()
    host = host or settings.host
    port = port or settings.port

    info(f"Server will run at: http://{host}:{port}")
    info(f"Environment: {settings.environment}")

    uvicorn.run(
        "signal_notify.app.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=None if reload else workers,
        log_level=log_level,
    )
