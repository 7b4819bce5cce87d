"""CLI command modules."""

from signal_notify.cli.commands import db, queue, server

__all__ = ["db", "queue", "server"]
