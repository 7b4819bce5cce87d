"""CLI utilities for running async operations and formatting output."""

from signal_notify.cli.utils.async_runner import coro
from signal_notify.cli.utils.formatters import (
    error,
    header,
    info,
    success,
    table,
    warning,
)

__all__ = [
    "coro",
    "error",
    "header",
    "info",
    "success",
    "table",
    "warning",
]
