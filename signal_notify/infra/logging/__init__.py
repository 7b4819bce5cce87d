"""Logging infrastructure.

Provides structured logging with:
- JSONL format for log aggregation
- Automatic context injection (queue_id, channel, cycle_id, ...)
- QueueHandler + QueueListener for non-blocking I/O
- Per-handler log levels (console vs file)
- Lazy evaluation for expensive debug messages
- OpenTelemetry trace correlation

Basic usage:
    from signal_notify.infra.logging import get_logger, set_log_context

    logger = get_logger(__name__)
    set_log_context(cycle_id="c-42")
    logger.info("Processing cycle started")  # includes cycle_id

    from signal_notify.infra.logging import get_lazy_logger

    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug(lambda: f"Rows: {len(rows)}")  # only built if DEBUG enabled
"""

from signal_notify.infra.logging.config import (
    configure_logging,
    setup_logging,
    shutdown,
)
from signal_notify.infra.logging.context import (
    ContextBoundLogger,
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    get_logger,
    remove_from_log_context,
    set_log_context,
)
from signal_notify.infra.logging.formatters import JSONFormatter
from signal_notify.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "ContextBoundLogger",
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "clear_log_context",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "get_logger",
    "remove_from_log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
