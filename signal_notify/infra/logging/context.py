"""Context propagation for structured logging.

Context set with ``set_log_context`` lives in a ContextVar, so each asyncio
task sees its own copy. ``ContextInjectingFilter`` copies it onto every
LogRecord, where ``JSONFormatter`` picks it up as top-level fields.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        ```python
        set_log_context(cycle_id="c-1")
        logger.info("Cycle started")  # record carries cycle_id
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Drop all logging context for the current task."""
    _log_context.set({})


def remove_from_log_context(*keys: str) -> None:
    """Remove specific keys from the logging context."""
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


class ContextInjectingFilter(logging.Filter):
    """Copy the ContextVar logging context onto each LogRecord.

    Installed on the root logger by ``configure_logging``. Attributes that
    already exist on the record (for example ones passed via ``extra=``)
    are never overwritten.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class ContextBoundLogger(logging.LoggerAdapter):
    """Logger adapter carrying a fixed set of context fields.

    Example:
        ```python
        logger = get_logger(__name__, component="processor")
        item_logger = logger.bind(queue_id=str(item.id), channel=item.channel)
        item_logger.info("Delivery attempt started")
        ```
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        super().__init__(logger, context)

    def bind(self, **context: Any) -> ContextBoundLogger:
        """Return a new logger with ``context`` merged into the bound fields."""
        return ContextBoundLogger(self.logger, **{**self.extra, **context})

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(name: str, **context: Any) -> ContextBoundLogger:
    """Get a logger with bound context.

    Args:
        name: Logger name, usually ``__name__``.
        **context: Fields added to every record from this logger.

    Returns:
        ContextBoundLogger wrapping ``logging.getLogger(name)``.
    """
    return ContextBoundLogger(logging.getLogger(name), **context)
