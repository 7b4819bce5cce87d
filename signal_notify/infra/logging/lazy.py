"""Lazy evaluation support for logging.

Debug messages built from query results (row counts, id lists) are only
rendered when the level is enabled. Pass a zero-argument callable instead
of a string and it is invoked after the level check.
"""

from __future__ import annotations

import logging
from typing import Any


class LazyLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that evaluates callable messages and args on demand.

    Example:
        ```python
        logger = get_lazy_logger(__name__)
        logger.debug(lambda: f"select_due -> {len(items)} items")
        logger.debug("claimed %s", lambda: item.id)
        ```
    """

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        if not self.isEnabledFor(level):
            return

        if callable(msg):
            msg = msg()
        if args:
            args = tuple(arg() if callable(arg) else arg for arg in args)

        super().log(level, msg, *args, **kwargs)


def get_lazy_logger(name: str, **context: Any) -> LazyLoggerAdapter:
    """Get a logger with lazy evaluation support.

    Args:
        name: Logger name (usually ``__name__``).
        **context: Optional fields bound to every record.

    Returns:
        LazyLoggerAdapter for ``name``.
    """
    return LazyLoggerAdapter(logging.getLogger(name), context or {})
