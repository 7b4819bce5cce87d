"""Base class for feature services."""

from __future__ import annotations

import logging

from signal_notify.infra.logging import get_lazy_logger


class BaseService:
    """Shared logger setup for service classes.

    Services sit between routers or CLI commands and repositories. They
    translate repository errors into ``AppException`` subclasses and never
    commit; the caller owns the transaction.

    Loggers:
        - self.logger: named after the concrete class, for INFO and above
        - self._lazy: lazy logger for DEBUG messages with costly formatting
    """

    def __init__(self) -> None:
        class_name = self.__class__.__name__
        self.logger = logging.getLogger(class_name)
        self._lazy = get_lazy_logger(class_name)
