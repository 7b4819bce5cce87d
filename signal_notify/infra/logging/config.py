"""Logging configuration setup.

Uses:
- dictConfig for the root level
- QueueHandler + QueueListener so handler I/O never blocks the event loop
- ContextInjectingFilter on the QueueHandler for context propagation
- All handlers behind the root logger (child loggers propagate)
- JSONL format for machine parsing
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from signal_notify.infra.logging.context import ContextInjectingFilter
from signal_notify.infra.logging.formatters import JSONFormatter

if TYPE_CHECKING:
    from signal_notify.core.settings.logs import LoggingSettings

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
_LOGGING_INITIALIZED = False

logger = logging.getLogger(__name__)

_TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def shutdown() -> None:
    """Stop the QueueListener, flushing pending records.

    Registered with atexit by ``configure_logging``; the application
    lifespan also calls it on shutdown.
    """
    global _log_queue, _listener, _queue_handler

    if _listener is not None:
        _listener.stop()
        _listener = None

    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None

    _log_queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from signal_notify.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    log_config = {**log_settings.to_logging_kwargs(), **configure_kwargs}
    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    console_level: str | None = None,
    file_level: str | None = None,
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    include_function_name: bool = False,
    include_process_info: bool = False,
    include_thread_info: bool = False,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    service_name: str = "signal-notify",
) -> None:
    """Configure logging with dictConfig and the QueueHandler pattern.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        console_level: Console handler level. If None, uses log_level.
        file_level: File handler level. If None, uses log_level.
        file_path: Path to log file. None disables file logging.
        json_logs: Enable JSONL structured logging.
        console_enabled: Enable console/stderr logging.
        include_context: Enable ContextInjectingFilter for auto context.
        capture_warnings: Forward Python warnings to logging system.
        include_function_name: Include function name in records.
        include_process_info: Include process ID and name in records.
        include_thread_info: Include thread ID and name in records.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        service_name: Static ``service`` field in JSON records.

    Example:
        from signal_notify.core.settings import get_logging_settings
        configure_logging(**get_logging_settings().to_logging_kwargs())
    """
    global _log_queue, _listener, _queue_handler

    shutdown()

    if capture_warnings:
        logging.captureWarnings(True)

    console_level = (console_level or log_level).upper()
    file_level = (file_level or log_level).upper()
    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            # Handlers hang off the QueueListener, not the root logger
            "root": {"level": log_level.upper(), "handlers": []},
        }
    )

    fmt_keys = {"level": "levelname", "logger": "name", "message": "message"}
    if include_function_name:
        fmt_keys["function"] = "funcName"

    def _formatter() -> logging.Formatter:
        if json_logs:
            return JSONFormatter(
                fmt_keys=fmt_keys,
                static={"service": service_name},
                include_process_info=include_process_info,
                include_thread_info=include_thread_info,
            )
        return logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT)

    handlers: list[logging.Handler] = []

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console_level))
        console_handler.setFormatter(_formatter())
        handlers.append(console_handler)

    if path:
        file_handler = RotatingFileHandler(
            path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, file_level))
        file_handler.setFormatter(_formatter())
        handlers.append(file_handler)

    if not handlers:
        return

    _log_queue = Queue()
    _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
    _listener.start()
    atexit.register(shutdown)

    _queue_handler = QueueHandler(_log_queue)
    # Runs in the emitting task, where the ContextVar is still populated
    if include_context:
        _queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(_queue_handler)

    logger.debug(
        "Logging configured",
        extra={"json_logs": json_logs, "file_path": str(path) if path else None},
    )
