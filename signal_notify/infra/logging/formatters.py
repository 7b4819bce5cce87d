"""JSON Lines formatter with trace correlation."""
from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

# LogRecord attributes that never become output fields
_RESERVED = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """Format records as one JSON object per line.

    Output keys: ``timestamp`` (UTC, millisecond ISO 8601 with ``Z``),
    the ``fmt_keys`` mapping, the active OpenTelemetry ``trace_id`` and
    ``span_id`` when a span is recording, ``static`` fields such as the
    service name, and every extra attribute on the record (bound logger
    context, ``extra=`` kwargs, injected ContextVar fields).

    Example output:
        ```json
        {"level": "INFO", "logger": "signal_notify.features.notifications.processor", "message": "Notification sent", "timestamp": "2025-01-01T00:00:00.123Z", "service": "signal-notify", "queue_id": "0190..."}
        ```
    """

    def __init__(
        self,
        fmt_keys: dict[str, str] | None = None,
        static: dict[str, Any] | None = None,
        include_process_info: bool = False,
        include_thread_info: bool = False,
    ) -> None:
        super().__init__()
        self.fmt_keys = fmt_keys or {
            "level": "levelname",
            "logger": "name",
            "message": "message",
        }
        self.static = static or {}
        self.include_process_info = include_process_info
        self.include_thread_info = include_thread_info

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        data: dict[str, Any] = {k: getattr(record, v, None) for k, v in self.fmt_keys.items()}
        data["timestamp"] = (
            datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        if self.include_process_info:
            data["process_id"] = record.process
            data["process_name"] = record.processName
        if self.include_thread_info:
            data["thread_id"] = record.thread
            data["thread_name"] = record.threadName

        span = trace.get_current_span()
        if span and span.get_span_context().is_valid:
            ctx = span.get_span_context()
            data["trace_id"] = format(ctx.trace_id, "032x")
            data["span_id"] = format(ctx.span_id, "016x")

        # Keep one record per line
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = record.stack_info.replace("\n", "\\n")

        data.update(self.static)

        for key, value in record.__dict__.items():
            if key not in _RESERVED and key not in data:
                data[key] = value

        return json.dumps(data, ensure_ascii=False, default=str)
