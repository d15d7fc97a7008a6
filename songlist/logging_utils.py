from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

operation_var: contextvars.ContextVar[str] = contextvars.ContextVar("operation", default="-")
song_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("song_id", default="-")

_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "operation",
    "song_id",
    "event",
    "message",
}


class OperationContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "operation"):
            record.operation = operation_var.get()
        if not hasattr(record, "song_id"):
            record.song_id = song_id_var.get()
        if not hasattr(record, "event"):
            record.event = record.msg if isinstance(record.msg, str) else "log"
        return True


class StructuredFormatter(logging.Formatter):
    def __init__(self, json_output: bool) -> None:
        super().__init__()
        self.json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "event": getattr(record, "event", "log"),
            "operation": getattr(record, "operation", "-"),
            "song_id": getattr(record, "song_id", "-"),
        }
        message = record.getMessage()
        if message and message != payload["event"]:
            payload["message"] = message

        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED_RECORD_KEYS:
                continue
            payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        if self.json_output:
            return json.dumps(payload, default=str)

        ordered = [
            f"timestamp={payload.pop('timestamp')}",
            f"level={payload.pop('level')}",
            f"event={payload.pop('event')}",
            f"operation={payload.pop('operation')}",
            f"song_id={payload.pop('song_id')}",
        ]
        ordered.extend(f"{k}={v}" for k, v in payload.items())
        return " ".join(ordered)


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    root = logging.getLogger()
    if getattr(root, "_songlist_logging_configured", False):
        return

    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_output is None:
        json_output = os.getenv("LOG_FORMAT", "text").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter(json_output=json_output))
    context_filter = OperationContextFilter()
    handler.addFilter(context_filter)

    root.handlers.clear()
    root.addHandler(handler)
    root.addFilter(context_filter)
    root.setLevel(level)
    root._songlist_logging_configured = True  # type: ignore[attr-defined]


@contextmanager
def operation_context(operation: str, song_id: int | None = None) -> Iterator[None]:
    """Tag every record logged inside the block with the running operation."""
    op_token = operation_var.set(operation)
    id_token = song_id_var.set("-" if song_id is None else str(song_id))
    try:
        yield
    finally:
        song_id_var.reset(id_token)
        operation_var.reset(op_token)


def current_operation() -> str:
    return operation_var.get()


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: Any) -> None:
    context = {"operation": current_operation(), "song_id": song_id_var.get()}
    logger.log(level, event, extra={"event": event, **context, **fields})
