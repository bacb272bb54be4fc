"""Logging setup.

Modules log through ``logging.getLogger(__name__)``; this module only
configures the root handler. In JSON mode every line is an object with
``timestamp``, ``level``, ``logger``, ``message``, ``data`` and a random
``logId``. Static labels and the current request id are attached to every
record.
"""

import json
import logging
import secrets
import sys
from contextvars import ContextVar
from typing import Any

TIMESTAMP_FORMAT = "%b-%d-%Y %H:%M:%S"

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

_labels: dict[str, Any] = {}

# Attributes every LogRecord has; anything else was passed through ``extra``.
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "request_id"}


def set_label(key: str, value: Any) -> None:
    """Attach a label to every subsequent log record."""
    _labels[key] = value


def clear_labels() -> None:
    _labels.clear()


def generate_log_id() -> str:
    return secrets.token_hex(16)


class ContextFilter(logging.Filter):
    """Adds the current request id and static labels to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()
        for key, value in _labels.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One compact JSON object per line."""

    def __init__(self) -> None:
        super().__init__(datefmt=TIMESTAMP_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        data = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS
        }
        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            data["requestId"] = request_id

        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            "data": data or None,
            "logId": generate_log_id(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: str = "info", json_format: bool = True) -> None:
    """Configure the root logger with a single stdout handler.

    Safe to call more than once; the previous handler is replaced.
    """
    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
                datefmt=TIMESTAMP_FORMAT,
            )
        )
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
