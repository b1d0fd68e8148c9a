"""
Structured logging for Cloudhub.

Every record is one JSON object.  Modules bind a logger to the operation
they perform (``autoload``, ``config``, ``service``) so records can be
filtered by it; client creation also carries a request id that ties the
records of one accessor call together.
"""

from __future__ import annotations

import json
import logging
from typing import Any

# Record attributes copied into the JSON object when present
CONTEXT_KEYS = ("operation", "service", "path", "request_id")


class StructuredFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in CONTEXT_KEYS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry)


class CloudhubLogger:
    """A :mod:`logging` logger bound to a default operation name."""

    def __init__(self, name: str = "cloudhub", operation: str | None = None) -> None:
        self.logger = logging.getLogger(name)
        self.operation = operation
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def bind(self, operation: str) -> CloudhubLogger:
        """Return a logger writing to the same stream with *operation* as default."""
        return CloudhubLogger(self.logger.name, operation)

    def log(self, level: int, message: str, exc_info: bool = False, **context: Any) -> None:
        """Emit *message* with context keys (service, path, request_id, ...).

        ``operation`` defaults to the bound operation; context keys that are
        None are left out of the record.
        """
        context.setdefault("operation", self.operation)
        unknown = set(context) - set(CONTEXT_KEYS)
        if unknown:
            raise TypeError(f"Unknown log context: {', '.join(sorted(unknown))}")
        self.logger.log(level, message, extra=context, exc_info=exc_info)

    def info(self, message: str, **context: Any) -> None:
        self.log(logging.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self.log(logging.WARNING, message, **context)

    def error(self, message: str, **context: Any) -> None:
        self.log(logging.ERROR, message, **context)

    def debug(self, message: str, **context: Any) -> None:
        self.log(logging.DEBUG, message, **context)


# Module-level singleton
hub_logger = CloudhubLogger()
