"""
core/logger.py
Structured JSON logging for production, readable lines in debug.

Pass per-call context as structured fields rather than formatting it into
the message:

    logger.info("Relay finished", extra=log_fields(thread_id=tid))
"""

import json
import logging
import sys
import time
from typing import Any
from app.core.config import settings


def _fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = getattr(record, "extra_fields", None)
    return fields if isinstance(fields, dict) else {}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        log_obj.update(_fields(record))
        if record.exc_info:
            log_obj["exc"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Pipe-separated lines with structured fields appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s | %(levelname)s | %(name)s | %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _fields(record)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


def log_fields(**fields: Any) -> dict[str, Any]:
    """`extra=` payload for a log call."""
    return {"extra_fields": fields}


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ConsoleFormatter() if settings.DEBUG else JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False   # uvicorn installs its own root handlers
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    return logger
