"""Structured JSON logging for the review service.

Records tagged with :func:`entry_context` carry the queue entry id and filename
as top-level ``entry_id`` / ``filename`` keys so one document can be followed
through scan, analysis and review.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import orjson

_DEFAULT_LEVEL = os.environ.get("LGR_LOG_LEVEL", "INFO")
_CONTEXT_PREFIX = "ctx_"
# client libraries that log every request at INFO
_CHATTY_LOGGERS = ("urllib3", "watchdog", "google", "httpx")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key.startswith(_CONTEXT_PREFIX) and value is not None:
                payload[key[len(_CONTEXT_PREFIX) :]] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(level: str | int = _DEFAULT_LEVEL, use_json: bool = True) -> None:
    """Install a single stdout handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "legal_review") -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def entry_context(entry_id: str | None, filename: str | None = None) -> dict[str, Any]:
    """``extra`` mapping that tags a log record with a queue entry."""
    return {f"{_CONTEXT_PREFIX}entry_id": entry_id, f"{_CONTEXT_PREFIX}filename": filename}


__all__ = ["JsonFormatter", "configure_logging", "entry_context", "get_logger"]
