"""Logging utilities for Context Builder."""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING, Any

import orjson

if TYPE_CHECKING:
    from context_builder.core.config import Settings

_DEFAULT_LEVEL = os.environ.get("CTXB_LOG_LEVEL", "INFO")


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` keys prefixed ``ctx_`` are included."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        payload.update({key: value for key, value in record.__dict__.items() if key.startswith("ctx_")})
        return orjson.dumps(payload, default=str).decode("utf-8")


def configure_logging(level: str | int = _DEFAULT_LEVEL, use_json: bool = True) -> None:
    """Configure root logger with optional JSON formatting."""
    logging.captureWarnings(True)
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    if use_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.handlers = [handler]


def configure_from_settings(settings: "Settings") -> None:
    configure_logging(settings.log_level, use_json=settings.log_json)


def get_logger(name: str = "context_builder") -> logging.Logger:
    """Return configured logger, configuring root on first call."""
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_from_settings", "configure_logging", "get_logger"]
