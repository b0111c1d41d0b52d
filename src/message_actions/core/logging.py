"""Logging configuration helpers."""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

from .config import LoggingSettings


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def _formatter(structured: bool) -> dict[str, Any]:
    if structured:
        return {"()": JsonFormatter}
    return {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"}


def configure_logging(settings: LoggingSettings) -> None:
    """Configure console logging; ``structured`` switches to JSON lines."""
    dict_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": _formatter(settings.structured)},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": settings.level,
            },
        },
        "loggers": {"httpx": {"level": "WARNING"}},
        "root": {"handlers": ["console"], "level": settings.level},
    }

    logging.config.dictConfig(dict_config)


__all__ = ["JsonFormatter", "configure_logging"]
