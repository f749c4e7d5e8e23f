from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Iterable, Sequence

from settings import get_settings

_DEFAULT_EXTRA_KEYS = (
    "reading_id",
    "backend",
    "schema",
    "limit",
    "field",
    "invalid_value",
    "attempt",
    "status",
    "error",
)

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("pymongo", "httpx", "httpcore")

_configured = False


class ContextualFormatter(logging.Formatter):
    """Formatter that appends ``key=value`` pairs for known ``extra`` fields."""

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in self._extra_keys
            if getattr(record, key, None) is not None
        )
        return f"{message} | {context}" if context else message


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging once per process."""
    global _configured
    if _configured:
        return

    log_level = level if level is not None else get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "loggers": {
                name: {"level": "WARNING", "propagate": True} for name in _QUIET_LOGGERS
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True


def reset_logging() -> None:
    """Allow ``configure_logging`` to run again, e.g. after ``LOG_LEVEL`` changes."""
    global _configured
    _configured = False
