"""Logging configuration for the collector and the agent."""

from __future__ import annotations
import json
import logging
import os
from datetime import UTC, datetime
from typing import Any


_LOGGER_NAMES = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "fastapi",
    "metrix",
    "metrix_backend",
    "metrix_agent",
)
_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}
_HANDLER_MARKER = "_metrix_handler"


class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line, including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        """Return the JSON encoding of ``record``."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _resolve_level(name: str | None) -> int:
    level = getattr(logging, (name or "INFO").upper(), None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Install a stderr handler and apply the level to the known loggers.

    ``level`` and ``fmt`` default to the ``LOG_LEVEL`` and ``LOG_FORMAT``
    environment variables; ``fmt`` is either ``text`` or ``json``.
    """
    resolved = _resolve_level(level or os.getenv("LOG_LEVEL"))
    style = (fmt or os.getenv("LOG_FORMAT") or "text").lower()

    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter() if style == "json" else logging.Formatter(_TEXT_FORMAT)
    )
    setattr(handler, _HANDLER_MARKER, True)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            root.removeHandler(existing)
    root.addHandler(handler)

    for name in _LOGGER_NAMES:
        logging.getLogger(name).setLevel(resolved)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger, defaulting to the package logger."""
    return logging.getLogger(name or "metrix")


configure_logging()


__all__ = ["JsonFormatter", "configure_logging", "get_logger"]
