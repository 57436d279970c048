"""Stdout logging setup driven by ``LoggingSettings``."""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import LoggingSettings

# Attributes present on every LogRecord; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """Emit newline-delimited JSON logs with stable core fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_extra_fields(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-readable formatter that appends ``extra`` fields as key=value."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extra = _extra_fields(record)
        if not extra:
            return message
        suffix = " ".join(f"{key}={value}" for key, value in sorted(extra.items()))
        return f"{message} {suffix}"


def setup_logging(config: LoggingSettings) -> None:
    """Configure the root logger with a stdout handler (and optional file).

    Calling it again replaces the handlers installed by a previous call.
    """
    formatter: logging.Formatter = JsonFormatter() if config.format == "json" else PlainFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.file:
        handlers.append(logging.FileHandler(config.file, encoding="utf-8"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_studentos_handler", False):
            root.removeHandler(handler)
            handler.close()

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._studentos_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    root.setLevel(config.numeric_level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
