"""Logging configuration from the environment.

UAFTRIAGE_LOG_LEVEL: debug|info|warn|error (default: info)
UAFTRIAGE_LOG_FORMAT: text|json (default: text)

Logs go to stderr so stdout stays clean for JSON results.
"""

from __future__ import annotations

import json
import logging
import os
import sys

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Attributes every LogRecord has; anything else came in through ``extra=``.
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _extras(record: logging.LogRecord) -> dict:
    return {k: v for k, v in vars(record).items() if k not in _RESERVED}


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = " ".join(f"{k}={v}" for k, v in _extras(record).items())
        return f"{line} {fields}" if fields else line


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        data.update(_extras(record))
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def parse_level(level: str | None) -> int:
    return LEVELS.get((level or "").lower(), logging.INFO)


def configure(env: dict[str, str] | None = None) -> logging.Logger:
    """Attach a stderr handler to the ``uaftriage`` logger."""
    env = os.environ if env is None else env
    logger = logging.getLogger("uaftriage")
    logger.setLevel(parse_level(env.get("UAFTRIAGE_LOG_LEVEL")))

    handler = logging.StreamHandler(sys.stderr)
    if env.get("UAFTRIAGE_LOG_FORMAT", "text").lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(TextFormatter())

    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger
