"""
Structured logging for the deal alert service.

Lines look like:
    2025-01-01 08:00:00.123 | INFO     | deadlines | Alert sent | deal_id=rec1 | recipients=1
"""

import logging
import os
import sys
from datetime import datetime
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Pipe-separated formatter with millisecond timestamps and key=value extras."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        level = record.levelname.ljust(8)
        module = record.name.split(".")[-1] if record.name else "root"

        line = f"{timestamp} | {level} | {module} | {record.getMessage()}"

        extras = getattr(record, "extras", None)
        if extras:
            line += " | " + " | ".join(f"{k}={v}" for k, v in extras.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def _level_from_env() -> int:
    name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, name, logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Get a logger writing structured lines to stdout."""
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(_level_from_env())

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.propagate = False

    return logger


def _emit(logger: logging.Logger, level: int, message: str, extras: dict[str, Any]) -> None:
    if not logger.isEnabledFor(level):
        return
    record = logger.makeRecord(logger.name, level, "", 0, message, (), None)
    record.extras = extras
    logger.handle(record)


def log_request(logger: logging.Logger, action: str, **kwargs: Any) -> None:
    """Log an event at INFO with structured extras."""
    _emit(logger, logging.INFO, action, kwargs)


def log_error(logger: logging.Logger, action: str, error: Exception, **kwargs: Any) -> None:
    """Log an error at ERROR with its type, message and structured extras."""
    _emit(logger, logging.ERROR, f"{action}: {type(error).__name__}: {error}", kwargs)
