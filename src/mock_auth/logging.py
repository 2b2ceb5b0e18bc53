"""
Structured JSON logging for mock-auth.

Library modules log through get_logger(__name__) at DEBUG with their context
in extra=. Nothing is emitted until setup_logging() or configure_logging()
installs handlers on the package logger.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from datetime import UTC, datetime
from logging.handlers import TimedRotatingFileHandler
from typing import Any

from mock_auth.config import get_settings

PACKAGE_LOGGER = "mock_auth"

VALID_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Attributes every LogRecord carries; anything else came in through extra=.
_RECORD_ATTRS: frozenset[str] = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


def _utc_day() -> str:
    return datetime.now(tz=UTC).strftime("%Y-%m-%d")


class JSONFormatter(logging.Formatter):
    """One JSON object per record; extra= fields are grouped under "extra"."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS
        }
        if context:
            entry["extra"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DailyRotatingFileHandler(TimedRotatingFileHandler):
    """
    Appends to <directory>/YYYY-MM-DD.log and starts a new file at UTC
    midnight. The file is opened lazily on the first record.
    """

    def __init__(self, directory: str) -> None:
        self.directory = directory
        super().__init__(self._dated_path(), when="midnight", utc=True, delay=True)

    def _dated_path(self) -> str:
        return os.path.join(self.directory, f"{_utc_day()}.log")

    def doRollover(self) -> None:  # noqa: N802
        if self.stream:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]
        self.baseFilename = os.path.abspath(self._dated_path())
        self.rolloverAt = self.computeRollover(int(time.time()))


def setup_logging(
    level: str,
    logger_name: str = PACKAGE_LOGGER,
    log_directory: str | None = None,
) -> logging.Logger:
    """
    Install JSON handlers on logger_name, replacing any it already has.

    Records go to stdout, and also to a daily file in log_directory when one
    is given. The logger stops propagating so test output is not duplicated.

    Raises:
        ValueError: If level is not a valid log level
    """
    level_name = level.upper()
    if level_name not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {sorted(VALID_LOG_LEVELS)}")

    logger = logging.getLogger(logger_name)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_directory is not None:
        os.makedirs(log_directory, exist_ok=True)
        handlers.append(DailyRotatingFileHandler(log_directory))

    formatter = JSONFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level_name)
    logger.propagate = False
    return logger


def configure_logging() -> logging.Logger:
    """Configure logging from the loaded settings."""
    settings = get_settings()
    return setup_logging(
        settings.logging.level,
        settings.logging.logger_name,
        settings.logging.directory,
    )


def get_logger(name: str) -> logging.Logger:
    """Logger for name, nested under the mock_auth namespace."""
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
