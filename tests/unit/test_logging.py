"""Unit tests for structured logging."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest

from mock_auth.logging import (
    DailyRotatingFileHandler,
    JSONFormatter,
    configure_logging,
    get_logger,
    setup_logging,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _reset_logger():
    """Leave the mock_auth logger without handlers after each test."""
    yield
    logger = logging.getLogger("mock_auth")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.mark.unit
class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_formats_basic_fields(self) -> None:
        record = logging.LogRecord("mock_auth.x", logging.INFO, __file__, 1, "hello %s", ("you",), None)
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "mock_auth.x"
        assert data["message"] == "hello you"
        assert "extra" not in data

    def test_includes_extra_fields(self) -> None:
        record = logging.LogRecord("mock_auth", logging.DEBUG, __file__, 1, "attached", (), None)
        record.principal = "user"
        data = json.loads(JSONFormatter().format(record))
        assert data["extra"] == {"principal": "user"}


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging and configure_logging."""

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging("LOUD")

    def test_stdout_only_without_directory(self) -> None:
        logger = setup_logging("debug")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_file_handler_with_directory(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"
        logger = setup_logging("INFO", "mock_auth", str(log_dir))
        logger.info("written", extra={"uri": "/whoami"})
        for handler in logger.handlers:
            handler.flush()

        files = list(log_dir.glob("*.log"))
        assert len(files) == 1
        line = json.loads(files[0].read_text().strip().splitlines()[-1])
        assert line["message"] == "written"
        assert line["extra"]["uri"] == "/whoami"

    def test_repeated_setup_replaces_handlers(self) -> None:
        setup_logging("INFO")
        logger = setup_logging("WARNING")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_configure_from_settings(self) -> None:
        logger = configure_logging()
        assert logger.name == "mock_auth"
        assert logger.level == logging.WARNING


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger namespacing."""

    def test_package_module_name_kept(self) -> None:
        assert get_logger("mock_auth.injector").name == "mock_auth.injector"

    def test_foreign_name_nested_under_package(self) -> None:
        assert get_logger("tests").name == "mock_auth.tests"


@pytest.mark.unit
class TestDailyRotatingFileHandler:
    """Tests for the date-named file handler."""

    def test_rolls_over_at_utc_midnight(self, tmp_path: Path) -> None:
        handler = DailyRotatingFileHandler(str(tmp_path))
        assert handler.when == "MIDNIGHT"
        assert handler.utc is True
        assert handler.stream is None
        handler.close()

    def test_rollover_switches_to_new_dated_file(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        days = iter(["2026-01-01", "2026-01-02"])
        monkeypatch.setattr("mock_auth.logging._utc_day", lambda: next(days))

        handler = DailyRotatingFileHandler(str(tmp_path))
        handler.setFormatter(JSONFormatter())
        handler.emit(logging.makeLogRecord({"msg": "first", "name": "mock_auth"}))
        handler.doRollover()
        handler.emit(logging.makeLogRecord({"msg": "second", "name": "mock_auth"}))
        handler.close()

        assert sorted(path.name for path in tmp_path.glob("*.log")) == [
            "2026-01-01.log",
            "2026-01-02.log",
        ]
        second = json.loads((tmp_path / "2026-01-02.log").read_text())
        assert second["message"] == "second"
