"""Unit tests for logging configuration."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from status_table.logging.config import (
    PACKAGE_LOGGER,
    RETENTION_DAYS,
    _cleanup_old_logs,
    _setup_file_logging,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Any:
    """Remove handlers added by configure_logging after each test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)


def _age(path: Path, days: int) -> None:
    old_time = (datetime.now() - timedelta(days=days)).timestamp()
    os.utime(path, (old_time, old_time))


@pytest.mark.unit
class TestCleanupOldLogs:
    """Tests for _cleanup_old_logs function."""

    def test_returns_early_when_log_dir_missing(self, tmp_path: Path) -> None:
        """_cleanup_old_logs should return early if LOG_DIR doesn't exist."""
        with patch("status_table.logging.config.LOG_DIR", tmp_path / "nonexistent"):
            _cleanup_old_logs()

    def test_deletes_old_log_files(self, tmp_path: Path) -> None:
        """_cleanup_old_logs should delete log files older than RETENTION_DAYS."""
        log_file = tmp_path / "status-table.log.1"
        log_file.write_text("old log data")
        _age(log_file, RETENTION_DAYS + 5)

        with patch("status_table.logging.config.LOG_DIR", tmp_path):
            _cleanup_old_logs()

        assert not log_file.exists()

    def test_keeps_recent_and_foreign_files(self, tmp_path: Path) -> None:
        """Recent logs and files not named like our logs are kept."""
        recent = tmp_path / "status-table.log"
        recent.write_text("recent log data")
        foreign = tmp_path / "other.log"
        foreign.write_text("not ours")
        _age(foreign, RETENTION_DAYS + 5)

        with patch("status_table.logging.config.LOG_DIR", tmp_path):
            _cleanup_old_logs()

        assert recent.exists()
        assert foreign.exists()

    def test_ignores_os_errors(self, tmp_path: Path) -> None:
        """_cleanup_old_logs should handle OSError gracefully."""
        log_file = tmp_path / "status-table.log.1"
        log_file.write_text("data")
        _age(log_file, RETENTION_DAYS + 5)

        with (
            patch("status_table.logging.config.LOG_DIR", tmp_path),
            patch.object(Path, "unlink", side_effect=OSError("permission denied")),
        ):
            _cleanup_old_logs()


@pytest.mark.unit
class TestSetupFileLogging:
    """Tests for _setup_file_logging function."""

    def test_creates_log_directory_and_handler(self, tmp_path: Path) -> None:
        """_setup_file_logging should create log dir and add a file handler."""
        log_dir = tmp_path / "logs"
        log_file = log_dir / "status-table.log"

        with (
            patch("status_table.logging.config.LOG_DIR", log_dir),
            patch("status_table.logging.config.LOG_FILE", log_file),
            patch("status_table.logging.config._cleanup_old_logs"),
        ):
            root = logging.getLogger()
            initial_count = len(root.handlers)
            _setup_file_logging()
            assert len(root.handlers) > initial_count
            assert log_dir.exists()
            for handler in root.handlers[initial_count:]:
                handler.close()
            root.handlers = root.handlers[:initial_count]


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging function."""

    @pytest.mark.parametrize(
        ("kwargs", "level"),
        [
            ({"debug": True}, logging.DEBUG),
            ({"verbose": True}, logging.INFO),
            ({}, logging.WARNING),
            ({"json_output": True}, logging.WARNING),
        ],
    )
    def test_console_handler_level(self, kwargs: dict[str, bool], level: int) -> None:
        """configure_logging adds a stderr handler at the requested level."""
        root = logging.getLogger()
        initial_count = len(root.handlers)
        with patch("status_table.logging.config._setup_file_logging") as file_logging:
            configure_logging(**kwargs)
        added = root.handlers[initial_count:]
        assert len(added) == 1
        assert added[0].level == level
        file_logging.assert_called_once()

    def test_file_logging_can_be_disabled(self) -> None:
        with patch("status_table.logging.config._setup_file_logging") as file_logging:
            configure_logging(log_file=False)
        file_logging.assert_not_called()


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger function."""

    def test_package_logger_is_silent_by_default(self) -> None:
        """The package logger carries a NullHandler."""
        handlers = logging.getLogger(PACKAGE_LOGGER).handlers
        assert any(isinstance(h, logging.NullHandler) for h in handlers)

    def test_events_reach_stdlib(self, caplog: pytest.LogCaptureFixture) -> None:
        """Events become stdlib records with key/value pairs as extras."""
        logger = get_logger("status_table.test")
        with caplog.at_level(logging.DEBUG, logger="status_table.test"):
            logger.debug("Row appended", row_id="a")
        record = next(r for r in caplog.records if r.getMessage() == "Row appended")
        assert record.levelno == logging.DEBUG
        assert record.row_id == "a"  # type: ignore[attr-defined]

    def test_binds_initial_context(self, caplog: pytest.LogCaptureFixture) -> None:
        """get_logger should bind initial context when provided."""
        logger = get_logger("status_table.test", component="render")
        with caplog.at_level(logging.INFO, logger="status_table.test"):
            logger.info("Repainted")
        record = next(r for r in caplog.records if r.getMessage() == "Repainted")
        assert record.component == "render"  # type: ignore[attr-defined]

    def test_filtered_below_level(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("status_table.test")
        with caplog.at_level(logging.WARNING, logger="status_table.test"):
            logger.debug("Hidden")
        assert not [r for r in caplog.records if r.getMessage() == "Hidden"]
