"""Tests for logging module."""

import logging
import re

from linkbeam.config import Config
from linkbeam.logging import reset_logging, setup_logging


class TestSetupLogging:
    """Test logging setup."""

    def test_setup_logging_returns_logger(self):
        """Setup returns the package logger."""
        logger = setup_logging(Config())

        assert isinstance(logger, logging.Logger)
        assert logger.name == "linkbeam"

    def test_setup_logging_is_idempotent(self):
        """Calling setup twice returns the same logger without extra handlers."""
        first = setup_logging(Config())
        handlers = len(first.handlers)
        second = setup_logging(Config(log_level="DEBUG"))

        assert first is second
        assert len(second.handlers) == handlers

    def test_setup_logging_creates_log_file(self, tmp_path):
        """Logging setup creates log file."""
        log_file = tmp_path / "subdir" / "test.log"
        logger = setup_logging(Config(log_file=str(log_file)))
        logger.info("test message")

        assert log_file.exists()
        assert "test message" in log_file.read_text()

    def test_log_levels_respected(self, tmp_path):
        """Only logs at configured level and above."""
        log_file = tmp_path / "test.log"
        logger = setup_logging(Config(log_file=str(log_file), log_level="WARNING"))
        logger.info("info message")
        logger.warning("warning message")

        content = log_file.read_text()
        assert "info message" not in content
        assert "warning message" in content

    def test_child_loggers_use_handlers(self, tmp_path):
        """Module loggers under the package write to the configured file."""
        log_file = tmp_path / "test.log"
        setup_logging(Config(log_file=str(log_file)))
        logging.getLogger("linkbeam.relay.store").warning("from module")

        assert "from module" in log_file.read_text()

    def test_log_format(self, tmp_path):
        """Lines look like '2025-01-27 10:30:45 [INFO] message'."""
        log_file = tmp_path / "test.log"
        logger = setup_logging(Config(log_file=str(log_file)))
        logger.info("formatted")

        line = log_file.read_text().strip()
        assert re.match(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \[INFO\] formatted$", line)

    def test_unknown_level_falls_back_to_info(self):
        """Unrecognized level names do not break setup."""
        logger = setup_logging(Config(log_level="chatty"))
        assert logger.level == logging.INFO


class TestAiohttpLoggers:
    """Test routing of aiohttp's own loggers."""

    def test_server_errors_reach_log_file(self, tmp_path):
        """aiohttp server warnings share the relay's handlers."""
        log_file = tmp_path / "test.log"
        setup_logging(Config(log_file=str(log_file)))
        logging.getLogger("aiohttp.server").info("noise")
        logging.getLogger("aiohttp.server").error("handler crashed")

        content = log_file.read_text()
        assert "handler crashed" in content
        assert "noise" not in content

    def test_access_log_not_attached(self, tmp_path):
        """Access lines would carry full session IDs, so none are written."""
        log_file = tmp_path / "test.log"
        setup_logging(Config(log_file=str(log_file)))
        logging.getLogger("aiohttp.access").warning("GET /listen/0123456789abcdef")

        assert "0123456789abcdef" not in log_file.read_text()

    def test_reset_detaches_handlers(self, tmp_path):
        """Reset removes the shared handlers from every logger."""
        setup_logging(Config(log_file=str(tmp_path / "test.log")))
        reset_logging()

        assert logging.getLogger("linkbeam").handlers == []
        assert logging.getLogger("aiohttp.server").handlers == []
