"""Tests for kings_cooking/logging_config.py."""

import io
import logging

import pytest

from kings_cooking.logging_config import DEFAULT_FORMAT, get_logger, setup_logging


class TestSetupLogging:
    """Test setup_logging function."""

    def test_returns_logger(self):
        """setup_logging should return the named Logger."""
        logger = setup_logging("kc_test_logger_1")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "kc_test_logger_1"

    def test_level_default(self):
        """Default level should be INFO."""
        assert setup_logging("kc_test_logger_2").level == logging.INFO

    def test_level_string(self):
        """Level can be given as a case-insensitive name."""
        assert setup_logging("kc_test_logger_3", level="warning").level == logging.WARNING

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            setup_logging("kc_test_logger_4", level="LOUD")

    def test_idempotent(self):
        """Calling twice must not stack handlers."""
        first = setup_logging("kc_test_logger_5")
        count = len(first.handlers)
        second = setup_logging("kc_test_logger_5", level=logging.DEBUG)
        assert first is second
        assert len(second.handlers) == count
        assert second.level == logging.DEBUG

    def test_writes_to_stream(self):
        stream = io.StringIO()
        logger = setup_logging("kc_test_logger_6", stream=stream)
        logger.info("hello board")
        output = stream.getvalue()
        assert "hello board" in output
        assert "kc_test_logger_6" in output
        assert "INFO" in output


def test_get_logger():
    assert get_logger("kings_cooking.sync") is logging.getLogger("kings_cooking.sync")


def test_default_format_fields():
    for field in ("asctime", "name", "levelname", "message"):
        assert f"%({field})s" in DEFAULT_FORMAT
