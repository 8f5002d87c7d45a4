"""
Tests for logging configuration.
"""

import json
import logging
import sys

import pytest

from graphdump.utils.logging_setup import (
    JSONFormatter,
    TruncatingFilter,
    get_logger,
    log_operation,
    setup_logging,
)


@pytest.fixture
def logger_name(request):
    name = f"graphdump_test.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


def make_record(message, *args):
    return logging.LogRecord("graphdump", logging.INFO, __file__, 1, message, args, None)


class TestTruncatingFilter:
    """Tests for TruncatingFilter."""

    def test_long_message_is_shortened(self):
        """Test that oversized messages are cut."""
        record = make_record("x" * 50)

        assert TruncatingFilter(max_length=10).filter(record)
        assert record.getMessage() == "x" * 10 + "... [40 characters omitted]"

    def test_arguments_are_merged_before_cutting(self):
        """Test records using %-style arguments."""
        record = make_record("value: %s", "y" * 30)

        TruncatingFilter(max_length=12).filter(record)

        assert record.getMessage().startswith("value: yyyyy...")
        assert record.args is None

    def test_short_message_is_untouched(self):
        """Test that short messages pass unchanged."""
        record = make_record("short")

        TruncatingFilter(max_length=10).filter(record)

        assert record.getMessage() == "short"


class TestSetupLogging:
    """Tests for setup_logging and friends."""

    def test_json_log_file(self, tmp_path, logger_name):
        """Test that file logs are JSON lines with extra fields."""
        log_file = tmp_path / "logs" / "graphdump.jsonl"
        logger = setup_logging(logger_name, level="DEBUG", log_file=log_file, console=False)

        log_operation(logger, "dump", target="pkg.mod:VALUE")

        entry = json.loads(log_file.read_text().splitlines()[0])
        assert entry["message"] == "Starting operation: dump"
        assert entry["level"] == "INFO"
        assert entry["operation"] == "dump"
        assert entry["target"] == "pkg.mod:VALUE"

    def test_setup_replaces_handlers(self, logger_name):
        """Test that repeated setup does not stack handlers."""
        setup_logging(logger_name)
        logger = setup_logging(logger_name)

        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        assert logger.propagate is False

    def test_get_logger_reuses_configured_logger(self, logger_name):
        """Test that get_logger keeps existing handlers."""
        configured = setup_logging(logger_name, level="ERROR")
        handlers = list(configured.handlers)

        logger = get_logger(logger_name, level="DEBUG")

        assert logger is configured
        assert logger.handlers == handlers
        assert logger.level == logging.ERROR

    def test_json_formatter_exception(self):
        """Test that exceptions are included in JSON output."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("graphdump", logging.ERROR, __file__, 1, "failed", None,
                                       sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "failed"
        assert "ValueError: boom" in entry["exception"]
