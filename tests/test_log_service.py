"""Tests for the structured log service."""

import io
import json
import logging
from collections.abc import Generator

import pytest

from s3mover.services.log_service import (
    EVENT_LOGGER_NAME,
    JsonLinesFormatter,
    LogService,
    TextFormatter,
    configure_logging,
    get_log_service,
)


class FakeTTY(io.StringIO):
    """StringIO that claims to be a terminal."""

    def isatty(self) -> bool:
        return True


@pytest.fixture(autouse=True)
def restore_logger() -> Generator[None, None, None]:
    """Restore the s3mover logger after each test."""
    logger = logging.getLogger("s3mover")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_auto_json_when_not_tty(self) -> None:
        """Test that a non-terminal stream gets JSON lines."""
        handler = configure_logging("info", "auto", io.StringIO())
        assert isinstance(handler.formatter, JsonLinesFormatter)

    def test_auto_text_on_tty(self) -> None:
        """Test that a terminal gets plain text."""
        handler = configure_logging("info", "auto", FakeTTY())
        assert isinstance(handler.formatter, TextFormatter)

    def test_explicit_format(self) -> None:
        """Test that an explicit format overrides TTY detection."""
        handler = configure_logging("info", "json", FakeTTY())
        assert isinstance(handler.formatter, JsonLinesFormatter)

    def test_level(self) -> None:
        """Test that the level is applied to the s3mover logger."""
        configure_logging("debug", "json", io.StringIO())
        assert logging.getLogger("s3mover").level == logging.DEBUG


class TestLogService:
    """Tests for LogService events."""

    def test_json_entry_format(self) -> None:
        """Test that events have the expected JSON schema."""
        stream = io.StringIO()
        configure_logging("info", "json", stream)

        LogService().info("transport", "file_uploaded", "Upload completed", {"size": 10})

        entry = json.loads(stream.getvalue().strip())
        assert "timestamp" in entry
        assert entry["level"] == "INFO"
        assert entry["category"] == "transport"
        assert entry["event"] == "file_uploaded"
        assert entry["message"] == "Upload completed"
        assert entry["metadata"] == {"size": 10}

    def test_one_line_per_event(self) -> None:
        """Test that each event is written on its own line."""
        stream = io.StringIO()
        configure_logging("info", "json", stream)
        log = LogService()

        log.info("app", "a", "first")
        log.warning("app", "b", "second")
        log.error("app", "c", "third")

        lines = stream.getvalue().strip().split("\n")
        assert [json.loads(line)["level"] for line in lines] == ["INFO", "WARNING", "ERROR"]

    def test_level_filtering(self) -> None:
        """Test that debug events are dropped at info level."""
        stream = io.StringIO()
        configure_logging("info", "json", stream)

        LogService().debug("transport", "noise", "not shown")

        assert stream.getvalue() == ""

    def test_text_includes_metadata(self) -> None:
        """Test that the text format appends metadata pairs."""
        stream = FakeTTY()
        configure_logging("info", "text", stream)

        LogService().info("transport", "cycle_completed", "done", {"processed": 2, "total": 2})

        line = stream.getvalue().strip()
        assert "[INFO]" in line
        assert EVENT_LOGGER_NAME in line
        assert line.endswith("done processed=2 total=2")

    def test_module_loggers_share_handler(self) -> None:
        """Test that plain module loggers under s3mover use the same output."""
        stream = io.StringIO()
        configure_logging("info", "json", stream)

        logging.getLogger("s3mover.services.transporter").info("plain message")

        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "plain message"
        assert entry["category"] == "s3mover.services.transporter"

    def test_singleton(self) -> None:
        """Test that get_log_service returns one shared instance."""
        assert get_log_service() is get_log_service()
