"""Structured event logging.

Events are ``(level, category, event, message, metadata)`` tuples routed
through the standard ``logging`` module. When the output is not a terminal
each record is written as one JSON object per line:

    {"timestamp": ..., "level": "INFO", "category": "transport",
     "event": "file_uploaded", "message": ..., "metadata": {...}}
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

EVENT_LOGGER_NAME = "s3mover.events"

LOG_LEVELS = ("debug", "info", "warning", "error")
LOG_FORMATS = ("auto", "text", "json")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JsonLinesFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "category": getattr(record, "category", record.name),
            "event": getattr(record, "event", ""),
            "message": record.getMessage(),
        }
        metadata = getattr(record, "metadata", None)
        if metadata:
            entry["metadata"] = metadata
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter that appends event metadata as key=value pairs."""

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT, datefmt=TEXT_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        metadata = getattr(record, "metadata", None)
        if metadata:
            pairs = " ".join(f"{k}={v}" for k, v in metadata.items())
            line = f"{line} {pairs}"
        return line


def configure_logging(
    level: str = "info",
    fmt: str = "auto",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a single handler on the ``s3mover`` logger.

    Args:
        level: One of LOG_LEVELS
        fmt: "json", "text", or "auto" (JSON unless the stream is a TTY)
        stream: Output stream (default: stdout)

    Returns:
        The installed handler
    """
    if stream is None:
        stream = sys.stdout

    use_json = fmt == "json"
    if fmt == "auto":
        isatty = getattr(stream, "isatty", None)
        use_json = not (isatty is not None and isatty())

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonLinesFormatter() if use_json else TextFormatter())

    logger = logging.getLogger("s3mover")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers = [handler]
    logger.propagate = False
    return handler


class LogService:
    """Emit application events through the ``s3mover.events`` logger."""

    def __init__(self) -> None:
        self._logger = logging.getLogger(EVENT_LOGGER_NAME)

    def log(
        self,
        level: str,
        category: str,
        event: str,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log an event.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR)
            category: Event category (app, transport, stats)
            event: Machine-readable event name (snake_case)
            message: Human-readable message
            metadata: Optional additional data
        """
        self._logger.log(
            getattr(logging, level.upper(), logging.INFO),
            message,
            extra={"category": category, "event": event, "metadata": metadata or {}},
        )

    def debug(
        self,
        category: str,
        event: str,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log a DEBUG-level event."""
        self.log("DEBUG", category, event, message, metadata)

    def info(
        self,
        category: str,
        event: str,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log an INFO-level event."""
        self.log("INFO", category, event, message, metadata)

    def warning(
        self,
        category: str,
        event: str,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log a WARNING-level event."""
        self.log("WARNING", category, event, message, metadata)

    def error(
        self,
        category: str,
        event: str,
        message: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log an ERROR-level event."""
        self.log("ERROR", category, event, message, metadata)


# Module-level singleton accessor
_log_service: LogService | None = None


def get_log_service() -> LogService:
    """Get the singleton LogService instance."""
    global _log_service
    if _log_service is None:
        _log_service = LogService()
    return _log_service
