"""Log formatters for SweepWars.

JSON and text formatters for the ``sweepwars`` logger hierarchy.
"""

import json
import logging
import time
from typing import Optional


def _format_timestamp(timestamp: float, timestamp_format: str) -> str:
    if timestamp_format == "iso":
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(timestamp))
            + f".{int((timestamp % 1) * 1000000):06d}Z"
        )
    elif timestamp_format == "unix":
        return str(timestamp)
    return time.strftime(timestamp_format, time.gmtime(timestamp))


class JSONFormatter(logging.Formatter):
    """JSON log formatter."""

    def __init__(
        self,
        include_context: bool = True,
        include_exception: bool = True,
        include_thread: bool = False,
        timestamp_format: str = "iso",
        indent: Optional[int] = None,
        ensure_ascii: bool = False,
    ):
        super().__init__()
        self.include_context = include_context
        self.include_exception = include_exception
        self.include_thread = include_thread
        self.timestamp_format = timestamp_format
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        data = {
            "timestamp": _format_timestamp(record.created, self.timestamp_format),
            "level": record.levelname.lower(),
            "logger": record.name,
        }

        context = getattr(record, "context", None)
        if self.include_context and context is not None:
            data["context"] = context

        if self.include_exception and record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            data["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        if self.include_thread:
            data["thread_id"] = record.thread

        data["message"] = record.getMessage()

        return json.dumps(
            data, indent=self.indent, ensure_ascii=self.ensure_ascii, default=str
        )


class TextFormatter(logging.Formatter):
    """Text log formatter."""

    def __init__(self, timestamp_format: str = "%Y-%m-%d %H:%M:%S"):
        super().__init__()
        self.timestamp_format = timestamp_format

    def format(self, record: logging.LogRecord) -> str:
        """Format log record."""
        line = "{timestamp} [{level}] {logger}: {message}".format(
            timestamp=_format_timestamp(record.created, self.timestamp_format),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line
