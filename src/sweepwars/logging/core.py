"""Core logging configuration for SweepWars.

Modules log through ``logging.getLogger(__name__)``; every logger in the
package hangs off the ``sweepwars`` root logger, which this module
configures with structured formatters and a context filter.
"""

import logging
import sys
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

ROOT_LOGGER_NAME = "sweepwars"


class LogLevel(Enum):
    """Log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_stdlib(self) -> int:
        """Map to the standard library numeric level."""
        return getattr(logging, self.name)


@dataclass
class LogContext:
    """Log context information stamped onto every record."""

    node_id: Optional[str] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    epoch: Optional[int] = None
    correlation_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "node_id": self.node_id,
            "component": self.component,
            "operation": self.operation,
            "epoch": self.epoch,
            "correlation_id": self.correlation_id,
            "metadata": self.metadata,
        }


class LogConfig:
    """Log configuration."""

    def __init__(
        self,
        name: str = ROOT_LOGGER_NAME,
        level: LogLevel = LogLevel.INFO,
        format_type: str = "json",
        handlers: List[str] = None,
        file_path: Optional[str] = None,
        propagate: bool = False,
        context: Optional[LogContext] = None,
    ):
        self.name = name
        self.level = level
        self.format_type = format_type
        self.handlers = handlers or ["console"]
        self.file_path = file_path
        self.propagate = propagate
        self.context = context or LogContext()

        if "file" in self.handlers and not self.file_path:
            raise ValueError("File handler requires a file_path")
        if self.format_type not in ("json", "text"):
            raise ValueError(f"Unknown format type: {self.format_type}")


class LogManager:
    """Owns the handlers attached to the package root logger."""

    def __init__(self, config: LogConfig = None):
        self.config = config or LogConfig()
        self.handlers: Dict[str, logging.Handler] = {}
        self._lock = threading.RLock()
        self._context_filter = None
        self._configure()

    def _build_formatter(self) -> logging.Formatter:
        from .formatters import JSONFormatter, TextFormatter

        if self.config.format_type == "json":
            return JSONFormatter()
        return TextFormatter()

    def _configure(self) -> None:
        from .filters import ContextFilter

        with self._lock:
            logger = logging.getLogger(self.config.name)
            logger.setLevel(self.config.level.to_stdlib())
            logger.propagate = self.config.propagate

            self._context_filter = ContextFilter(self.config.context)
            formatter = self._build_formatter()

            for handler_name in self.config.handlers:
                if handler_name == "console":
                    handler = logging.StreamHandler(sys.stderr)
                elif handler_name == "file":
                    handler = logging.FileHandler(self.config.file_path)
                else:
                    raise ValueError(f"Unknown handler: {handler_name}")

                handler.setFormatter(formatter)
                handler.addFilter(self._context_filter)
                logger.addHandler(handler)
                self.handlers[handler_name] = handler

    def set_context(self, context: LogContext) -> None:
        """Replace the context stamped onto records."""
        with self._lock:
            self._context_filter.context = context

    def get_context(self) -> LogContext:
        """Get the context stamped onto records."""
        with self._lock:
            return self._context_filter.context

    def shutdown(self) -> None:
        """Detach and close all handlers."""
        with self._lock:
            logger = logging.getLogger(self.config.name)
            for handler in self.handlers.values():
                logger.removeHandler(handler)
                handler.close()
            self.handlers.clear()


_global_manager: Optional[LogManager] = None


def get_logger(name: str = None) -> logging.Logger:
    """Get a logger under the package root logger."""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(config: LogConfig = None) -> LogManager:
    """Setup logging with configuration."""
    global _global_manager
    if _global_manager is not None:
        _global_manager.shutdown()
    _global_manager = LogManager(config)
    return _global_manager


def shutdown_logging() -> None:
    """Shutdown logging."""
    global _global_manager
    if _global_manager is not None:
        _global_manager.shutdown()
        _global_manager = None
