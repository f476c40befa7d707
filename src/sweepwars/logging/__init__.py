"""SweepWars Logging System.

This module provides structured logging for the SweepWars vote ledger,
including JSON formatting and context stamping on top of the standard
library logging hierarchy.
"""

from .core import (
    ROOT_LOGGER_NAME,
    LogConfig,
    LogContext,
    LogLevel,
    LogManager,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .filters import ComponentFilter, ContextFilter
from .formatters import JSONFormatter, TextFormatter

__all__ = [
    # Core
    "ROOT_LOGGER_NAME",
    "LogLevel",
    "LogConfig",
    "LogContext",
    "LogManager",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    # Filters
    "ContextFilter",
    "ComponentFilter",
]
