"""Log filters for SweepWars."""

import logging
from typing import Optional

from .core import LogContext


class ContextFilter(logging.Filter):
    """Stamp the active LogContext onto every record."""

    def __init__(self, context: Optional[LogContext] = None):
        super().__init__()
        self.context = context or LogContext()

    def filter(self, record: logging.LogRecord) -> bool:
        """Attach context; never blocks a record."""
        record.context = self.context.to_dict()
        return True


class ComponentFilter(logging.Filter):
    """Allow only records whose logger belongs to a component."""

    def __init__(self, component: str):
        super().__init__()
        self.component = component

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter record by logger component."""
        return f".{self.component}." in f".{record.name}."
