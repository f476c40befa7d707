"""SweepWars Error Handling System.

This module provides the exception hierarchy shared by the vote ledger,
the snapshot engine and the collaborator adapters.
"""

from .exceptions import (
    AuthorizationError,
    CapacityError,
    CollectionNotApprovedError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    GovernanceError,
    InsufficientVotesAvailable,
    InsufficientVotesToRevoke,
    StaleEpochError,
    SweepWarsError,
    ValidationError,
)

__all__ = [
    "SweepWarsError",
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorContext",
    "ValidationError",
    "ConfigurationError",
    "GovernanceError",
    "AuthorizationError",
    "CapacityError",
    "InsufficientVotesAvailable",
    "InsufficientVotesToRevoke",
    "CollectionNotApprovedError",
    "StaleEpochError",
]
