"""Exception hierarchy for SweepWars.

This module defines the structured exception hierarchy used by the vote
ledger, the snapshot engine and their collaborators. Every rejected call
surfaces one of these errors with no partial state mutation.
"""

import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""

    VALIDATION = "validation"
    CAPACITY = "capacity"
    AUTHORIZATION = "authorization"
    DOMAIN = "domain"
    EPOCH = "epoch"
    GOVERNANCE = "governance"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


@dataclass
class ErrorContext:
    """Context information for an error."""

    timestamp: float = field(default_factory=time.time)
    component: Optional[str] = None
    operation: Optional[str] = None
    account: Optional[str] = None
    collection: Optional[str] = None
    epoch: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "timestamp": self.timestamp,
            "component": self.component,
            "operation": self.operation,
            "account": self.account,
            "collection": self.collection,
            "epoch": self.epoch,
            "metadata": self.metadata,
        }


class SweepWarsError(Exception):
    """Base exception for all SweepWars errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = context or ErrorContext()
        self.cause = cause
        self.metadata = metadata or {}
        self.timestamp = time.time()
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"{self.__class__.__name__}: {self.message}"]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.severity != ErrorSeverity.MEDIUM:
            parts.append(f"Severity: {self.severity.value}")

        if self.category != ErrorCategory.SYSTEM:
            parts.append(f"Category: {self.category.value}")

        return " | ".join(parts)


class ValidationError(SweepWarsError):
    """Validation error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[Any] = None,
        **kwargs,
    ):
        kwargs.setdefault("category", ErrorCategory.VALIDATION)
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.expected = expected

    def to_dict(self) -> Dict[str, Any]:
        """Convert validation error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "field": self.field,
                "value": str(self.value) if self.value is not None else None,
                "expected": str(self.expected) if self.expected is not None else None,
            }
        )
        return data


class ConfigurationError(SweepWarsError):
    """Configuration error."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            error_code="INVALID_CONFIGURATION",
            **kwargs,
        )
        self.config_key = config_key
        self.config_value = config_value

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "config_key": self.config_key,
                "config_value": (
                    str(self.config_value) if self.config_value is not None else None
                ),
            }
        )
        return data


class GovernanceError(SweepWarsError):
    """Governance flow error (double authorization, clock misuse)."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.GOVERNANCE)
        super().__init__(message, **kwargs)


class AuthorizationError(SweepWarsError):
    """Caller lacks the capability required for a privileged operation."""

    def __init__(
        self,
        message: str,
        required_role: Optional[str] = None,
        holder: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            category=ErrorCategory.AUTHORIZATION,
            severity=ErrorSeverity.HIGH,
            error_code="UNAUTHORIZED",
            **kwargs,
        )
        self.required_role = required_role
        self.holder = holder

    def to_dict(self) -> Dict[str, Any]:
        """Convert authorization error to dictionary."""
        data = super().to_dict()
        data.update({"required_role": self.required_role, "holder": self.holder})
        return data


class CapacityError(SweepWarsError):
    """Base class for vote capacity errors."""

    def __init__(
        self,
        message: str,
        account: Optional[str] = None,
        requested: Optional[int] = None,
        available: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.CAPACITY, **kwargs)
        self.account = account
        self.requested = requested
        self.available = available

    def to_dict(self) -> Dict[str, Any]:
        """Convert capacity error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "account": self.account,
                "requested": self.requested,
                "available": self.available,
            }
        )
        return data


class InsufficientVotesAvailable(CapacityError):
    """Vote exceeds the account's remaining unallocated power."""

    def __init__(self, account: str, requested: int, available: int, **kwargs):
        super().__init__(
            f"Account {account} requested {requested} votes but only {available} are available",
            account=account,
            requested=requested,
            available=available,
            error_code="INSUFFICIENT_VOTES_AVAILABLE",
            **kwargs,
        )


class InsufficientVotesToRevoke(CapacityError):
    """Revocation exceeds what the account has allocated."""

    def __init__(self, account: str, collection: str, **kwargs):
        super().__init__(
            f"Account {account} has no votes allocated to {collection}",
            account=account,
            requested=None,
            available=0,
            error_code="INSUFFICIENT_VOTES_TO_REVOKE",
            **kwargs,
        )
        self.collection = collection


class CollectionNotApprovedError(SweepWarsError):
    """Vote targets a collection outside the approved set."""

    def __init__(self, collection: str, **kwargs):
        super().__init__(
            f"Collection {collection} is not approved for voting",
            category=ErrorCategory.DOMAIN,
            error_code="COLLECTION_NOT_APPROVED",
            **kwargs,
        )
        self.collection = collection


class StaleEpochError(SweepWarsError):
    """Weight requested for an epoch before the state's last write."""

    def __init__(self, requested_epoch: int, anchor_epoch: int, **kwargs):
        super().__init__(
            f"Cannot project weight to epoch {requested_epoch}: "
            f"state was last written at epoch {anchor_epoch}",
            category=ErrorCategory.EPOCH,
            error_code="STALE_EPOCH",
            **kwargs,
        )
        self.requested_epoch = requested_epoch
        self.anchor_epoch = anchor_epoch

    def to_dict(self) -> Dict[str, Any]:
        """Convert epoch error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "requested_epoch": self.requested_epoch,
                "anchor_epoch": self.anchor_epoch,
            }
        )
        return data
