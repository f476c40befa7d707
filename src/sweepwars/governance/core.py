"""
Core gauge-vote types and data structures.

This module defines the decaying vote line, the per-collection vote state,
the per-account allocation record and the configuration shared by the
accounting and snapshot engines.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..errors.exceptions import ConfigurationError, StaleEpochError, ValidationError

BASE_TOKEN_COLLECTION = "0x0000000000000000000000000000000000000001"


class VoteDirection(Enum):
    """Direction of a gauge vote."""

    FOR = "for"
    AGAINST = "against"

    @property
    def sign(self) -> int:
        """+1 for FOR votes, -1 for AGAINST votes."""
        return 1 if self is VoteDirection.FOR else -1


@dataclass
class DecayLine:
    """
    A linearly decaying signed quantity.

    The value at epoch ``e >= last_update_epoch`` is
    ``bias - slope * (e - last_update_epoch)``. Storage never clamps.
    """

    bias: int = 0
    slope: int = 0
    last_update_epoch: int = 0

    def value_at(self, epoch: int) -> int:
        """Project the value forward to ``epoch``."""
        if epoch < self.last_update_epoch:
            raise StaleEpochError(epoch, self.last_update_epoch)
        return self.bias - self.slope * (epoch - self.last_update_epoch)

    def apply(self, delta_bias: int, delta_slope: int, epoch: int) -> None:
        """Re-anchor at ``epoch`` and add a contribution."""
        self.bias = self.value_at(epoch) + delta_bias
        self.slope += delta_slope
        self.last_update_epoch = epoch

    def merge(self, other: "DecayLine", epoch: int) -> None:
        """Add another line, both projected to ``epoch``."""
        self.apply(other.value_at(epoch), other.slope, epoch)

    def subtract(self, other: "DecayLine", epoch: int) -> None:
        """Remove another line, both projected to ``epoch``."""
        self.apply(-other.value_at(epoch), -other.slope, epoch)

    def is_zero(self) -> bool:
        return self.bias == 0 and self.slope == 0

    def copy(self) -> "DecayLine":
        return DecayLine(self.bias, self.slope, self.last_update_epoch)

    def to_dict(self) -> Dict[str, int]:
        return {
            "bias": self.bias,
            "slope": self.slope,
            "last_update_epoch": self.last_update_epoch,
        }


@dataclass
class CollectionVoteState(DecayLine):
    """Net decaying vote weight for one collection."""

    collection: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["collection"] = self.collection
        return data


@dataclass
class VoteAllocationRecord:
    """
    Votes one account has placed on one collection.

    ``for_amount``/``against_amount`` are the raw undecayed principal counted
    against the account's voting power. ``for_line``/``against_line`` hold
    the exact signed contribution the account added to the collection
    state, so revocation removes precisely what was added.
    """

    account: str
    collection: str
    for_amount: int = 0
    against_amount: int = 0
    for_line: DecayLine = field(default_factory=DecayLine)
    against_line: DecayLine = field(default_factory=DecayLine)

    def __post_init__(self):
        """Validate record after initialization."""
        if self.for_amount < 0 or self.against_amount < 0:
            raise ValidationError("Allocated amounts cannot be negative")

    @property
    def total_amount(self) -> int:
        """Raw principal allocated in both directions."""
        return self.for_amount + self.against_amount

    def amount_for(self, direction: VoteDirection) -> int:
        if direction is VoteDirection.FOR:
            return self.for_amount
        return self.against_amount

    def line_for(self, direction: VoteDirection) -> DecayLine:
        if direction is VoteDirection.FOR:
            return self.for_line
        return self.against_line

    def add(self, direction: VoteDirection, amount: int, contribution: DecayLine, epoch: int) -> None:
        """Record a cast of ``amount`` that contributed ``contribution``."""
        if direction is VoteDirection.FOR:
            self.for_amount += amount
        else:
            self.against_amount += amount
        self.line_for(direction).merge(contribution, epoch)

    def contribution_at(self, epoch: int) -> DecayLine:
        """Combined signed contribution of both directions, anchored at ``epoch``."""
        line = DecayLine(last_update_epoch=epoch)
        line.merge(self.for_line, epoch)
        line.merge(self.against_line, epoch)
        return line

    def is_empty(self) -> bool:
        return self.total_amount == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary."""
        return {
            "account": self.account,
            "collection": self.collection,
            "for_amount": self.for_amount,
            "against_amount": self.against_amount,
            "for_line": self.for_line.to_dict(),
            "against_line": self.against_line.to_dict(),
        }


@dataclass
class SweepWarsConfig:
    """Configuration for the gauge-vote system."""

    # Decay parameters
    decay_horizon_epochs: int = 4

    # Snapshot parameters
    sample_size: int = 5
    max_sample_size: int = 100

    # Pseudo-collection that routes its share to protocol-level deposit
    base_token_collection: str = BASE_TOKEN_COLLECTION

    # Optional cap on a single cast
    max_vote_amount: Optional[int] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate configuration."""
        if self.decay_horizon_epochs <= 0:
            raise ConfigurationError(
                "Decay horizon must be positive",
                config_key="decay_horizon_epochs",
                config_value=self.decay_horizon_epochs,
            )

        if self.max_sample_size <= 0:
            raise ConfigurationError(
                "Max sample size must be positive",
                config_key="max_sample_size",
                config_value=self.max_sample_size,
            )

        if not 1 <= self.sample_size <= self.max_sample_size:
            raise ConfigurationError(
                f"Sample size must be between 1 and {self.max_sample_size}",
                config_key="sample_size",
                config_value=self.sample_size,
            )

        if not self.base_token_collection:
            raise ConfigurationError(
                "Base token collection must be set",
                config_key="base_token_collection",
            )

        if self.max_vote_amount is not None and self.max_vote_amount <= 0:
            raise ConfigurationError(
                "Max vote amount must be positive",
                config_key="max_vote_amount",
                config_value=self.max_vote_amount,
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "decay_horizon_epochs": self.decay_horizon_epochs,
            "sample_size": self.sample_size,
            "max_sample_size": self.max_sample_size,
            "base_token_collection": self.base_token_collection,
            "max_vote_amount": self.max_vote_amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SweepWarsConfig":
        """Create configuration from dictionary, rejecting unknown keys."""
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {sorted(unknown)}",
                config_key=sorted(unknown)[0],
            )
        return cls(**data)
