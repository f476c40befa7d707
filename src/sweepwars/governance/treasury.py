"""
Treasury authorization for snapshot results.

The treasury is the only component that acts on a snapshot. It receives
the ``(collections, amounts)`` outcome once per epoch, routes the
base-token share to a protocol deposit and turns every other share into a
sweep instruction.
"""

import logging

logger = logging.getLogger(__name__)
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors.exceptions import GovernanceError, ValidationError
from .observability import EventType, GovernanceEvents
from .security import AuthorizationPolicy, Capability, Role
from .snapshot import SnapshotResult


class SweepRoute(Enum):
    """Where an allocated share goes."""

    COLLECTION_SWEEP = "collection_sweep"
    PROTOCOL_DEPOSIT = "protocol_deposit"


@dataclass(frozen=True)
class SweepInstruction:
    """One authorized transfer."""

    epoch: int
    collection: str
    amount: int
    route: SweepRoute

    def to_dict(self) -> Dict[str, Any]:
        return {
            "epoch": self.epoch,
            "collection": self.collection,
            "amount": self.amount,
            "route": self.route.value,
        }


@dataclass
class SweepAuthorization:
    """All instructions authorized for one epoch."""

    epoch: int
    authorized_by: str
    instructions: List[SweepInstruction] = field(default_factory=list)
    dust: int = 0
    authorized_at: float = field(default_factory=time.time)

    @property
    def total_amount(self) -> int:
        return sum(instruction.amount for instruction in self.instructions)

    def by_route(self, route: SweepRoute) -> List[SweepInstruction]:
        return [i for i in self.instructions if i.route is route]


class TreasuryAuthorization(ABC):
    """Consumer of snapshot results; solely responsible for moving funds."""

    @abstractmethod
    def authorize(self, result: SnapshotResult, capability: Capability) -> SweepAuthorization:
        """Authorize transfers for a snapshot result."""
        pass


class SweepTreasury(TreasuryAuthorization):
    """In-memory treasury that records authorized sweeps."""

    def __init__(
        self,
        policy: AuthorizationPolicy,
        base_token_collection: str,
        balance: int = 0,
        events: Optional[GovernanceEvents] = None,
    ):
        """Initialize treasury."""
        if balance < 0:
            raise ValidationError("Treasury balance cannot be negative", field="balance", value=balance)
        self.policy = policy
        self.base_token_collection = base_token_collection
        self.balance = balance
        self.events = events
        self.authorizations: Dict[int, SweepAuthorization] = {}
        self.protocol_deposits = 0

    def deposit(self, amount: int) -> None:
        """Fund the treasury."""
        if amount <= 0:
            raise ValidationError("Deposit amount must be positive", field="amount", value=amount)
        self.balance += amount

    def is_authorized(self, epoch: int) -> bool:
        return epoch in self.authorizations

    def get_authorization(self, epoch: int) -> Optional[SweepAuthorization]:
        return self.authorizations.get(epoch)

    def authorize(self, result: SnapshotResult, capability: Capability) -> SweepAuthorization:
        """
        Authorize a snapshot's transfers (``TREASURY_MANAGER``).

        Raises:
            GovernanceError: if the epoch was already authorized or the
                treasury cannot cover the allocated amount.
            ValidationError: if the result is internally inconsistent.
        """
        self.policy.require(capability, Role.TREASURY_MANAGER, "authorize sweep")

        if self.is_authorized(result.epoch):
            raise GovernanceError(f"Sweep for epoch {result.epoch} already authorized")

        if len(result.collections) != len(result.amounts):
            raise ValidationError("Snapshot collections and amounts differ in length")

        if result.allocated > result.reward_pool:
            raise ValidationError("Snapshot allocates more than its reward pool")

        if result.allocated > self.balance:
            raise GovernanceError(
                f"Treasury balance {self.balance} cannot cover {result.allocated}"
            )

        instructions = []
        for collection, amount in zip(result.collections, result.amounts):
            if amount == 0:
                continue
            route = (
                SweepRoute.PROTOCOL_DEPOSIT
                if collection == self.base_token_collection
                else SweepRoute.COLLECTION_SWEEP
            )
            instructions.append(SweepInstruction(result.epoch, collection, amount, route))

        authorization = SweepAuthorization(
            epoch=result.epoch,
            authorized_by=capability.holder,
            instructions=instructions,
            dust=result.dust,
        )

        self.balance -= authorization.total_amount
        self.protocol_deposits += sum(
            i.amount for i in authorization.by_route(SweepRoute.PROTOCOL_DEPOSIT)
        )
        self.authorizations[result.epoch] = authorization

        logger.info(
            "Authorized %d sweep instructions for epoch %d totalling %d",
            len(instructions),
            result.epoch,
            authorization.total_amount,
        )

        if self.events is not None:
            self.events.emit_event(
                EventType.SWEEP_AUTHORIZED,
                epoch=result.epoch,
                account=capability.holder,
                collections=[i.collection for i in instructions],
                metadata={
                    "instructions": [i.to_dict() for i in instructions],
                    "total_amount": authorization.total_amount,
                    "dust": authorization.dust,
                },
            )

        return authorization
