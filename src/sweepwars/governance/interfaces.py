"""
External collaborators consumed by the gauge-vote engines.

The engines only depend on the abstract interfaces below. In-memory
implementations are provided for embedding and tests.
"""

import logging

logger = logging.getLogger(__name__)
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from ..errors.exceptions import GovernanceError, ValidationError
from .observability import EventType, GovernanceEvents
from .security import AuthorizationPolicy, Capability, Role

BalanceListener = Callable[[str, int, int], None]


class EpochClock(ABC):
    """Authoritative, non-decreasing epoch counter."""

    @abstractmethod
    def current_epoch(self) -> int:
        """Get the current epoch."""
        pass


class VotingPowerSource(ABC):
    """Supplies each account's total spendable voting power."""

    @abstractmethod
    def balance_of(self, account: str) -> int:
        """Get the voting power of ``account``."""
        pass


class CollectionRegistry(ABC):
    """Membership predicate and ordered enumeration of votable collections."""

    @abstractmethod
    def is_approved(self, collection: str) -> bool:
        """Check if ``collection`` may receive votes."""
        pass

    @abstractmethod
    def approved_collections(self) -> List[str]:
        """Approved collections in registration order."""
        pass


class ManualEpochClock(EpochClock):
    """Epoch counter advanced by an ``EPOCH_TRIGGER`` capability holder."""

    def __init__(
        self,
        policy: AuthorizationPolicy,
        start_epoch: int = 0,
        events: Optional[GovernanceEvents] = None,
    ):
        """Initialize clock at ``start_epoch``."""
        if start_epoch < 0:
            raise ValidationError("Start epoch cannot be negative", field="start_epoch", value=start_epoch)
        self.policy = policy
        self.events = events
        self._epoch = start_epoch

    def current_epoch(self) -> int:
        return self._epoch

    def advance(self, capability: Capability, epochs: int = 1) -> int:
        """Advance the clock and return the new epoch."""
        self.policy.require(capability, Role.EPOCH_TRIGGER, "advance epoch")
        if epochs <= 0:
            raise GovernanceError("Epoch clock can only move forward")

        previous = self._epoch
        self._epoch += epochs
        logger.info("Epoch advanced from %d to %d", previous, self._epoch)

        if self.events is not None:
            self.events.emit_event(
                EventType.EPOCH_ADVANCED,
                epoch=self._epoch,
                account=capability.holder,
                metadata={"previous_epoch": previous},
            )
        return self._epoch


class InMemoryVotingPowerSource(VotingPowerSource):
    """
    Balance table standing in for the escrowed governance token.

    Listeners registered with ``add_reduction_listener`` are called with
    ``(account, old_balance, new_balance)`` whenever a balance decreases,
    which is where the owning system revokes the account's votes.
    """

    def __init__(self, balances: Optional[Dict[str, int]] = None):
        self.balances: Dict[str, int] = {}
        self.reduction_listeners: List[BalanceListener] = []
        for account, balance in (balances or {}).items():
            self.set_balance(account, balance)

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def add_reduction_listener(self, listener: BalanceListener) -> None:
        self.reduction_listeners.append(listener)

    def set_balance(self, account: str, balance: int) -> None:
        """Set the balance of ``account``, notifying listeners on decrease."""
        if balance < 0:
            raise ValidationError("Balance cannot be negative", field="balance", value=balance)

        old_balance = self.balances.get(account, 0)
        self.balances[account] = balance

        if balance < old_balance:
            logger.debug("Voting power of %s reduced from %d to %d", account, old_balance, balance)
            try:
                for listener in self.reduction_listeners:
                    listener(account, old_balance, balance)
            except Exception:
                # a rejected listener leaves the old balance in place
                self.balances[account] = old_balance
                raise

    def lock(self, account: str, amount: int) -> None:
        """Increase ``account``'s power by ``amount``."""
        if amount <= 0:
            raise ValidationError("Lock amount must be positive", field="amount", value=amount)
        self.set_balance(account, self.balance_of(account) + amount)

    def unlock(self, account: str, amount: Optional[int] = None) -> None:
        """Decrease ``account``'s power by ``amount`` (all of it if omitted)."""
        current = self.balance_of(account)
        if amount is None:
            amount = current
        if amount < 0 or amount > current:
            raise ValidationError(
                f"Cannot unlock {amount} from balance {current}",
                field="amount",
                value=amount,
            )
        self.set_balance(account, current - amount)


class InMemoryCollectionRegistry(CollectionRegistry):
    """Ordered approved-collection set managed by ``GOVERNOR`` holders."""

    def __init__(
        self,
        policy: AuthorizationPolicy,
        events: Optional[GovernanceEvents] = None,
    ):
        self.policy = policy
        self.events = events
        # dict preserves registration order
        self._approved: Dict[str, None] = {}

    def is_approved(self, collection: str) -> bool:
        return collection in self._approved

    def approved_collections(self) -> List[str]:
        return list(self._approved)

    def approve(self, collection: str, capability: Capability) -> None:
        """Add ``collection`` to the approved set."""
        self.policy.require(capability, Role.GOVERNOR, "approve collection")
        if not collection:
            raise ValidationError("Collection must be set", field="collection")
        if collection in self._approved:
            return

        self._approved[collection] = None
        logger.info("Collection %s approved", collection)
        if self.events is not None:
            self.events.emit_event(
                EventType.COLLECTION_APPROVED,
                account=capability.holder,
                collections=[collection],
            )

    def unapprove(self, collection: str, capability: Capability) -> None:
        """Remove ``collection`` from the approved set; existing votes stay in the ledger."""
        self.policy.require(capability, Role.GOVERNOR, "unapprove collection")
        if collection not in self._approved:
            raise ValidationError(f"Collection {collection} is not approved", field="collection")

        del self._approved[collection]
        logger.info("Collection %s unapproved", collection)
        if self.events is not None:
            self.events.emit_event(
                EventType.COLLECTION_UNAPPROVED,
                account=capability.holder,
                collections=[collection],
            )
