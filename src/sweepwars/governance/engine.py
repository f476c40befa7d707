"""
Vote accounting engine.

Casts, projects and revokes decaying gauge votes. Every collection's
weight is stored as a bias/slope line re-anchored at each write, so a
read at any epoch at or after the last write is O(1) and independent of
the number of voters or elapsed epochs.

Each mutating call validates everything before touching the ledger, so a
rejected call leaves all state exactly as it was.
"""

import logging

logger = logging.getLogger(__name__)
from typing import Iterable, List, Optional

from ..errors.exceptions import (
    CollectionNotApprovedError,
    InsufficientVotesAvailable,
    InsufficientVotesToRevoke,
    ValidationError,
)
from .core import DecayLine, SweepWarsConfig, VoteAllocationRecord, VoteDirection
from .interfaces import CollectionRegistry, EpochClock, VotingPowerSource
from .ledger import VoteLedger
from .security import AuthorizationPolicy, Capability, Role


class VoteAccountingEngine:
    """Casts, reads and revokes votes against the ledger."""

    def __init__(
        self,
        config: SweepWarsConfig,
        ledger: VoteLedger,
        clock: EpochClock,
        power_source: VotingPowerSource,
        registry: CollectionRegistry,
        policy: AuthorizationPolicy,
    ):
        """Initialize engine with its collaborators."""
        config.validate()
        self.config = config
        self.ledger = ledger
        self.clock = clock
        self.power_source = power_source
        self.registry = registry
        self.policy = policy

    # Queries

    def is_votable(self, collection: str) -> bool:
        """Approved collections and the base-token pseudo-collection are votable."""
        return (
            collection == self.config.base_token_collection
            or self.registry.is_approved(collection)
        )

    def votes(self, collection: str, epoch: Optional[int] = None) -> int:
        """
        Net signed weight of ``collection`` at ``epoch`` (default: current).

        Unvoted collections weigh 0. Projecting to an epoch before the
        collection's last write raises ``StaleEpochError``.
        """
        if epoch is None:
            epoch = self.clock.current_epoch()

        state = self.ledger.get_collection_state(collection)
        if state is None:
            return 0
        return state.value_at(epoch)

    def user_voting_power(self, account: str) -> int:
        return self.power_source.balance_of(account)

    def user_votes_available(self, account: str) -> int:
        """Unallocated power; 0 when the balance dropped below the allocation."""
        available = self.user_voting_power(account) - self.ledger.get_total_allocated(account)
        return max(available, 0)

    def user_votes(self, account: str, collection: str) -> Optional[VoteAllocationRecord]:
        return self.ledger.get_allocation(account, collection)

    def user_collections(self, account: str) -> List[str]:
        return self.ledger.account_collections(account)

    # Mutations

    def cast_vote(
        self,
        account: str,
        collection: str,
        amount: int,
        direction: VoteDirection = VoteDirection.FOR,
    ) -> int:
        """
        Cast ``amount`` votes on ``collection`` in ``direction``.

        The collection's line is re-anchored at the current epoch, then
        ``amount`` is added to its bias and ``amount // decay_horizon_epochs``
        to its slope, both signed by the direction.

        Returns:
            The collection's net weight at the current epoch.
        """
        if not account:
            raise ValidationError("Account must be set", field="account")

        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError(
                "Vote amount must be an integer", field="amount", value=amount, expected="int"
            )

        if amount <= 0:
            raise ValidationError(
                "Vote amount must be positive", field="amount", value=amount, expected="> 0"
            )

        if self.config.max_vote_amount is not None and amount > self.config.max_vote_amount:
            raise ValidationError(
                f"Vote amount exceeds maximum of {self.config.max_vote_amount}",
                field="amount",
                value=amount,
                expected=f"<= {self.config.max_vote_amount}",
            )

        if not isinstance(direction, VoteDirection):
            raise ValidationError("Unknown vote direction", field="direction", value=direction)

        if not self.is_votable(collection):
            raise CollectionNotApprovedError(collection)

        available = self.user_votes_available(account)
        if amount > available:
            raise InsufficientVotesAvailable(account, amount, available)

        epoch = self.clock.current_epoch()
        state = self.ledger.get_or_create_collection_state(collection, epoch)

        sign = direction.sign
        contribution = DecayLine(
            bias=sign * amount,
            slope=sign * (amount // self.config.decay_horizon_epochs),
            last_update_epoch=epoch,
        )

        state.merge(contribution, epoch)
        record = self.ledger.get_or_create_allocation(account, collection)
        record.add(direction, amount, contribution, epoch)
        self.ledger.adjust_total(account, amount)

        new_weight = state.value_at(epoch)
        logger.debug(
            "%s cast %d %s votes on %s at epoch %d; weight now %d",
            account,
            amount,
            direction.value,
            collection,
            epoch,
            new_weight,
        )
        return new_weight

    def revoke_votes(self, account: str, collections: Iterable[str]) -> List[VoteAllocationRecord]:
        """
        Fully revoke ``account``'s votes on each of ``collections``.

        Each record's exact contribution line is subtracted from the
        collection state, undoing the original casts without re-deriving
        anything from the current decayed weight.

        Raises:
            InsufficientVotesToRevoke: if any listed collection holds no
                allocation from ``account``. Nothing is revoked in that case.
        """
        collections = list(dict.fromkeys(collections))

        for collection in collections:
            if self.ledger.get_allocation(account, collection) is None:
                raise InsufficientVotesToRevoke(account, collection)

        return self._revoke(account, collections)

    def revoke_all_user_votes(self, account: str, capability: Capability) -> List[VoteAllocationRecord]:
        """
        Revoke every allocation of ``account``.

        Privileged (``VOTE_MANAGER``). Idempotent: an account without
        allocations is a no-op.
        """
        self.policy.require(capability, Role.VOTE_MANAGER, "revoke all user votes")
        collections = self.ledger.account_collections(account)
        if not collections:
            return []

        logger.info("Revoking all votes of %s on %d collections", account, len(collections))
        return self._revoke(account, collections)

    def _revoke(self, account: str, collections: List[str]) -> List[VoteAllocationRecord]:
        epoch = self.clock.current_epoch()
        revoked = []

        for collection in collections:
            record = self.ledger.get_allocation(account, collection)
            state = self.ledger.get_or_create_collection_state(collection, epoch)
            state.subtract(record.contribution_at(epoch), epoch)
            revoked.append(self.ledger.delete_allocation(account, collection))

            logger.debug(
                "%s revoked %d for / %d against on %s at epoch %d",
                account,
                record.for_amount,
                record.against_amount,
                collection,
                epoch,
            )

        return revoked
