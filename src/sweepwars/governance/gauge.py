"""
Gauge weight vote: the public surface of the SweepWars core.

Wires the accounting engine, the snapshot engine and the event hub
together and records every accepted call in the audit trail.
"""

import logging

logger = logging.getLogger(__name__)
from typing import Any, Dict, Iterable, List, Optional

from .core import CollectionVoteState, SweepWarsConfig, VoteAllocationRecord, VoteDirection
from .engine import VoteAccountingEngine
from .interfaces import (
    CollectionRegistry,
    EpochClock,
    InMemoryVotingPowerSource,
    VotingPowerSource,
)
from .ledger import VoteLedger
from .observability import EventType, GovernanceEvents
from .security import AuthorizationPolicy, Capability
from .snapshot import SnapshotEngine, SnapshotResult


class GaugeWeightVote:
    """Decaying gauge vote with periodic top-K reward snapshots."""

    def __init__(
        self,
        config: SweepWarsConfig,
        clock: EpochClock,
        power_source: VotingPowerSource,
        registry: CollectionRegistry,
        policy: AuthorizationPolicy,
        events: Optional[GovernanceEvents] = None,
        ledger: Optional[VoteLedger] = None,
    ):
        """Initialize gauge vote and its engines."""
        config.validate()
        self.config = config
        self.clock = clock
        self.power_source = power_source
        self.registry = registry
        self.policy = policy
        self.events = events or GovernanceEvents()
        self.ledger = ledger or VoteLedger()

        self.engine = VoteAccountingEngine(
            config, self.ledger, clock, power_source, registry, policy
        )
        self.snapshot_engine = SnapshotEngine(config, self.engine, registry, policy)

    # Voting

    def cast_vote(
        self,
        account: str,
        collection: str,
        amount: int,
        direction: VoteDirection = VoteDirection.FOR,
    ) -> int:
        """Cast votes and return the collection's new weight."""
        new_weight = self.engine.cast_vote(account, collection, amount, direction)
        self.events.emit_event(
            EventType.VOTE_CAST,
            epoch=self.clock.current_epoch(),
            account=account,
            collections=[collection],
            metadata={
                "amount": amount,
                "direction": direction.value,
                "new_weight": new_weight,
            },
        )
        return new_weight

    def revoke_votes(self, account: str, collections: Iterable[str]) -> List[VoteAllocationRecord]:
        """Revoke ``account``'s votes on ``collections``."""
        revoked = self.engine.revoke_votes(account, collections)
        if revoked:
            self._emit_revocation(EventType.VOTES_REVOKED, account, revoked)
        return revoked

    def revoke_all_user_votes(self, account: str, capability: Capability) -> List[VoteAllocationRecord]:
        """Revoke every vote of ``account`` (``VOTE_MANAGER``)."""
        revoked = self.engine.revoke_all_user_votes(account, capability)
        if revoked:
            self._emit_revocation(
                EventType.ALL_VOTES_REVOKED,
                account,
                revoked,
                {"revoked_by": capability.holder},
            )
        return revoked

    def _emit_revocation(
        self,
        event_type: EventType,
        account: str,
        revoked: List[VoteAllocationRecord],
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        metadata = {
            "for_amount": sum(r.for_amount for r in revoked),
            "against_amount": sum(r.against_amount for r in revoked),
        }
        metadata.update(extra or {})
        self.events.emit_event(
            event_type,
            epoch=self.clock.current_epoch(),
            account=account,
            collections=[r.collection for r in revoked],
            metadata=metadata,
        )

    def watch_power_source(self, power_source: InMemoryVotingPowerSource, capability: Capability) -> None:
        """Revoke an account's votes whenever its balance drops below its allocation."""

        def on_reduction(account: str, old_balance: int, new_balance: int) -> None:
            if new_balance < self.ledger.get_total_allocated(account):
                self.revoke_all_user_votes(account, capability)

        power_source.add_reduction_listener(on_reduction)

    # Reads

    def votes(self, collection: str, epoch: Optional[int] = None) -> int:
        return self.engine.votes(collection, epoch)

    def user_voting_power(self, account: str) -> int:
        return self.engine.user_voting_power(account)

    def user_votes_available(self, account: str) -> int:
        return self.engine.user_votes_available(account)

    def user_votes(self, account: str, collection: str) -> Optional[VoteAllocationRecord]:
        return self.engine.user_votes(account, collection)

    def user_collections(self, account: str) -> List[str]:
        return self.engine.user_collections(account)

    def collection_state(self, collection: str) -> Optional[CollectionVoteState]:
        return self.ledger.get_collection_state(collection)

    def vote_options(self) -> List[str]:
        """Everything that can currently receive votes."""
        return self.snapshot_engine.candidates()

    # Snapshots

    @property
    def sample_size(self) -> int:
        return self.config.sample_size

    def set_sample_size(self, sample_size: int, capability: Capability) -> None:
        """Change the snapshot sample size (``GOVERNOR``)."""
        previous = self.snapshot_engine.set_sample_size(sample_size, capability)
        self.events.emit_event(
            EventType.SAMPLE_SIZE_UPDATED,
            epoch=self.clock.current_epoch(),
            account=capability.holder,
            metadata={"previous": previous, "sample_size": sample_size},
        )

    def snapshot(
        self,
        reward_pool: int,
        epoch: Optional[int] = None,
        capability: Optional[Capability] = None,
    ) -> SnapshotResult:
        """Select rewarded collections and split ``reward_pool`` (``TREASURY_MANAGER``)."""
        result = self.snapshot_engine.snapshot(reward_pool, epoch, capability)
        self.events.emit_event(
            EventType.SNAPSHOT_TAKEN,
            epoch=result.epoch,
            account=capability.holder,
            collections=list(result.collections),
            metadata=result.to_dict(),
        )
        return result

    # Diagnostics

    def verify_invariants(self) -> List[str]:
        return self.ledger.verify_invariants(self.power_source)

    def get_statistics(self) -> Dict[str, Any]:
        """Get combined ledger, metrics and authorization statistics."""
        return {
            "epoch": self.clock.current_epoch(),
            "sample_size": self.config.sample_size,
            "ledger": self.ledger.get_statistics(),
            "metrics": self.events.get_metrics().to_dict(),
            "authorization": self.policy.get_statistics(),
        }
