"""
Gauge-weight vote system for SweepWars.

This module provides the decaying vote ledger and the periodic top-K
reward snapshot:
- Bias/slope linear vote decay with O(1) projection
- For/against votes netted per collection
- Exact, idempotent revocation
- Deterministic top-K selection with dust-preserving proportional shares
- Capability-based authorization for privileged calls
- Hash-chained audit trail and metrics
"""

from .core import (
    BASE_TOKEN_COLLECTION,
    CollectionVoteState,
    DecayLine,
    SweepWarsConfig,
    VoteAllocationRecord,
    VoteDirection,
)
from .engine import VoteAccountingEngine
from .gauge import GaugeWeightVote
from .interfaces import (
    CollectionRegistry,
    EpochClock,
    InMemoryCollectionRegistry,
    InMemoryVotingPowerSource,
    ManualEpochClock,
    VotingPowerSource,
)
from .ledger import VoteLedger
from .observability import (
    AuditTrail,
    EventType,
    GovernanceEvent,
    GovernanceEvents,
    SweepMetrics,
)
from .security import AuthorizationPolicy, Capability, CapabilityIssuer, Role
from .snapshot import SnapshotEngine, SnapshotResult, select_top_weights, split_rewards
from .treasury import (
    SweepAuthorization,
    SweepInstruction,
    SweepRoute,
    SweepTreasury,
    TreasuryAuthorization,
)

__all__ = [
    # Core
    "BASE_TOKEN_COLLECTION",
    "CollectionVoteState",
    "DecayLine",
    "SweepWarsConfig",
    "VoteAllocationRecord",
    "VoteDirection",

    # Engines
    "VoteLedger",
    "VoteAccountingEngine",
    "SnapshotEngine",
    "SnapshotResult",
    "select_top_weights",
    "split_rewards",
    "GaugeWeightVote",

    # Collaborators
    "EpochClock",
    "VotingPowerSource",
    "CollectionRegistry",
    "ManualEpochClock",
    "InMemoryVotingPowerSource",
    "InMemoryCollectionRegistry",

    # Security
    "Role",
    "Capability",
    "CapabilityIssuer",
    "AuthorizationPolicy",

    # Treasury
    "TreasuryAuthorization",
    "SweepTreasury",
    "SweepAuthorization",
    "SweepInstruction",
    "SweepRoute",

    # Observability
    "EventType",
    "GovernanceEvent",
    "GovernanceEvents",
    "AuditTrail",
    "SweepMetrics",
]
