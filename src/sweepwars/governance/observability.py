"""
Observability and audit trail for the gauge-vote system.

Every state-changing call and every snapshot is recorded as a hash-chained
event, indexed by account, collection and epoch.
"""

import logging

logger = logging.getLogger(__name__)
import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..crypto.hashing import SHA256Hasher


class EventType(Enum):
    """Types of gauge-vote events."""

    VOTE_CAST = "vote_cast"
    VOTES_REVOKED = "votes_revoked"
    ALL_VOTES_REVOKED = "all_votes_revoked"

    SNAPSHOT_TAKEN = "snapshot_taken"
    SAMPLE_SIZE_UPDATED = "sample_size_updated"

    COLLECTION_APPROVED = "collection_approved"
    COLLECTION_UNAPPROVED = "collection_unapproved"

    EPOCH_ADVANCED = "epoch_advanced"
    SWEEP_AUTHORIZED = "sweep_authorized"


@dataclass
class GovernanceEvent:
    """A gauge-vote event for the audit trail."""

    event_id: str
    event_type: EventType
    timestamp: float = field(default_factory=time.time)
    epoch: Optional[int] = None

    # Event data
    account: Optional[str] = None
    collections: List[str] = field(default_factory=list)

    # Event metadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    # Cryptographic integrity
    event_hash: Optional[str] = None
    previous_event_hash: Optional[str] = None

    def __post_init__(self):
        """Calculate event hash after initialization."""
        self.event_hash = self._calculate_hash()

    def _calculate_hash(self) -> str:
        """Calculate hash of this event."""
        event_data = {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
            "epoch": self.epoch,
            "account": self.account,
            "collections": self.collections,
            "metadata": self.metadata,
            "previous_event_hash": self.previous_event_hash,
        }

        event_json = json.dumps(event_data, sort_keys=True, default=str)
        return SHA256Hasher.hash(event_json).to_hex()

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "timestamp": self.timestamp,
            "epoch": self.epoch,
            "account": self.account,
            "collections": list(self.collections),
            "metadata": self.metadata,
            "event_hash": self.event_hash,
            "previous_event_hash": self.previous_event_hash,
        }


class AuditTrail:
    """Maintains an append-only, hash-chained trail of events."""

    def __init__(self):
        """Initialize audit trail."""
        self.events: List[GovernanceEvent] = []
        self.event_index: Dict[str, int] = {}  # event_id -> index
        self.account_events: Dict[str, List[GovernanceEvent]] = {}
        self.collection_events: Dict[str, List[GovernanceEvent]] = {}
        self.epoch_events: Dict[int, List[GovernanceEvent]] = {}

    def add_event(self, event: GovernanceEvent) -> None:
        """Add an event to the audit trail."""
        if self.events:
            event.previous_event_hash = self.events[-1].event_hash

        # Rehash now that the chain link is set
        event.event_hash = event._calculate_hash()

        self.events.append(event)
        self.event_index[event.event_id] = len(self.events) - 1

        if event.account:
            self.account_events.setdefault(event.account, []).append(event)

        for collection in event.collections:
            self.collection_events.setdefault(collection, []).append(event)

        if event.epoch is not None:
            self.epoch_events.setdefault(event.epoch, []).append(event)

    def get_event(self, event_id: str) -> Optional[GovernanceEvent]:
        """Get an event by ID."""
        if event_id in self.event_index:
            return self.events[self.event_index[event_id]]
        return None

    def get_account_events(self, account: str) -> List[GovernanceEvent]:
        return self.account_events.get(account, [])

    def get_collection_events(self, collection: str) -> List[GovernanceEvent]:
        return self.collection_events.get(collection, [])

    def get_epoch_events(self, epoch: int) -> List[GovernanceEvent]:
        return self.epoch_events.get(epoch, [])

    def get_events_by_type(self, event_type: EventType) -> List[GovernanceEvent]:
        return [event for event in self.events if event.event_type is event_type]

    def verify_integrity(self) -> bool:
        """Verify the hash chain of the audit trail."""
        for i, event in enumerate(self.events):
            if event.event_hash != event._calculate_hash():
                return False

            if i > 0 and event.previous_event_hash != self.events[i - 1].event_hash:
                return False

        return True

    def get_audit_summary(self) -> Dict[str, Any]:
        """Get audit trail summary."""
        event_counts: Dict[str, int] = {}
        for event in self.events:
            event_type = event.event_type.value
            event_counts[event_type] = event_counts.get(event_type, 0) + 1

        return {
            "total_events": len(self.events),
            "event_counts": event_counts,
            "unique_accounts": len(self.account_events),
            "unique_collections": len(self.collection_events),
            "integrity_verified": self.verify_integrity(),
        }


@dataclass
class SweepMetrics:
    """Gauge-vote counters."""

    votes_cast: int = 0
    votes_revoked: int = 0
    bulk_revocations: int = 0
    snapshots_taken: int = 0
    sweeps_authorized: int = 0
    total_rewards_allocated: int = 0
    total_dust: int = 0
    last_updated: float = field(default_factory=time.time)

    def record(self, event: GovernanceEvent) -> None:
        """Update counters from an event."""
        if event.event_type is EventType.VOTE_CAST:
            self.votes_cast += 1
        elif event.event_type is EventType.VOTES_REVOKED:
            self.votes_revoked += len(event.collections)
        elif event.event_type is EventType.ALL_VOTES_REVOKED:
            self.bulk_revocations += 1
            self.votes_revoked += len(event.collections)
        elif event.event_type is EventType.SNAPSHOT_TAKEN:
            self.snapshots_taken += 1
            self.total_rewards_allocated += event.metadata.get("allocated", 0)
            self.total_dust += event.metadata.get("dust", 0)
        elif event.event_type is EventType.SWEEP_AUTHORIZED:
            self.sweeps_authorized += 1
        self.last_updated = time.time()

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "votes_cast": self.votes_cast,
            "votes_revoked": self.votes_revoked,
            "bulk_revocations": self.bulk_revocations,
            "snapshots_taken": self.snapshots_taken,
            "sweeps_authorized": self.sweeps_authorized,
            "total_rewards_allocated": self.total_rewards_allocated,
            "total_dust": self.total_dust,
            "last_updated": self.last_updated,
        }


class GovernanceEvents:
    """Event hub: audit trail, metrics and listeners."""

    def __init__(self):
        """Initialize governance events system."""
        self.audit_trail = AuditTrail()
        self.metrics = SweepMetrics()
        self.event_listeners: Dict[EventType, List[Callable[[GovernanceEvent], None]]] = {}

    def add_event_listener(
        self, event_type: EventType, listener: Callable[[GovernanceEvent], None]
    ) -> None:
        """Add an event listener."""
        self.event_listeners.setdefault(event_type, []).append(listener)

    def emit_event(
        self,
        event_type: EventType,
        epoch: Optional[int] = None,
        account: Optional[str] = None,
        collections: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> GovernanceEvent:
        """Emit a governance event."""
        event = GovernanceEvent(
            event_id=f"{event_type.value}_{len(self.audit_trail.events)}",
            event_type=event_type,
            epoch=epoch,
            account=account,
            collections=list(collections or []),
            metadata=metadata or {},
        )

        self.audit_trail.add_event(event)
        self.metrics.record(event)

        for listener in self.event_listeners.get(event_type, []):
            try:
                listener(event)
            except Exception as e:
                logger.warning("Error in %s event listener: %s", event_type.value, e)

        return event

    def get_audit_trail(self) -> AuditTrail:
        return self.audit_trail

    def get_metrics(self) -> SweepMetrics:
        return self.metrics

    def export_audit_trail(self, epoch: Optional[int] = None) -> List[Dict[str, Any]]:
        """Export the audit trail, optionally for one epoch."""
        if epoch is None:
            events = self.audit_trail.events
        else:
            events = self.audit_trail.get_epoch_events(epoch)
        return [event.to_dict() for event in events]

    def verify_audit_integrity(self) -> bool:
        return self.audit_trail.verify_integrity()
