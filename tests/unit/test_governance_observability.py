"""
Unit tests for gauge-vote observability.

This module tests governance events, the hash-chained audit trail,
metrics and event listeners.
"""

import pytest

from sweepwars.governance.observability import (
    AuditTrail,
    EventType,
    GovernanceEvent,
    GovernanceEvents,
    SweepMetrics,
)


class TestGovernanceEvent:
    """Test GovernanceEvent."""

    def test_event_creation(self):
        """Test creating an event computes its hash."""
        event = GovernanceEvent(
            event_id="vote_cast_0",
            event_type=EventType.VOTE_CAST,
            epoch=10,
            account="0xalice",
            collections=["0xX"],
            metadata={"amount": 40},
        )

        assert event.timestamp > 0
        assert event.event_hash is not None
        assert len(event.event_hash) == 64
        assert event.previous_event_hash is None

    def test_hash_covers_metadata(self):
        first = GovernanceEvent("e", EventType.VOTE_CAST, timestamp=1.0, metadata={"amount": 1})
        second = GovernanceEvent("e", EventType.VOTE_CAST, timestamp=1.0, metadata={"amount": 2})

        assert first.event_hash != second.event_hash

    def test_to_dict(self):
        event = GovernanceEvent("e", EventType.SNAPSHOT_TAKEN, epoch=3)
        data = event.to_dict()

        assert data["event_type"] == "snapshot_taken"
        assert data["epoch"] == 3
        assert data["event_hash"] == event.event_hash


class TestAuditTrail:
    """Test AuditTrail."""

    def _event(self, index, **kwargs):
        return GovernanceEvent(f"event_{index}", EventType.VOTE_CAST, **kwargs)

    def test_chain_links(self):
        """Test that each event links to its predecessor."""
        trail = AuditTrail()
        first = self._event(0)
        second = self._event(1)

        trail.add_event(first)
        trail.add_event(second)

        assert first.previous_event_hash is None
        assert second.previous_event_hash == first.event_hash
        assert trail.verify_integrity()

    def test_tampering_detected(self):
        """Test that modifying a recorded event breaks integrity."""
        trail = AuditTrail()
        trail.add_event(self._event(0, metadata={"amount": 40}))
        trail.add_event(self._event(1))

        trail.events[0].metadata["amount"] = 4000

        assert not trail.verify_integrity()

    def test_broken_link_detected(self):
        trail = AuditTrail()
        trail.add_event(self._event(0))
        trail.add_event(self._event(1))

        trail.events[1].previous_event_hash = "00" * 32
        trail.events[1].event_hash = trail.events[1]._calculate_hash()

        assert not trail.verify_integrity()

    def test_indices(self):
        """Test lookups by id, account, collection, epoch and type."""
        trail = AuditTrail()
        trail.add_event(self._event(0, account="0xalice", collections=["0xX"], epoch=10))
        trail.add_event(self._event(1, account="0xbob", collections=["0xX", "0xY"], epoch=11))
        trail.add_event(GovernanceEvent("snap", EventType.SNAPSHOT_TAKEN, epoch=11))

        assert trail.get_event("event_1").account == "0xbob"
        assert trail.get_event("missing") is None
        assert len(trail.get_account_events("0xalice")) == 1
        assert len(trail.get_collection_events("0xX")) == 2
        assert len(trail.get_epoch_events(11)) == 2
        assert trail.get_epoch_events(99) == []
        assert len(trail.get_events_by_type(EventType.SNAPSHOT_TAKEN)) == 1

    def test_summary(self):
        trail = AuditTrail()
        trail.add_event(self._event(0, account="0xalice", collections=["0xX"]))
        trail.add_event(self._event(1, account="0xbob", collections=["0xY"]))

        summary = trail.get_audit_summary()

        assert summary["total_events"] == 2
        assert summary["event_counts"] == {"vote_cast": 2}
        assert summary["unique_accounts"] == 2
        assert summary["unique_collections"] == 2
        assert summary["integrity_verified"] is True


class TestSweepMetrics:
    """Test SweepMetrics."""

    def test_record(self):
        """Test that counters follow recorded events."""
        metrics = SweepMetrics()

        metrics.record(GovernanceEvent("a", EventType.VOTE_CAST))
        metrics.record(GovernanceEvent("b", EventType.VOTES_REVOKED, collections=["0xX", "0xY"]))
        metrics.record(GovernanceEvent("c", EventType.ALL_VOTES_REVOKED, collections=["0xZ"]))
        metrics.record(
            GovernanceEvent(
                "d", EventType.SNAPSHOT_TAKEN, metadata={"allocated": 99, "dust": 1}
            )
        )
        metrics.record(GovernanceEvent("e", EventType.SWEEP_AUTHORIZED))

        assert metrics.votes_cast == 1
        assert metrics.votes_revoked == 3
        assert metrics.bulk_revocations == 1
        assert metrics.snapshots_taken == 1
        assert metrics.total_rewards_allocated == 99
        assert metrics.total_dust == 1
        assert metrics.sweeps_authorized == 1

    def test_to_dict(self):
        data = SweepMetrics().to_dict()
        assert data["votes_cast"] == 0
        assert "last_updated" in data


class TestGovernanceEvents:
    """Test the GovernanceEvents hub."""

    def test_emit_event(self):
        """Test emitting events into the trail and metrics."""
        events = GovernanceEvents()

        first = events.emit_event(EventType.VOTE_CAST, epoch=10, account="0xalice")
        second = events.emit_event(EventType.VOTE_CAST, epoch=11, account="0xbob")

        assert first.event_id == "vote_cast_0"
        assert second.event_id == "vote_cast_1"
        assert second.previous_event_hash == first.event_hash
        assert events.get_metrics().votes_cast == 2
        assert events.verify_audit_integrity()

    def test_listeners(self):
        """Test that listeners receive events of their type only."""
        events = GovernanceEvents()
        received = []
        events.add_event_listener(EventType.SNAPSHOT_TAKEN, received.append)

        events.emit_event(EventType.VOTE_CAST)
        snapshot = events.emit_event(EventType.SNAPSHOT_TAKEN)

        assert received == [snapshot]

    def test_failing_listener_does_not_break_emit(self):
        events = GovernanceEvents()
        received = []

        def failing(event):
            raise RuntimeError("listener failure")

        events.add_event_listener(EventType.VOTE_CAST, failing)
        events.add_event_listener(EventType.VOTE_CAST, received.append)

        event = events.emit_event(EventType.VOTE_CAST)

        assert received == [event]
        assert len(events.get_audit_trail().events) == 1

    def test_export_audit_trail(self):
        events = GovernanceEvents()
        events.emit_event(EventType.VOTE_CAST, epoch=10)
        events.emit_event(EventType.EPOCH_ADVANCED, epoch=11)

        assert len(events.export_audit_trail()) == 2
        exported = events.export_audit_trail(epoch=11)
        assert [e["event_type"] for e in exported] == ["epoch_advanced"]
