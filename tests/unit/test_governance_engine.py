"""
Unit tests for the vote accounting engine.

This module tests casting, decayed weight projection, capacity checks and
exact revocation.
"""

from unittest.mock import Mock

import pytest

from sweepwars.errors.exceptions import (
    AuthorizationError,
    CollectionNotApprovedError,
    InsufficientVotesAvailable,
    InsufficientVotesToRevoke,
    StaleEpochError,
    ValidationError,
)
from sweepwars.governance.core import BASE_TOKEN_COLLECTION, SweepWarsConfig, VoteDirection
from sweepwars.governance.engine import VoteAccountingEngine
from sweepwars.governance.interfaces import CollectionRegistry, EpochClock, VotingPowerSource
from sweepwars.governance.ledger import VoteLedger


@pytest.fixture
def engine(config, clock, power_source, registry, policy):
    return VoteAccountingEngine(config, VoteLedger(), clock, power_source, registry, policy)


class TestCastVote:
    """Test casting votes."""

    def test_cast_returns_new_weight(self, engine):
        """Test that casting returns the collection's weight at the current epoch."""
        assert engine.cast_vote("0xalice", "0xX", 40) == 40
        assert engine.votes("0xX") == 40

    def test_cast_sets_bias_and_slope(self, engine):
        """Test that a cast adds amount to bias and amount // horizon to slope."""
        engine.cast_vote("0xalice", "0xX", 40)

        state = engine.ledger.get_collection_state("0xX")
        assert state.bias == 40
        assert state.slope == 10
        assert state.last_update_epoch == 10

    def test_linear_decay(self, engine):
        """Test the decay trajectory of a single cast."""
        engine.cast_vote("0xalice", "0xX", 40)

        assert engine.votes("0xX", 12) == 20
        assert engine.votes("0xX", 14) == 0
        assert engine.votes("0xX", 15) == -10

    def test_against_vote_negates(self, engine):
        """Test that AGAINST votes subtract weight."""
        engine.cast_vote("0xalice", "0xX", 40)
        weight = engine.cast_vote("0xbob", "0xX", 60, VoteDirection.AGAINST)

        assert weight == -20
        state = engine.ledger.get_collection_state("0xX")
        assert state.slope == 10 - 15

    def test_small_amount_never_decays(self, engine):
        """Test that amounts below the horizon contribute no slope."""
        engine.cast_vote("0xalice", "0xX", 3)

        assert engine.ledger.get_collection_state("0xX").slope == 0
        assert engine.votes("0xX", 1000) == 3

    def test_cast_reanchors_existing_state(self, engine, clock, epoch_cap):
        """Test that a later cast projects the existing line first."""
        engine.cast_vote("0xalice", "0xX", 40)
        clock.advance(epoch_cap, 2)

        weight = engine.cast_vote("0xbob", "0xX", 20)

        state = engine.ledger.get_collection_state("0xX")
        assert weight == 40
        assert state.bias == 40
        assert state.slope == 15
        assert state.last_update_epoch == 12

    def test_allocation_tracks_principal(self, engine):
        """Test that allocation records keep raw undecayed amounts."""
        engine.cast_vote("0xalice", "0xX", 40)
        engine.cast_vote("0xalice", "0xX", 8, VoteDirection.AGAINST)
        engine.cast_vote("0xalice", "0xY", 12)

        record = engine.user_votes("0xalice", "0xX")
        assert record.for_amount == 40
        assert record.against_amount == 8
        assert engine.ledger.get_total_allocated("0xalice") == 60
        assert engine.user_votes_available("0xalice") == 940
        assert engine.user_collections("0xalice") == ["0xX", "0xY"]

    def test_base_token_is_votable(self, engine):
        """Test that the base-token pseudo-collection accepts votes."""
        assert engine.is_votable(BASE_TOKEN_COLLECTION)
        assert engine.cast_vote("0xalice", BASE_TOKEN_COLLECTION, 10) == 10

    def test_unapproved_collection_rejected(self, engine):
        """Test that votes on unapproved collections are rejected."""
        with pytest.raises(CollectionNotApprovedError) as exc_info:
            engine.cast_vote("0xalice", "0xNOPE", 10)

        assert exc_info.value.collection == "0xNOPE"
        assert engine.ledger.get_collection_state("0xNOPE") is None

    @pytest.mark.parametrize("amount", [0, -5, 1.5, "10", True])
    def test_invalid_amount_rejected(self, engine, amount):
        """Test that non-positive and non-integer amounts are rejected."""
        with pytest.raises(ValidationError):
            engine.cast_vote("0xalice", "0xX", amount)

        assert engine.ledger.get_total_allocated("0xalice") == 0

    def test_empty_account_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.cast_vote("", "0xX", 10)

    def test_invalid_direction_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.cast_vote("0xalice", "0xX", 10, "for")

    def test_insufficient_votes_available(self, engine):
        """Test that casting beyond available power fails without side effects."""
        engine.cast_vote("0xcarol", "0xX", 150)

        with pytest.raises(InsufficientVotesAvailable) as exc_info:
            engine.cast_vote("0xcarol", "0xY", 51)

        assert exc_info.value.requested == 51
        assert exc_info.value.available == 50
        assert engine.ledger.get_collection_state("0xY") is None
        assert engine.ledger.get_total_allocated("0xcarol") == 150

    def test_exact_remaining_power_accepted(self, engine):
        engine.cast_vote("0xcarol", "0xX", 150)
        engine.cast_vote("0xcarol", "0xY", 50)

        assert engine.user_votes_available("0xcarol") == 0

    def test_unknown_account_has_no_power(self, engine):
        with pytest.raises(InsufficientVotesAvailable):
            engine.cast_vote("0xmallory", "0xX", 1)

    def test_max_vote_amount(self, clock, power_source, registry, policy):
        """Test the optional per-cast cap."""
        config = SweepWarsConfig(max_vote_amount=100)
        engine = VoteAccountingEngine(config, VoteLedger(), clock, power_source, registry, policy)

        engine.cast_vote("0xalice", "0xX", 100)
        with pytest.raises(ValidationError):
            engine.cast_vote("0xalice", "0xX", 101)


class TestVoteQueries:
    """Test read-only queries."""

    def test_unvoted_collection_weighs_zero(self, engine):
        assert engine.votes("0xX") == 0
        assert engine.votes("0xNEVER", 500) == 0

    def test_stale_epoch_rejected(self, engine):
        """Test that reading before the last write is rejected."""
        engine.cast_vote("0xalice", "0xX", 40)

        with pytest.raises(StaleEpochError):
            engine.votes("0xX", 9)

    def test_voting_power(self, engine):
        assert engine.user_voting_power("0xalice") == 1000
        assert engine.user_voting_power("0xnobody") == 0

    def test_available_floors_at_zero(self, engine, power_source):
        """Test that available power never goes negative after a balance drop."""
        engine.cast_vote("0xalice", "0xX", 400)
        power_source.set_balance("0xalice", 100)

        assert engine.user_votes_available("0xalice") == 0

    def test_user_votes_none(self, engine):
        assert engine.user_votes("0xalice", "0xX") is None
        assert engine.user_collections("0xalice") == []


class TestRevokeVotes:
    """Test revocation."""

    def test_immediate_revoke_restores_state(self, engine):
        """Test that cast followed by revoke restores bias and slope exactly."""
        engine.cast_vote("0xalice", "0xX", 40)
        engine.revoke_votes("0xalice", ["0xX"])

        state = engine.ledger.get_collection_state("0xX")
        assert state.bias == 0
        assert state.slope == 0
        assert engine.user_votes_available("0xalice") == 1000
        assert engine.user_votes("0xalice", "0xX") is None

    def test_revoke_after_decay(self, engine, clock, epoch_cap):
        """Test that revoking after decay removes the decayed contribution."""
        engine.cast_vote("0xalice", "0xX", 40)
        clock.advance(epoch_cap, 2)

        engine.revoke_votes("0xalice", ["0xX"])

        state = engine.ledger.get_collection_state("0xX")
        assert state.bias == 0
        assert state.slope == 0
        assert state.last_update_epoch == 12
        assert engine.votes("0xX", 20) == 0

    def test_revoke_leaves_other_voters(self, engine, clock, epoch_cap):
        """Test that one voter's revocation leaves the others' trajectories intact."""
        engine.cast_vote("0xalice", "0xX", 40)
        clock.advance(epoch_cap)
        engine.cast_vote("0xbob", "0xX", 20)
        clock.advance(epoch_cap)

        engine.revoke_votes("0xalice", ["0xX"])

        # bob alone: 20 cast at epoch 11 with slope 5
        assert engine.votes("0xX") == 15
        assert engine.votes("0xX", 15) == 0

    def test_revoke_mixed_directions(self, engine):
        engine.cast_vote("0xalice", "0xX", 40)
        engine.cast_vote("0xalice", "0xX", 8, VoteDirection.AGAINST)
        engine.cast_vote("0xbob", "0xX", 12)

        revoked = engine.revoke_votes("0xalice", ["0xX"])

        assert revoked[0].for_amount == 40
        assert revoked[0].against_amount == 8
        state = engine.ledger.get_collection_state("0xX")
        assert state.bias == 12
        assert state.slope == 3

    def test_revoke_without_allocation(self, engine):
        """Test that revoking votes never cast is rejected."""
        with pytest.raises(InsufficientVotesToRevoke) as exc_info:
            engine.revoke_votes("0xalice", ["0xX"])

        assert exc_info.value.collection == "0xX"

    def test_revoke_is_all_or_nothing(self, engine):
        """Test that one missing allocation aborts the whole revocation."""
        engine.cast_vote("0xalice", "0xX", 40)

        with pytest.raises(InsufficientVotesToRevoke):
            engine.revoke_votes("0xalice", ["0xX", "0xY"])

        assert engine.votes("0xX") == 40
        assert engine.user_votes("0xalice", "0xX").for_amount == 40

    def test_revoke_deduplicates(self, engine):
        engine.cast_vote("0xalice", "0xX", 40)
        revoked = engine.revoke_votes("0xalice", ["0xX", "0xX"])

        assert len(revoked) == 1
        assert engine.votes("0xX") == 0

    def test_second_revoke_rejected(self, engine):
        engine.cast_vote("0xalice", "0xX", 40)
        engine.revoke_votes("0xalice", ["0xX"])

        with pytest.raises(InsufficientVotesToRevoke):
            engine.revoke_votes("0xalice", ["0xX"])

    def test_revoke_on_unapproved_collection(self, engine, registry, governor_cap):
        """Test that votes stay revocable after the collection is unapproved."""
        engine.cast_vote("0xalice", "0xX", 40)
        registry.unapprove("0xX", governor_cap)

        engine.revoke_votes("0xalice", ["0xX"])
        assert engine.votes("0xX") == 0


class TestRevokeAllUserVotes:
    """Test privileged bulk revocation."""

    def test_revoke_all(self, engine, vote_manager_cap):
        """Test revoking every allocation of an account."""
        engine.cast_vote("0xalice", "0xX", 40)
        engine.cast_vote("0xalice", "0xY", 20)
        engine.cast_vote("0xbob", "0xY", 8)

        revoked = engine.revoke_all_user_votes("0xalice", vote_manager_cap)

        assert [record.collection for record in revoked] == ["0xX", "0xY"]
        assert engine.votes("0xX") == 0
        assert engine.votes("0xY") == 8
        assert engine.ledger.get_total_allocated("0xalice") == 0

    def test_revoke_all_is_idempotent(self, engine, vote_manager_cap):
        engine.cast_vote("0xalice", "0xX", 40)
        engine.revoke_all_user_votes("0xalice", vote_manager_cap)

        assert engine.revoke_all_user_votes("0xalice", vote_manager_cap) == []

    def test_revoke_all_requires_vote_manager(self, engine, governor_cap):
        """Test that bulk revocation needs the VOTE_MANAGER role."""
        engine.cast_vote("0xalice", "0xX", 40)

        with pytest.raises(AuthorizationError):
            engine.revoke_all_user_votes("0xalice", governor_cap)

        with pytest.raises(AuthorizationError):
            engine.revoke_all_user_votes("0xalice", None)

        assert engine.votes("0xX") == 40


class TestEngineWithMockedCollaborators:
    """Test the engine against mocked collaborator interfaces."""

    @pytest.fixture
    def mocked(self, config, policy):
        clock = Mock(spec=EpochClock)
        clock.current_epoch.return_value = 3
        power_source = Mock(spec=VotingPowerSource)
        power_source.balance_of.return_value = 100
        registry = Mock(spec=CollectionRegistry)
        registry.is_approved.side_effect = lambda collection: collection == "0xX"
        engine = VoteAccountingEngine(config, VoteLedger(), clock, power_source, registry, policy)
        return engine, clock, power_source, registry

    def test_reads_epoch_and_power_from_collaborators(self, mocked):
        """Test that the engine consults the clock, power source and registry."""
        engine, clock, power_source, registry = mocked

        engine.cast_vote("0xalice", "0xX", 40)

        power_source.balance_of.assert_called_with("0xalice")
        registry.is_approved.assert_called_with("0xX")
        assert engine.ledger.get_collection_state("0xX").last_update_epoch == 3

        clock.current_epoch.return_value = 5
        assert engine.votes("0xX") == 20

    def test_power_change_seen_immediately(self, mocked):
        engine, _, power_source, _ = mocked
        engine.cast_vote("0xalice", "0xX", 40)

        power_source.balance_of.return_value = 30

        assert engine.user_votes_available("0xalice") == 0
        with pytest.raises(InsufficientVotesAvailable):
            engine.cast_vote("0xalice", "0xX", 1)
