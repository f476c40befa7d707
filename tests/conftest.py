"""
Shared fixtures for SweepWars tests.

Voting accounts: 0xalice (1000 power), 0xbob (500), 0xcarol (200).
Approved collections, in registration order: 0xX, 0xY, 0xZ.
The clock starts at epoch 10 and the decay horizon is 4 epochs.
"""

import pytest

from sweepwars.governance import (
    AuthorizationPolicy,
    CapabilityIssuer,
    GaugeWeightVote,
    GovernanceEvents,
    InMemoryCollectionRegistry,
    InMemoryVotingPowerSource,
    ManualEpochClock,
    Role,
    SweepWarsConfig,
)


@pytest.fixture
def issuer():
    """Capability issuer with a fresh key."""
    return CapabilityIssuer()


@pytest.fixture
def policy(issuer):
    """Policy trusting the issuer."""
    return AuthorizationPolicy.for_issuer(issuer)


@pytest.fixture
def governor_cap(issuer):
    return issuer.issue(Role.GOVERNOR, "0xgovernor")


@pytest.fixture
def treasury_cap(issuer):
    return issuer.issue(Role.TREASURY_MANAGER, "0xtreasury")


@pytest.fixture
def vote_manager_cap(issuer):
    return issuer.issue(Role.VOTE_MANAGER, "0xstaking")


@pytest.fixture
def epoch_cap(issuer):
    return issuer.issue(Role.EPOCH_TRIGGER, "0xepochmanager")


@pytest.fixture
def events():
    return GovernanceEvents()


@pytest.fixture
def clock(policy, events):
    return ManualEpochClock(policy, start_epoch=10, events=events)


@pytest.fixture
def power_source():
    return InMemoryVotingPowerSource({"0xalice": 1000, "0xbob": 500, "0xcarol": 200})


@pytest.fixture
def registry(policy, events, governor_cap):
    registry = InMemoryCollectionRegistry(policy, events=events)
    for collection in ("0xX", "0xY", "0xZ"):
        registry.approve(collection, governor_cap)
    return registry


@pytest.fixture
def config():
    return SweepWarsConfig(decay_horizon_epochs=4, sample_size=2)


@pytest.fixture
def gauge(config, clock, power_source, registry, policy, events):
    """Fully wired gauge vote."""
    return GaugeWeightVote(config, clock, power_source, registry, policy, events=events)
