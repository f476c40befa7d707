"""
Snapshot engine: top-K selection and proportional reward shares.

At an epoch boundary the candidate collections are ranked by net vote
weight, the best ``sample_size`` positive ones are selected and a reward
pool is split between them in proportion to their weight. The integer
remainder of the split ("dust") is never allocated.
"""

import logging

logger = logging.getLogger(__name__)
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..errors.exceptions import ConfigurationError, ValidationError
from .core import SweepWarsConfig
from .engine import VoteAccountingEngine
from .interfaces import CollectionRegistry
from .security import AuthorizationPolicy, Capability, Role


@dataclass(frozen=True)
class SnapshotResult:
    """Immutable outcome of one epoch-end snapshot."""

    epoch: int
    reward_pool: int
    collections: Tuple[str, ...] = field(default_factory=tuple)
    weights: Tuple[int, ...] = field(default_factory=tuple)
    amounts: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def total_weight(self) -> int:
        return sum(self.weights)

    @property
    def allocated(self) -> int:
        return sum(self.amounts)

    @property
    def dust(self) -> int:
        """Reward left unallocated by integer division."""
        return self.reward_pool - self.allocated

    def as_tuple(self) -> Tuple[List[str], List[int]]:
        """The ``(collections, amounts)`` pair handed to treasury authorization."""
        return list(self.collections), list(self.amounts)

    def share_of(self, collection: str) -> int:
        """Amount allocated to ``collection``; 0 when not selected."""
        for selected, amount in zip(self.collections, self.amounts):
            if selected == collection:
                return amount
        return 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary."""
        return {
            "epoch": self.epoch,
            "reward_pool": self.reward_pool,
            "collections": list(self.collections),
            "weights": list(self.weights),
            "amounts": list(self.amounts),
            "allocated": self.allocated,
            "dust": self.dust,
        }


def select_top_weights(candidates: List[Tuple[str, int]], sample_size: int) -> List[Tuple[str, int]]:
    """
    Pick up to ``sample_size`` positive-weight candidates, heaviest first.

    Python's sort is stable, so among equal weights the earlier candidate
    keeps precedence.
    """
    competitive = [(collection, weight) for collection, weight in candidates if weight > 0]
    competitive.sort(key=lambda item: item[1], reverse=True)
    return competitive[:sample_size]


def split_rewards(reward_pool: int, weights: List[int]) -> List[int]:
    """Split ``reward_pool`` proportionally to ``weights``, flooring each share."""
    total = sum(weights)
    if total <= 0:
        return [0 for _ in weights]
    return [reward_pool * weight // total for weight in weights]


class SnapshotEngine:
    """Selects the rewarded collections for an epoch."""

    def __init__(
        self,
        config: SweepWarsConfig,
        engine: VoteAccountingEngine,
        registry: CollectionRegistry,
        policy: AuthorizationPolicy,
    ):
        """Initialize snapshot engine."""
        self.config = config
        self.engine = engine
        self.registry = registry
        self.policy = policy

    @property
    def sample_size(self) -> int:
        return self.config.sample_size

    def set_sample_size(self, sample_size: int, capability: Capability) -> int:
        """Change the number of collections selected per snapshot (``GOVERNOR``)."""
        self.policy.require(capability, Role.GOVERNOR, "set sample size")

        if not 1 <= sample_size <= self.config.max_sample_size:
            raise ConfigurationError(
                f"Sample size must be between 1 and {self.config.max_sample_size}",
                config_key="sample_size",
                config_value=sample_size,
            )

        previous = self.config.sample_size
        self.config.sample_size = sample_size
        logger.info("Sample size changed from %d to %d", previous, sample_size)
        return previous

    def candidates(self) -> List[str]:
        """Base-token pseudo-collection first, then approved collections in registration order."""
        base = self.config.base_token_collection
        ordered = [base]
        ordered.extend(c for c in self.registry.approved_collections() if c != base)
        return ordered

    def compute(self, reward_pool: int, epoch: int) -> SnapshotResult:
        """Pure top-K selection and split; no authorization."""
        if isinstance(reward_pool, bool) or not isinstance(reward_pool, int) or reward_pool < 0:
            raise ValidationError(
                "Reward pool must be a non-negative integer",
                field="reward_pool",
                value=reward_pool,
            )

        if isinstance(epoch, bool) or not isinstance(epoch, int) or epoch < 0:
            raise ValidationError("Epoch must be a non-negative integer", field="epoch", value=epoch)

        weighted = [
            (collection, self.engine.votes(collection, epoch))
            for collection in self.candidates()
        ]
        selected = select_top_weights(weighted, self.config.sample_size)

        collections = tuple(collection for collection, _ in selected)
        weights = tuple(weight for _, weight in selected)
        amounts = tuple(split_rewards(reward_pool, list(weights)))

        return SnapshotResult(
            epoch=epoch,
            reward_pool=reward_pool,
            collections=collections,
            weights=weights,
            amounts=amounts,
        )

    def snapshot(
        self,
        reward_pool: int,
        epoch: Optional[int],
        capability: Capability,
    ) -> SnapshotResult:
        """
        Select the top collections at ``epoch`` and split ``reward_pool``.

        Privileged (``TREASURY_MANAGER``). ``epoch`` defaults to the current
        epoch. The ledger is not modified.
        """
        self.policy.require(capability, Role.TREASURY_MANAGER, "snapshot")

        if epoch is None:
            epoch = self.engine.clock.current_epoch()

        result = self.compute(reward_pool, epoch)
        logger.info(
            "Snapshot at epoch %d selected %d collections, allocated %d of %d (dust %d)",
            epoch,
            len(result.collections),
            result.allocated,
            reward_pool,
            result.dust,
        )
        return result
