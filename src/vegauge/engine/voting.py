"""Weight allocator - governance-power voting over pool emission shares.

Key Concepts:
- A vote spends the voter's full current power across the chosen pools:
  allocation_i = weights_i * power / sum(weights)
- Voting again first resets every prior allocation (no incremental votes)
- Pool weight = unreleased reserved weight + sum of live votes
- rebalance: rate_p = total_emission_rate * weight_p / total_weight
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..errors import InvariantViolation
from ..ledger.voting_power import VotingPowerSource
from .accumulator import AccumulatorEngine
from .registry import PoolRegistry
from .state import EngineState

logger = logging.getLogger(__name__)


class WeightAllocator:
    """Records votes and converts pool weights into emission rates."""

    def __init__(
        self,
        state: EngineState,
        registry: PoolRegistry,
        accumulator: AccumulatorEngine,
        voting_power: VotingPowerSource,
        emit: Callable[[str, Optional[int], Optional[str], int], None],
    ):
        self.state = state
        self.registry = registry
        self.accumulator = accumulator
        self.voting_power = voting_power
        self.emit = emit

    def vote(self, participant: str, pool_ids: Sequence[int], weights: Sequence[int]) -> Dict[int, int]:
        """
        Replace the participant's allocation with a new one.

        Args:
            participant: Voter address
            pool_ids: Pools to vote for
            weights: Relative weights, one per pool

        Returns:
            Mapping of pool id to allocated weight

        Raises:
            InvariantViolation: On length mismatch, unknown or repeated pools,
                negative weights or a zero weight sum
        """
        pool_ids = list(pool_ids)
        weights = list(weights)
        if len(pool_ids) != len(weights):
            raise InvariantViolation(
                "length_mismatch", f"{len(pool_ids)} pools but {len(weights)} weights"
            )
        if not pool_ids:
            raise InvariantViolation("empty_vote", "vote needs at least one pool")
        if len(set(pool_ids)) != len(pool_ids):
            raise InvariantViolation("duplicate_pool", f"pool ids repeat in {pool_ids}")
        for pool_id in pool_ids:
            self.registry.get(pool_id)
        if any(not isinstance(w, int) or isinstance(w, bool) for w in weights):
            raise InvariantViolation("invalid_weight", f"weights must be ints, got {weights}")
        if any(w < 0 for w in weights):
            raise InvariantViolation("negative_weight", f"weights must be >= 0, got {weights}")
        weight_sum = sum(weights)
        if weight_sum == 0:
            raise InvariantViolation("zero_weight_sum", "vote weights sum to zero")

        self.reset(participant)

        power = self.voting_power.power_of(participant)
        allocations = [w * power // weight_sum for w in weights]
        # Floor remainder goes to the heaviest entry so allocations sum to power.
        allocations[weights.index(max(weights))] += power - sum(allocations)

        journal = self.state.journal
        for pool_id, allocated in zip(pool_ids, allocations):
            if allocated == 0:
                continue
            journal.set_item(self.state.votes, (participant, pool_id), allocated)
            journal.add_item(self.state.pool_weights, pool_id, allocated)
            journal.add_attr(self.state, "total_weight", allocated)
        journal.set_item(self.state.vote_pools, participant, pool_ids)
        journal.set_item(self.state.used_weight, participant, power)

        self.emit("vote", None, participant, power)
        logger.debug("%s voted %d across pools %s", participant, power, pool_ids)
        return {pool_id: allocated for pool_id, allocated in zip(pool_ids, allocations)}

    def reset(self, participant: str) -> None:
        """Remove every allocation held by `participant`; no-op if none."""
        journal = self.state.journal
        pool_ids = journal.pop_item(self.state.vote_pools, participant)
        if pool_ids is None:
            return
        for pool_id in pool_ids:
            allocated = journal.pop_item(self.state.votes, (participant, pool_id))
            if allocated:
                journal.add_item(self.state.pool_weights, pool_id, -allocated)
                journal.add_attr(self.state, "total_weight", -allocated)
        released = journal.pop_item(self.state.used_weight, participant) or 0
        self.emit("reset", None, participant, released)

    def rebalance(self) -> bool:
        """
        Convert pool weights into emission rates.

        Returns:
            False when total weight is zero and nothing changed
        """
        if self.state.total_weight == 0:
            return False

        # Settle accrual at the old rates before any rate changes.
        self.accumulator.refresh_all()
        for pool in self.registry:
            rate = self.state.total_emission_rate * self.state.pool_weights[pool.pool_id] // self.state.total_weight
            self.accumulator.set_rate(pool.pool_id, rate)

        self.emit("rebalance", None, None, self.state.total_emission_rate)
        logger.info(
            "rebalanced %d pools (total_weight=%d, total_rate=%d)",
            len(self.registry), self.state.total_weight, self.state.total_emission_rate,
        )
        return True

    def add_reserved(self, pool_id: int, reserved_weight: int) -> None:
        self.state.journal.add_item(self.state.pool_weights, pool_id, reserved_weight)
        self.state.journal.add_attr(self.state, "total_weight", reserved_weight)

    def release_reserved(self, pool_id: int, refresh_first: bool = True) -> int:
        """
        Remove a pool's bootstrap weight.

        Returns:
            The weight released

        Raises:
            InvariantViolation: If the reserved weight was already released
        """
        pool = self.registry.get(pool_id)
        if pool.reserved_released:
            raise InvariantViolation("already_released", f"pool {pool_id} reserved weight already released")
        if refresh_first:
            self.accumulator.refresh_all()

        journal = self.state.journal
        journal.add_item(self.state.pool_weights, pool_id, -pool.reserved_weight)
        journal.add_attr(self.state, "total_weight", -pool.reserved_weight)
        journal.set_attr(pool, "reserved_released", True)
        self.emit("reserved_released", pool_id, None, pool.reserved_weight)
        return pool.reserved_weight

    def pool_weight(self, pool_id: int) -> int:
        self.registry.get(pool_id)
        return self.state.pool_weights[pool_id]

    def votes_of(self, participant: str) -> Dict[int, int]:
        return {
            pool_id: self.state.votes.get((participant, pool_id), 0)
            for pool_id in self.state.vote_pools.get(participant, [])
        }

    def used_weight(self, participant: str) -> int:
        return self.state.used_weight.get(participant, 0)

    def voters(self) -> List[str]:
        return list(self.state.vote_pools)
