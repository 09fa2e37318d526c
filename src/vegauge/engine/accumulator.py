"""Reward accumulator - per-pool reward-per-share and emission rate.

Key Concepts:
- reward = elapsed_seconds * emission_rate
- reward_per_share += reward * SCALE / pool_staked_balance
- pending(position) = derived_stake * reward_per_share / SCALE - reward_debt

Zero-balance policy: when a pool holds no stake, a refresh still moves
last_distribution_time forward and that interval's emission is forfeited.
Accrual stops at the end of the emission window.
"""

import logging
from typing import Callable

from .registry import PoolRegistry
from .state import EngineState, Pool, Position

logger = logging.getLogger(__name__)


class AccumulatorEngine:
    """Keeps every pool's reward-per-share current."""

    def __init__(
        self,
        state: EngineState,
        registry: PoolRegistry,
        staked_balance_of: Callable[[int], int],
        clock: Callable[[], int],
        scale: int = 10**12,
    ):
        """
        Initialize accumulator engine.

        Args:
            state: Shared engine state
            registry: Pool catalogue
            staked_balance_of: Live query of a pool's total staked balance
            clock: Returns the current time in whole seconds
            scale: Fixed-point scale of reward-per-share
        """
        self.state = state
        self.registry = registry
        self.staked_balance_of = staked_balance_of
        self.clock = clock
        self.scale = scale

    def accrual_time(self) -> int:
        """Current time, capped at the end of the emission window."""
        now = self.clock()
        if self.state.emissions_end is not None:
            now = min(now, self.state.emissions_end)
        return now

    def refresh(self, pool_id: int) -> Pool:
        """
        Bring a pool's accumulator up to the current time.

        Args:
            pool_id: Pool to refresh

        Returns:
            The refreshed pool record
        """
        pool = self.registry.get(pool_id)
        now = self.accrual_time()
        if now <= pool.last_distribution_time:
            return pool

        elapsed = now - pool.last_distribution_time
        balance = self.staked_balance_of(pool_id)
        journal = self.state.journal
        if balance > 0 and pool.emission_rate > 0:
            reward = elapsed * pool.emission_rate
            journal.add_attr(pool, "reward_per_share_accumulated", reward * self.scale // balance)
            journal.add_item(self.state.distributed, pool_id, reward)
            logger.debug(
                "pool %d accrued %d over %ds (acc=%d)",
                pool_id, reward, elapsed, pool.reward_per_share_accumulated,
            )
        journal.set_attr(pool, "last_distribution_time", now)
        return pool

    def refresh_all(self) -> None:
        for pool in self.registry:
            self.refresh(pool.pool_id)

    def set_rate(self, pool_id: int, rate: int) -> None:
        """Assign a pool's emission rate; the caller refreshes the pool beforehand."""
        self.state.journal.set_attr(self.registry.get(pool_id), "emission_rate", rate)

    def accrued(self, pool: Pool, derived_stake: int) -> int:
        """Reward units owed to `derived_stake` over the whole accumulator history."""
        return derived_stake * pool.reward_per_share_accumulated // self.scale

    def pending(self, pool: Pool, position: Position) -> int:
        return self.accrued(pool, position.derived_stake) - position.reward_debt
