"""Sanity checks for engine configuration and controller state."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config.schema import EngineConfig
from ..controller import RewardController


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "conservation", "weights", "boost"
    message: str
    details: Optional[str] = None


class SanityChecker:
    """Run invariant checks against a controller.

    Checks read engine state directly and never refresh, so running them does
    not change what they observe.
    """

    def __init__(self, controller: RewardController):
        """Initialize with the controller under inspection."""
        self.controller = controller
        self._last_accumulators: Dict[int, int] = {}

    def check_config_inputs(self, config: EngineConfig = None) -> List[ValidationWarning]:
        """
        Check configuration inputs for implausible values.

        Returns:
            List of validation warnings
        """
        config = config or self.controller.config
        warnings = []

        if config.accounting.scale < 10**6:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Accounting scale below 1e6 loses reward-per-share precision",
                details=f"Current value: {config.accounting.scale}"
            ))

        if config.boost.base_bps == 0:
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="base_bps of 0 gives stakers without governance power no rewards",
            ))

        if config.emissions.reward_asset == config.access.controller_address:
            warnings.append(ValidationWarning(
                severity="error",
                category="input",
                message="Reward asset name collides with the controller address",
            ))

        return warnings

    def check_conservation(self) -> List[ValidationWarning]:
        """Paid plus pending reward never exceeds what a pool's accumulator received.

        Each settlement floors independently, so a pool may overshoot by at most
        one unit per settlement.
        """
        warnings = []
        state = self.controller.state
        accumulator = self.controller.accumulator
        outstanding = 0

        for pool in self.controller.registry:
            pending = sum(
                accumulator.pending(pool, position)
                for (pool_id, _), position in state.positions.items()
                if pool_id == pool.pool_id
            )
            outstanding += pending
            owed = state.paid_out[pool.pool_id] + pending
            allowed = state.distributed[pool.pool_id] + state.settlements[pool.pool_id]
            if owed > allowed:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message=f"Pool {pool.pool_id} owes more reward than it accrued",
                    details=(
                        f"paid={state.paid_out[pool.pool_id]}, pending={pending}, "
                        f"distributed={state.distributed[pool.pool_id]}"
                    )
                ))

        if state.emissions_started:
            reserve = self.controller.ledger.balance_of(self.controller.reward_asset, self.controller.address)
            if outstanding > reserve:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="conservation",
                    message="Pending rewards exceed the controller's reward balance",
                    details=f"pending={outstanding}, reserve={reserve}"
                ))

        return warnings

    def check_accumulators(self) -> List[ValidationWarning]:
        """Reward-per-share never decreases between checks."""
        warnings = []
        for pool in self.controller.registry:
            previous = self._last_accumulators.get(pool.pool_id, 0)
            if pool.reward_per_share_accumulated < previous:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="accumulator",
                    message=f"Pool {pool.pool_id} reward-per-share decreased",
                    details=f"{previous} -> {pool.reward_per_share_accumulated}"
                ))
            self._last_accumulators[pool.pool_id] = pool.reward_per_share_accumulated
        return warnings

    def check_positions(self) -> List[ValidationWarning]:
        """Derived stake is capped by raw stake and debt never exceeds accrual."""
        warnings = []
        state = self.controller.state
        for (pool_id, participant), position in state.positions.items():
            if position.derived_stake > position.staked_amount:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="boost",
                    message=f"Derived stake above raw stake for {participant} in pool {pool_id}",
                    details=f"derived={position.derived_stake}, staked={position.staked_amount}"
                ))
            pool = self.controller.registry.get(pool_id)
            if self.controller.accumulator.pending(pool, position) < 0:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="debt",
                    message=f"Negative pending reward for {participant} in pool {pool_id}",
                ))

        staked_by_pool: Dict[int, int] = {}
        for (pool_id, _), position in state.positions.items():
            staked_by_pool[pool_id] = staked_by_pool.get(pool_id, 0) + position.staked_amount
        for pool in self.controller.registry:
            balance = self.controller.staked_balance_of(pool.pool_id)
            recorded = staked_by_pool.get(pool.pool_id, 0)
            if recorded > balance:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="custody",
                    message=f"Pool {pool.pool_id} records more stake than the controller holds",
                    details=f"recorded={recorded}, held={balance}"
                ))
        return warnings

    def check_weights(self) -> List[ValidationWarning]:
        """Total weight matches pool weights, which match reserves plus live votes."""
        warnings = []
        state = self.controller.state

        if state.total_weight != sum(state.pool_weights.values()):
            warnings.append(ValidationWarning(
                severity="error",
                category="weights",
                message="Total weight differs from the sum of pool weights",
                details=f"total={state.total_weight}, sum={sum(state.pool_weights.values())}"
            ))

        for pool in self.controller.registry:
            reserved = 0 if pool.reserved_released else pool.reserved_weight
            voted = sum(w for (_, pool_id), w in state.votes.items() if pool_id == pool.pool_id)
            if state.pool_weights[pool.pool_id] != reserved + voted:
                warnings.append(ValidationWarning(
                    severity="error",
                    category="weights",
                    message=f"Pool {pool.pool_id} weight differs from reserved + voted",
                    details=f"weight={state.pool_weights[pool.pool_id]}, reserved={reserved}, voted={voted}"
                ))

        for participant, pool_ids in state.vote_pools.items():
            allocated = sum(state.votes.get((participant, pool_id), 0) for pool_id in pool_ids)
            if allocated != state.used_weight.get(participant, 0):
                warnings.append(ValidationWarning(
                    severity="error",
                    category="votes",
                    message=f"Allocations of {participant} differ from their voting power",
                    details=f"allocated={allocated}, power={state.used_weight.get(participant, 0)}"
                ))

        return warnings

    def check_all(self) -> List[ValidationWarning]:
        warnings = []
        warnings.extend(self.check_conservation())
        warnings.extend(self.check_accumulators())
        warnings.extend(self.check_positions())
        warnings.extend(self.check_weights())
        return warnings


def validate_controller(controller: RewardController) -> List[ValidationWarning]:
    """
    Validate configuration and current state of a controller.

    Args:
        controller: Controller to inspect

    Returns:
        List of all validation warnings
    """
    checker = SanityChecker(controller)
    warnings = []
    warnings.extend(checker.check_config_inputs())
    warnings.extend(checker.check_all())
    return warnings
