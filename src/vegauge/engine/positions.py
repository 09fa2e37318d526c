"""Position ledger - deposit, withdraw and claim settlement.

Every operation follows the same shape:
1. refresh the pool accumulator
2. load the position into a working copy
3. pay out pending reward
4. mutate stake and move the staked asset
5. recompute derived stake, then reset reward debt against it
6. commit the working copy and emit an event
"""

import logging
from dataclasses import replace
from typing import Callable, List, Optional

from ..errors import InvariantViolation
from ..ledger.assets import AssetLedger
from .accumulator import AccumulatorEngine
from .boost import BoostCalculator
from .registry import PoolRegistry
from .state import EngineState, Pool, Position

logger = logging.getLogger(__name__)


class PositionLedger:
    """Per (pool, participant) stake, derived stake and reward debt."""

    def __init__(
        self,
        state: EngineState,
        registry: PoolRegistry,
        accumulator: AccumulatorEngine,
        boost: BoostCalculator,
        ledger: AssetLedger,
        reward_asset: str,
        controller_address: str,
        emit: Callable[[str, Optional[int], Optional[str], int], None],
    ):
        self.state = state
        self.registry = registry
        self.accumulator = accumulator
        self.boost = boost
        self.ledger = ledger
        self.reward_asset = reward_asset
        self.controller_address = controller_address
        self.emit = emit

    def position(self, pool_id: int, participant: str) -> Position:
        """Working copy of a position; changes are invisible until committed."""
        stored = self.state.positions.get((pool_id, participant))
        return replace(stored) if stored is not None else Position()

    def deposit(self, pool_id: int, participant: str, amount: int) -> int:
        """
        Stake `amount` of the pool's asset.

        Returns:
            Reward paid out during settlement
        """
        _require_positive(amount)
        pool = self.accumulator.refresh(pool_id)
        position = self.position(pool_id, participant)

        paid = self._pay_pending(pool, position, participant)
        self.ledger.transfer(pool.staked_asset, participant, self.controller_address, amount)
        position.staked_amount += amount
        self._reset_debt(pool, position, participant)

        self._commit(pool_id, participant, position)
        self.emit("deposit", pool_id, participant, amount)
        return paid

    def withdraw(self, pool_id: int, participant: str, amount: int) -> int:
        """
        Unstake `amount` of the pool's asset.

        Returns:
            Reward paid out during settlement

        Raises:
            InvariantViolation: If amount exceeds the staked amount
        """
        _require_positive(amount)
        pool = self.accumulator.refresh(pool_id)
        position = self.position(pool_id, participant)
        if amount > position.staked_amount:
            raise InvariantViolation(
                "insufficient_stake",
                f"{participant} has {position.staked_amount} staked in pool {pool_id}, requested {amount}",
            )

        paid = self._pay_pending(pool, position, participant)
        position.staked_amount -= amount
        self.ledger.transfer(pool.staked_asset, self.controller_address, participant, amount)
        self._reset_debt(pool, position, participant)

        self._commit(pool_id, participant, position)
        self.emit("withdrawal", pool_id, participant, amount)
        return paid

    def claim(self, pool_id: int, participant: str) -> int:
        """Pay out pending reward and refresh the position's boost."""
        pool = self.accumulator.refresh(pool_id)
        position = self.position(pool_id, participant)

        paid = self._pay_pending(pool, position, participant)
        self._reset_debt(pool, position, participant)

        self._commit(pool_id, participant, position)
        self.emit("claim", pool_id, participant, paid)
        return paid

    def claim_many(self, pool_ids: List[int], participant: str) -> int:
        if len(set(pool_ids)) != len(pool_ids):
            raise InvariantViolation("duplicate_pool", f"pool ids repeat in {list(pool_ids)}")
        return sum(self.claim(pool_id, participant) for pool_id in pool_ids)

    def _pay_pending(self, pool: Pool, position: Position, participant: str) -> int:
        if position.derived_stake == 0:
            return 0
        pending = self.accumulator.pending(pool, position)
        if pending <= 0:
            return 0
        self.ledger.transfer(self.reward_asset, self.controller_address, participant, pending)
        position.claimed_total += pending
        self.state.journal.add_item(self.state.paid_out, pool.pool_id, pending)
        logger.debug("paid %d to %s from pool %d", pending, participant, pool.pool_id)
        return pending

    def _reset_debt(self, pool: Pool, position: Position, participant: str) -> None:
        # Debt is written against the derived stake the next settlement will use.
        previous = position.derived_stake
        position.derived_stake = self.boost.derived_stake(
            position.staked_amount,
            participant,
            self.accumulator.staked_balance_of(pool.pool_id),
        )
        position.reward_debt = self.accumulator.accrued(pool, position.derived_stake)
        # Only a nonzero derived stake on either side can round by a unit.
        if previous or position.derived_stake:
            self.state.journal.add_item(self.state.settlements, pool.pool_id, 1)

    def _commit(self, pool_id: int, participant: str, position: Position) -> None:
        key = (pool_id, participant)
        if position.is_empty:
            self.state.journal.pop_item(self.state.positions, key)
        else:
            self.state.journal.set_item(self.state.positions, key, position)


def _require_positive(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvariantViolation("invalid_amount", f"amount must be a positive int, got {amount!r}")
