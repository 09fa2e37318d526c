"""Pool registry - append-only catalogue of pools."""

from typing import Iterator, Optional

from ..errors import InvariantViolation
from .state import EngineState, Pool


class PoolRegistry:
    """Assigns stable integer ids to pools; pools are never removed."""

    def __init__(self, state: EngineState):
        self.state = state

    def register(self, staked_asset: str, reserved_weight: int, now: int) -> Pool:
        """
        Append a pool for `staked_asset`.

        Raises:
            InvariantViolation: If the asset already has a pool
        """
        if staked_asset in self.state.asset_index:
            raise InvariantViolation(
                "pool_exists",
                f"asset {staked_asset} already staked in pool {self.state.asset_index[staked_asset]}",
            )
        if reserved_weight < 0:
            raise InvariantViolation("invalid_weight", f"reserved weight must be >= 0, got {reserved_weight}")

        pool = Pool(
            pool_id=len(self.state.pools),
            staked_asset=staked_asset,
            reserved_weight=reserved_weight,
            last_distribution_time=now,
        )
        journal = self.state.journal
        journal.append(self.state.pools, pool)
        journal.set_item(self.state.asset_index, staked_asset, pool.pool_id)
        for tally in (self.state.pool_weights, self.state.distributed, self.state.paid_out, self.state.settlements):
            journal.set_item(tally, pool.pool_id, 0)
        return pool

    def get(self, pool_id: int) -> Pool:
        if not isinstance(pool_id, int) or not 0 <= pool_id < len(self.state.pools):
            raise InvariantViolation("unknown_pool", f"no pool with id {pool_id!r}")
        return self.state.pools[pool_id]

    def id_for(self, staked_asset: str) -> Optional[int]:
        return self.state.asset_index.get(staked_asset)

    def __len__(self) -> int:
        return len(self.state.pools)

    def __iter__(self) -> Iterator[Pool]:
        return iter(self.state.pools)
