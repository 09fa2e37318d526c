"""Engine state - pools, positions, votes and global emission bookkeeping.

All mutable engine state lives in one EngineState object. Writes made during a
controller operation go through its undo journal so a failure can reverse them.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple

from ..journal import UndoJournal


@dataclass
class Pool:
    """One staking market for a single staked asset.

    reward_per_share_accumulated is a fixed-point value scaled by the
    engine's accounting scale and only ever increases.
    """
    pool_id: int
    staked_asset: str
    reserved_weight: int = 0
    last_distribution_time: int = 0
    emission_rate: int = 0  # Reward units per second
    reward_per_share_accumulated: int = 0
    reserved_released: bool = False


@dataclass
class Position:
    """A participant's stake in one pool."""
    staked_amount: int = 0
    derived_stake: int = 0  # Boost-adjusted stake, never above staked_amount
    reward_debt: int = 0  # Reward units already accounted at the last settlement
    claimed_total: int = 0

    @property
    def is_empty(self) -> bool:
        return self.staked_amount == 0 and self.derived_stake == 0 and self.reward_debt == 0


@dataclass(frozen=True)
class EngineEvent:
    """Notification for external observers; never read back by the engine."""
    kind: str
    pool_id: Optional[int]
    participant: Optional[str]
    amount: int
    timestamp: int


@dataclass
class EngineState:
    """Complete engine state.

    Weight Accounting Identity:
    total_weight = sum(pool_weights.values())
    pool_weights[p] = unreleased reserved weight of p + sum of live votes for p
    """
    pools: List[Pool] = field(default_factory=list)
    asset_index: Dict[str, int] = field(default_factory=dict)  # staked_asset -> pool_id
    positions: Dict[Tuple[int, str], Position] = field(default_factory=dict)

    pool_weights: Dict[int, int] = field(default_factory=dict)
    total_weight: int = 0
    votes: Dict[Tuple[str, int], int] = field(default_factory=dict)  # (participant, pool_id) -> weight
    vote_pools: Dict[str, List[int]] = field(default_factory=dict)  # participant -> pools voted, in order
    used_weight: Dict[str, int] = field(default_factory=dict)  # participant -> power at last vote

    total_emission_rate: int = 0
    emissions_started: bool = False
    emissions_start: Optional[int] = None
    emissions_end: Optional[int] = None

    distributed: Dict[int, int] = field(default_factory=dict)  # Reward credited to each accumulator
    paid_out: Dict[int, int] = field(default_factory=dict)  # Reward transferred to stakers
    settlements: Dict[int, int] = field(default_factory=dict)  # Debt resets per pool

    events: Deque[EngineEvent] = field(default_factory=deque)  # Recent committed events, bounded by the controller
    journal: UndoJournal = field(default_factory=UndoJournal, repr=False, compare=False)
