"""Reward controller - the public surface of the engine.

Owns the engine state and its collaborators. Every public operation is one
transaction: state and ledger writes are journaled as they happen and undone
in reverse if anything raises, so a rollback costs what the operation touched.
Events are staged until commit, then kept in a bounded history and passed to
observers. Reads refresh the pool before returning a copy, so accumulator
state is never read stale.
"""

import logging
import threading
from collections import deque
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from .clock import system_clock
from .config.schema import EngineConfig
from .engine.accumulator import AccumulatorEngine
from .engine.boost import BoostCalculator
from .engine.positions import PositionLedger
from .engine.registry import PoolRegistry
from .engine.state import EngineEvent, EngineState, Pool, Position
from .engine.voting import WeightAllocator
from .errors import AccessDenied, EngineError, InvariantViolation
from .ledger.assets import AssetLedger
from .ledger.voting_power import StaticVotingPower, VotingPowerSource

logger = logging.getLogger(__name__)


class RewardController:
    """Streams a reward budget across pools by vote-weighted, boosted stake."""

    def __init__(
        self,
        config: EngineConfig = None,
        ledger: AssetLedger = None,
        voting_power: VotingPowerSource = None,
        clock: Callable[[], int] = None,
    ):
        """
        Initialize reward controller.

        Args:
            config: Engine configuration (defaults to EngineConfig())
            ledger: Asset ledger used for every value transfer
            voting_power: Governance-power source
            clock: Returns the current time in whole seconds
        """
        self.config = config or EngineConfig()
        self.ledger = ledger if ledger is not None else AssetLedger()
        self.voting_power = voting_power if voting_power is not None else StaticVotingPower()
        self.clock = clock or system_clock
        self.state = EngineState(events=deque(maxlen=self.config.events.history_size))
        self._lock = threading.RLock()
        self._observers: List[Callable[[EngineEvent], None]] = []
        self._staged: List[EngineEvent] = []

        self.registry = PoolRegistry(self.state)
        self.accumulator = AccumulatorEngine(
            state=self.state,
            registry=self.registry,
            staked_balance_of=self.staked_balance_of,
            clock=self._now,
            scale=self.config.accounting.scale,
        )
        self.boost = BoostCalculator(
            voting_power=self.voting_power,
            base_bps=self.config.boost.base_bps,
            boost_bps=self.config.boost.boost_bps,
        )
        self.positions = PositionLedger(
            state=self.state,
            registry=self.registry,
            accumulator=self.accumulator,
            boost=self.boost,
            ledger=self.ledger,
            reward_asset=self.reward_asset,
            controller_address=self.address,
            emit=self._emit,
        )
        self.weights = WeightAllocator(
            state=self.state,
            registry=self.registry,
            accumulator=self.accumulator,
            voting_power=self.voting_power,
            emit=self._emit,
        )

    @property
    def address(self) -> str:
        return self.config.access.controller_address

    @property
    def reward_asset(self) -> str:
        return self.config.emissions.reward_asset

    @property
    def total_weight(self) -> int:
        return self.state.total_weight

    @property
    def total_emission_rate(self) -> int:
        return self.state.total_emission_rate

    @property
    def events(self) -> List[EngineEvent]:
        return list(self.state.events)

    def staked_balance_of(self, pool_id: int) -> int:
        """Live balance of the pool's staked asset held by the controller."""
        pool = self.registry.get(pool_id)
        return self.ledger.balance_of(pool.staked_asset, self.address)

    def subscribe(self, callback: Callable[[EngineEvent], None]) -> None:
        self._observers.append(callback)

    # ------------------------------------------------------------------
    # Participant operations
    # ------------------------------------------------------------------

    def deposit(self, participant: str, pool_id: int, amount: int) -> int:
        with self._transaction("deposit"):
            return self.positions.deposit(pool_id, participant, amount)

    def withdraw(self, participant: str, pool_id: int, amount: int) -> int:
        with self._transaction("withdraw"):
            return self.positions.withdraw(pool_id, participant, amount)

    def claim(self, participant: str, pool_id: int) -> int:
        with self._transaction("claim"):
            return self.positions.claim(pool_id, participant)

    def claim_many(self, participant: str, pool_ids: Sequence[int]) -> int:
        with self._transaction("claim_many"):
            return self.positions.claim_many(list(pool_ids), participant)

    def vote(self, participant: str, pool_ids: Sequence[int], weights: Sequence[int]) -> Dict[int, int]:
        with self._transaction("vote"):
            return self.weights.vote(participant, pool_ids, weights)

    def reset_votes(self, participant: str) -> None:
        with self._transaction("reset_votes"):
            self.weights.reset(participant)

    def rebalance(self) -> bool:
        with self._transaction("rebalance"):
            return self.weights.rebalance()

    def refresh_all(self) -> None:
        with self._transaction("refresh_all"):
            self.accumulator.refresh_all()

    # ------------------------------------------------------------------
    # Administrative operations
    # ------------------------------------------------------------------

    def register_pool(
        self,
        caller: str,
        staked_asset: str,
        reserved_weight: int = 0,
        refresh_first: bool = True,
    ) -> int:
        """
        Register a pool for `staked_asset`.

        Returns:
            The new pool id
        """
        with self._transaction("register_pool"):
            self._require_admin(caller)
            if staked_asset == self.reward_asset:
                raise InvariantViolation("invalid_asset", "the reward asset cannot be staked")
            if refresh_first:
                self.accumulator.refresh_all()
            pool = self.registry.register(staked_asset, reserved_weight, self._now())
            self.weights.add_reserved(pool.pool_id, reserved_weight)
            self._emit("pool_registered", pool.pool_id, None, reserved_weight)
            logger.info("registered pool %d for %s (reserved=%d)", pool.pool_id, staked_asset, reserved_weight)
            return pool.pool_id

    def release_reserved_weight(self, caller: str, pool_id: int, refresh_first: bool = True) -> int:
        with self._transaction("release_reserved_weight"):
            self._require_admin(caller)
            released = self.weights.release_reserved(pool_id, refresh_first=refresh_first)
            logger.info("released %d reserved weight from pool %d", released, pool_id)
            return released

    def start_emissions(self, caller: str, total_supply: int) -> int:
        """
        Pull the reward supply from `caller` and start the emission window.

        Returns:
            The total emission rate in reward units per second

        Raises:
            InvariantViolation: If emissions already started or the supply
                is too small to emit at least one unit per second
        """
        with self._transaction("start_emissions"):
            self._require_admin(caller)
            if self.state.emissions_started:
                raise InvariantViolation("emissions_started", "emissions can only be started once")
            window = self.config.emissions.distribution_window_seconds
            if not isinstance(total_supply, int) or total_supply < window:
                raise InvariantViolation(
                    "supply_too_small",
                    f"supply {total_supply!r} is below one unit per second over {window}s",
                )

            self.ledger.transfer(self.reward_asset, caller, self.address, total_supply)
            now = self._now()
            journal = self.state.journal
            journal.set_attr(self.state, "emissions_started", True)
            journal.set_attr(self.state, "emissions_start", now)
            journal.set_attr(self.state, "emissions_end", now + window)
            journal.set_attr(self.state, "total_emission_rate", total_supply // window)
            self._emit("emissions_started", None, None, total_supply)
            logger.info(
                "emissions started: %d over %ds (rate=%d/s)",
                total_supply, window, self.state.total_emission_rate,
            )
            self.weights.rebalance()
            return self.state.total_emission_rate

    # ------------------------------------------------------------------
    # Reads (refresh first, return copies)
    # ------------------------------------------------------------------

    def pool_info(self, pool_id: int) -> Pool:
        with self._transaction("pool_info"):
            return replace(self.accumulator.refresh(pool_id))

    def position_of(self, pool_id: int, participant: str) -> Position:
        with self._transaction("position_of"):
            self.accumulator.refresh(pool_id)
            return self.positions.position(pool_id, participant)

    def pending_reward(self, pool_id: int, participant: str) -> int:
        with self._transaction("pending_reward"):
            pool = self.accumulator.refresh(pool_id)
            return self.accumulator.pending(pool, self.positions.position(pool_id, participant))

    def pool_weight(self, pool_id: int) -> int:
        return self.weights.pool_weight(pool_id)

    def votes_of(self, participant: str) -> Dict[int, int]:
        return self.weights.votes_of(participant)

    def used_weight(self, participant: str) -> int:
        return self.weights.used_weight(participant)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _now(self) -> int:
        return int(self.clock())

    def _require_admin(self, caller: str) -> None:
        if caller != self.config.access.admin:
            raise AccessDenied("not_admin", f"{caller} may not run privileged operations")

    def _emit(self, kind: str, pool_id: Optional[int], participant: Optional[str], amount: int) -> None:
        self._staged.append(EngineEvent(
            kind=kind,
            pool_id=pool_id,
            participant=participant,
            amount=amount,
            timestamp=self._now(),
        ))

    @contextmanager
    def _transaction(self, operation: str):
        with self._lock:
            self.state.journal.begin()
            self.ledger.journal.begin()
            self._staged = []
            try:
                yield
            except Exception as exc:
                self.state.journal.rollback()
                self.ledger.journal.rollback()
                self._staged = []
                if isinstance(exc, EngineError):
                    logger.info("%s rejected: %s", operation, exc)
                else:
                    logger.warning("%s rolled back after unexpected error: %r", operation, exc)
                raise
            self.state.journal.commit()
            self.ledger.journal.commit()
            committed, self._staged = self._staged, []
            self.state.events.extend(committed)

        self._notify(committed)

    def _notify(self, committed: List[EngineEvent]) -> None:
        # The operation is already committed; a failing observer must not undo it.
        for event in committed:
            for callback in self._observers:
                try:
                    callback(event)
                except Exception:
                    logger.exception("observer %r failed on %s event", callback, event.kind)
