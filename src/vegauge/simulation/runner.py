"""Simulation runner - drive a controller through random operation sequences.

Key Features:
- Seeded numpy Generator picks operations, participants, pools and amounts
- Rejected operations are expected (e.g. over-withdrawals) and counted
- Every step runs the sanity checker; any error-level warning is recorded
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np

from ..clock import ManualClock
from ..config.schema import EngineConfig
from ..controller import RewardController
from ..errors import EngineError
from ..ledger.assets import AssetLedger
from ..ledger.voting_power import StaticVotingPower
from ..validation.sanity_checks import SanityChecker, ValidationWarning

logger = logging.getLogger(__name__)

OPERATIONS = ("deposit", "withdraw", "claim", "claim_many", "vote", "reset_votes", "rebalance", "set_power")
OPERATION_WEIGHTS = np.array([0.30, 0.15, 0.15, 0.05, 0.12, 0.03, 0.10, 0.10])


@dataclass
class SimulationResult:
    """Complete simulation result."""
    config: EngineConfig
    metrics_over_time: List[Dict[str, Any]]
    final_metrics: Dict[str, Any]
    warnings: List[ValidationWarning] = field(default_factory=list)
    rejected: Dict[str, int] = field(default_factory=dict)

    @property
    def invariant_errors(self) -> List[ValidationWarning]:
        return [w for w in self.warnings if w.severity == "error"]


class SimulationRunner:
    """Builds a controller from config and exercises it with random operations."""

    def __init__(self, config: EngineConfig):
        """
        Initialize simulation runner.

        Args:
            config: Engine configuration; the simulation section sizes the run
        """
        self.config = config
        sim = config.simulation
        self.clock = ManualClock()
        self.ledger = AssetLedger()
        self.voting_power = StaticVotingPower()
        self.controller = RewardController(
            config=config,
            ledger=self.ledger,
            voting_power=self.voting_power,
            clock=self.clock,
        )
        self.admin = config.access.admin
        self.participants = [f"user{i}" for i in range(sim.num_participants)]
        self.pool_ids: List[int] = []

        for i in range(sim.num_pools):
            asset = f"LP{i}"
            self.pool_ids.append(
                self.controller.register_pool(self.admin, asset, reserved_weight=sim.reserved_weight)
            )
            for participant in self.participants:
                self.ledger.mint(asset, participant, sim.initial_balance)

        self.ledger.mint(config.emissions.reward_asset, self.admin, sim.emission_supply)

    def run(self, random_seed: int = None) -> SimulationResult:
        """
        Run the simulation.

        Args:
            random_seed: Seed override (defaults to config value)

        Returns:
            SimulationResult with per-step metrics and invariant warnings
        """
        sim = self.config.simulation
        seed = sim.random_seed if random_seed is None else random_seed
        rng = np.random.default_rng(seed)
        checker = SanityChecker(self.controller)

        for participant in self.participants:
            self.voting_power.set_power(participant, int(rng.integers(0, sim.max_voting_power + 1)))
        self.controller.start_emissions(self.admin, sim.emission_supply)

        metrics_over_time: List[Dict[str, Any]] = []
        warnings: List[ValidationWarning] = list(checker.check_config_inputs())
        rejected: Dict[str, int] = {}

        for step in range(sim.steps):
            self.clock.advance(int(rng.integers(0, sim.step_seconds_max + 1)))
            operation = OPERATIONS[rng.choice(len(OPERATIONS), p=OPERATION_WEIGHTS)]
            try:
                self._apply(operation, rng)
            except EngineError as exc:
                rejected[operation] = rejected.get(operation, 0) + 1
                logger.debug("step %d: %s rejected (%s)", step, operation, exc.code)

            step_warnings = checker.check_all()
            warnings.extend(step_warnings)
            metrics_over_time.append(self._metrics(step, operation))

        return SimulationResult(
            config=self.config,
            metrics_over_time=metrics_over_time,
            final_metrics=metrics_over_time[-1] if metrics_over_time else {},
            warnings=warnings,
            rejected=rejected,
        )

    def _apply(self, operation: str, rng: np.random.Generator) -> None:
        sim = self.config.simulation
        participant = self.participants[int(rng.integers(len(self.participants)))]
        pool_id = self.pool_ids[int(rng.integers(len(self.pool_ids)))]

        if operation == "deposit":
            held = self.ledger.balance_of(self.controller.registry.get(pool_id).staked_asset, participant)
            self.controller.deposit(participant, pool_id, int(rng.integers(1, max(2, held // 4))))
        elif operation == "withdraw":
            staked = self.controller.state.positions.get((pool_id, participant))
            # Occasionally ask for more than staked to exercise rejection.
            upper = (staked.staked_amount if staked else 0) + 2
            self.controller.withdraw(participant, pool_id, int(rng.integers(1, upper)))
        elif operation == "claim":
            self.controller.claim(participant, pool_id)
        elif operation == "claim_many":
            self.controller.claim_many(participant, self.pool_ids)
        elif operation == "vote":
            count = int(rng.integers(1, len(self.pool_ids) + 1))
            chosen = [int(p) for p in rng.choice(self.pool_ids, size=count, replace=False)]
            weights = [int(w) for w in rng.integers(0, 100, size=count)]
            self.controller.vote(participant, chosen, weights)
        elif operation == "reset_votes":
            self.controller.reset_votes(participant)
        elif operation == "rebalance":
            self.controller.rebalance()
        elif operation == "set_power":
            self.voting_power.set_power(participant, int(rng.integers(0, sim.max_voting_power + 1)))

    def _metrics(self, step: int, operation: str) -> Dict[str, Any]:
        state = self.controller.state
        metrics: Dict[str, Any] = {
            'step': step,
            't': self.clock.now,
            'operation': operation,
            'total_weight': state.total_weight,
            'total_distributed': sum(state.distributed.values()),
            'total_paid': sum(state.paid_out.values()),
            'reward_reserve': self.ledger.balance_of(self.controller.reward_asset, self.controller.address),
            'positions': len(state.positions),
        }
        for pool in self.controller.registry:
            metrics[f'pool{pool.pool_id}_rate'] = pool.emission_rate
            metrics[f'pool{pool.pool_id}_acc'] = pool.reward_per_share_accumulated
            metrics[f'pool{pool.pool_id}_staked'] = self.controller.staked_balance_of(pool.pool_id)
        return metrics
