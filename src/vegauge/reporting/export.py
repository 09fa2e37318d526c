"""Export functionality for CSV and JSON."""

import json
from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from ..controller import RewardController
from ..simulation.runner import SimulationResult


def metrics_frame(result: SimulationResult) -> pd.DataFrame:
    """Per-step simulation metrics as a DataFrame indexed by step."""
    df = pd.DataFrame(result.metrics_over_time)
    if not df.empty:
        df = df.set_index('step')
    return df


def positions_frame(controller: RewardController) -> pd.DataFrame:
    """Current positions with their pending reward (no refresh is performed)."""
    rows: List[Dict[str, Any]] = []
    for (pool_id, participant), position in controller.state.positions.items():
        pool = controller.registry.get(pool_id)
        rows.append({
            'pool_id': pool_id,
            'participant': participant,
            'staked_amount': position.staked_amount,
            'derived_stake': position.derived_stake,
            'reward_debt': position.reward_debt,
            'claimed_total': position.claimed_total,
            'pending': controller.accumulator.pending(pool, position),
        })
    columns = ['pool_id', 'participant', 'staked_amount', 'derived_stake',
               'reward_debt', 'claimed_total', 'pending']
    return pd.DataFrame(rows, columns=columns)


def pools_frame(controller: RewardController) -> pd.DataFrame:
    """Pool records joined with their weight and reward tallies."""
    state = controller.state
    rows = []
    for pool in controller.registry:
        row = asdict(pool)
        row['weight'] = state.pool_weights[pool.pool_id]
        row['distributed'] = state.distributed[pool.pool_id]
        row['paid_out'] = state.paid_out[pool.pool_id]
        rows.append(row)
    return pd.DataFrame(rows)


def export_csv(result: SimulationResult, filepath: str):
    """Export simulation metrics to CSV."""
    metrics_frame(result).to_csv(filepath)


def export_json(result: SimulationResult, filepath: str):
    """Export simulation results to JSON."""
    export_data = {
        'config': result.config.to_dict(),
        'config_hash': result.config.compute_hash(),
        'metrics': result.metrics_over_time,
        'final_metrics': result.final_metrics,
        'rejected': result.rejected,
        'warnings': [asdict(w) for w in result.warnings],
    }

    with open(filepath, 'w') as f:
        json.dump(export_data, f, indent=2, default=int)


def export_controller_csv(controller: RewardController, pools_path: str, positions_path: str):
    """Export pool and position snapshots of a controller to two CSV files."""
    pools_frame(controller).to_csv(pools_path, index=False)
    positions_frame(controller).to_csv(positions_path, index=False)
