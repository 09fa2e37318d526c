"""Reporting exports for simulations and controller snapshots."""

from .export import (
    export_controller_csv,
    export_csv,
    export_json,
    metrics_frame,
    pools_frame,
    positions_frame,
)

__all__ = [
    "export_controller_csv",
    "export_csv",
    "export_json",
    "metrics_frame",
    "pools_frame",
    "positions_frame",
]
