"""Randomized simulation of controller operations."""

from .runner import SimulationResult, SimulationRunner

__all__ = [
    "SimulationResult",
    "SimulationRunner",
]
