"""Reward accounting and weight-allocation components."""

from .accumulator import AccumulatorEngine
from .boost import BoostCalculator
from .positions import PositionLedger
from .registry import PoolRegistry
from .state import EngineEvent, EngineState, Pool, Position
from .voting import WeightAllocator

__all__ = [
    "AccumulatorEngine",
    "BoostCalculator",
    "EngineEvent",
    "EngineState",
    "Pool",
    "PoolRegistry",
    "Position",
    "PositionLedger",
    "WeightAllocator",
]
