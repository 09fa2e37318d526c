"""veGauge - vote-weighted, boosted reward emission engine."""

from .clock import ManualClock, system_clock
from .config import EngineConfig, load_config
from .controller import RewardController
from .errors import AccessDenied, EngineError, InvariantViolation, TransferError
from .ledger import AssetLedger, ShareWrapper, StaticVotingPower

__version__ = "0.3.0"

__all__ = [
    "AccessDenied",
    "AssetLedger",
    "EngineConfig",
    "EngineError",
    "InvariantViolation",
    "ManualClock",
    "RewardController",
    "ShareWrapper",
    "StaticVotingPower",
    "TransferError",
    "load_config",
    "system_clock",
]
