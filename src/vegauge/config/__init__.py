"""Engine configuration."""

from .loader import config_from_dict, load_config
from .schema import EngineConfig

__all__ = [
    "EngineConfig",
    "config_from_dict",
    "load_config",
]
