"""Configuration loader from YAML.

Resolution order: explicit path, then the VEGAUGE_CONFIG environment
variable, then the packaged defaults.yaml.
"""

import os
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .schema import EngineConfig

CONFIG_ENV_VAR = "VEGAUGE_CONFIG"
DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def load_config(yaml_path: Union[str, Path] = None) -> EngineConfig:
    """
    Load configuration from YAML file.

    Args:
        yaml_path: Path to YAML file (defaults to $VEGAUGE_CONFIG, then defaults.yaml)

    Returns:
        EngineConfig object
    """
    if yaml_path is None:
        yaml_path = os.environ.get(CONFIG_ENV_VAR) or DEFAULTS_PATH

    with open(yaml_path, 'r') as f:
        data = yaml.safe_load(f)

    return config_from_dict(data or {})


def config_from_dict(data: Dict[str, Any]) -> EngineConfig:
    """Create config from a (possibly partial) dictionary; missing sections use defaults."""
    return EngineConfig.from_dict(data)
