"""Tests for configuration loading and validation."""

import pytest
from pydantic import ValidationError

from vegauge.config.loader import config_from_dict, load_config
from vegauge.config.schema import EngineConfig


class TestConfigLoading:
    """Smoke tests for configuration loading."""

    def test_load_default_config(self):
        """Config loads without errors."""
        config = load_config()
        assert isinstance(config, EngineConfig)
        assert config.accounting.scale == 10**12
        assert config.boost.base_bps == 4000
        assert config.emissions.distribution_window_seconds == 365 * 24 * 3600

    def test_defaults_match_model_defaults(self):
        """The packaged YAML mirrors the schema defaults."""
        assert load_config().compute_hash() == EngineConfig().compute_hash()

    def test_config_hash_is_deterministic(self):
        assert load_config().compute_hash() == load_config().compute_hash()

    def test_partial_dict_fills_defaults(self):
        config = config_from_dict({'boost': {'base_bps': 5000, 'boost_bps': 5000}})
        assert config.boost.base_bps == 5000
        assert config.access.admin == "admin"

    def test_load_from_path(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("emissions:\n  reward_asset: GAUGE\n")
        assert load_config(str(path)).emissions.reward_asset == "GAUGE"

    def test_env_var_overrides_defaults(self, tmp_path, monkeypatch):
        path = tmp_path / "engine.yaml"
        path.write_text("access:\n  admin: dao\n")
        monkeypatch.setenv("VEGAUGE_CONFIG", str(path))
        assert load_config().access.admin == "dao"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == EngineConfig()


class TestConfigValidation:
    """Invalid configurations are rejected."""

    def test_blend_must_total_100_percent(self):
        with pytest.raises(ValidationError):
            EngineConfig.from_dict({'boost': {'base_bps': 4000, 'boost_bps': 5000}})

    def test_scale_must_be_power_of_ten(self):
        with pytest.raises(ValidationError):
            EngineConfig.from_dict({'accounting': {'scale': 12345}})

    def test_admin_distinct_from_controller(self):
        with pytest.raises(ValidationError):
            EngineConfig.from_dict({'access': {'admin': 'x', 'controller_address': 'x'}})

    def test_window_must_be_positive(self):
        with pytest.raises(ValidationError):
            EngineConfig.from_dict({'emissions': {'distribution_window_seconds': 0}})
