"""
Unit tests for smart healing configuration loading, validation and saving.
"""

import json

import pytest

from katalon_assist.core.config_loader import CONFIG_RELATIVE_PATH, HealingConfigLoader, default_config
from katalon_assist.core.errors import ConfigurationError
from katalon_assist.core.models import HealingConfiguration


@pytest.fixture
def loader(tmp_path):
    return HealingConfigLoader(str(tmp_path))


class TestLoadConfig:
    """Test loading with fallbacks to the defaults."""

    def test_missing_file_returns_defaults(self, loader):
        config = loader.load_config()

        assert config.enabled is True
        assert config.confidence_threshold == 0.8
        assert config.max_healing_attempts == 3
        assert config.report_failures is True
        assert config.auto_update_objects is False
        assert [s.name for s in config.strategies] == [s.name for s in default_config().strategies]

    def test_malformed_json_returns_defaults(self, loader):
        loader.config_path.parent.mkdir(parents=True)
        loader.config_path.write_text("{ broken")

        assert loader.load_config().to_dict() == default_config().to_dict()

    def test_non_object_root_returns_defaults(self, loader):
        loader.config_path.parent.mkdir(parents=True)
        loader.config_path.write_text("[1, 2, 3]")

        assert loader.load_config().confidence_threshold == 0.8

    def test_invalid_values_return_defaults(self, loader):
        loader.config_path.parent.mkdir(parents=True)
        loader.config_path.write_text(json.dumps({"confidenceThreshold": 3.5}))

        assert loader.load_config().confidence_threshold == 0.8

    def test_partial_file_merged_over_defaults(self, loader):
        loader.config_path.parent.mkdir(parents=True)
        loader.config_path.write_text(json.dumps({"confidenceThreshold": 0.6, "autoUpdateObjects": True}))

        config = loader.load_config()
        assert config.confidence_threshold == 0.6
        assert config.auto_update_objects is True
        assert len(config.strategies) == 6


class TestSaveConfig:
    """Test validation and persistence."""

    def test_round_trip(self, loader):
        config = default_config()
        config.confidence_threshold = 0.65
        config.strategies[0].enabled = False
        loader.save_config(config)

        assert loader.load_config().to_dict() == config.to_dict()

    def test_saved_layout_uses_camel_case_keys(self, loader, tmp_path):
        loader.save_config(default_config())

        data = json.loads((tmp_path / CONFIG_RELATIVE_PATH).read_text())
        assert set(data) == {
            "enabled", "confidenceThreshold", "maxHealingAttempts",
            "reportFailures", "autoUpdateObjects", "healingStrategies",
        }
        assert data["healingStrategies"][0]["implementation"] == "css_based"

    @pytest.mark.parametrize("field_name,value", [
        ("confidence_threshold", -0.1),
        ("confidence_threshold", 1.1),
        ("max_healing_attempts", 0),
        ("max_healing_attempts", 11),
        ("strategies", []),
    ])
    def test_invalid_config_rejected(self, loader, field_name, value):
        config = default_config()
        setattr(config, field_name, value)

        with pytest.raises(ConfigurationError):
            loader.save_config(config)
        assert not loader.config_path.exists()

    def test_duplicate_strategy_names_rejected(self, loader):
        config = default_config()
        config.strategies.append(config.strategies[0])

        with pytest.raises(ConfigurationError, match="Duplicate"):
            loader.save_config(config)


class TestConfigure:
    """Test partial reconfiguration."""

    def test_configure_merges_and_saves(self, loader):
        config = loader.configure({"enabled": False, "maxHealingAttempts": 5, "reportFailures": None})

        assert isinstance(config, HealingConfiguration)
        assert config.enabled is False
        assert config.max_healing_attempts == 5
        assert config.report_failures is True
        assert loader.load_config().to_dict() == config.to_dict()

    def test_configure_rejects_out_of_range(self, loader):
        with pytest.raises(ConfigurationError):
            loader.configure({"confidenceThreshold": 2.0})
