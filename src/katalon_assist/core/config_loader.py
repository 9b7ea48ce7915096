"""Configuration loading and validation utilities for smart healing."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigurationError
from .models.healing_models import HealingConfiguration

logger = logging.getLogger(__name__)

CONFIG_RELATIVE_PATH = Path("settings") / "smart-healing.json"


def default_config() -> HealingConfiguration:
    """Hard-coded defaults used when a project has no usable configuration."""
    from ..services.strategy_registry import default_strategies

    return HealingConfiguration(
        enabled=True,
        confidence_threshold=0.8,
        max_healing_attempts=3,
        report_failures=True,
        auto_update_objects=False,
        strategies=default_strategies(),
    )


class HealingConfigLoader:
    """Loads, validates and saves the smart healing configuration of one project."""

    def __init__(self, project_path: str):
        self.project_path = Path(project_path)
        self.config_path = self.project_path / CONFIG_RELATIVE_PATH

    def load_config(self) -> HealingConfiguration:
        """Load the project configuration.

        Missing, unreadable or invalid files fall back to the defaults.

        Returns:
            HealingConfiguration: Validated configuration object
        """
        if not self.config_path.exists():
            logger.info(f"Config file {self.config_path} not found, using defaults")
            return default_config()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
            if not isinstance(config_data, dict):
                raise ConfigurationError("Configuration root must be a JSON object")

            merged = {**default_config().to_dict(), **config_data}
            config = HealingConfiguration.from_dict(merged)
            self._validate_config(config)
        except (OSError, ValueError, KeyError, TypeError, ConfigurationError) as e:
            logger.warning(f"Failed to load healing config from {self.config_path}, using defaults: {e}")
            return default_config()

        logger.debug(f"Loaded smart healing configuration from {self.config_path}")
        return config

    def save_config(self, config: HealingConfiguration) -> None:
        """Validate and write the configuration.

        Args:
            config: Configuration to save

        Raises:
            ConfigurationError: If the configuration is invalid or cannot be written
        """
        self._validate_config(config)

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(config.to_dict(), f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save smart healing configuration: {e}")
            raise ConfigurationError(f"Configuration saving failed: {e}") from e

        logger.info(f"Saved smart healing configuration to {self.config_path}")

    def configure(self, overrides: Optional[Dict[str, Any]] = None) -> HealingConfiguration:
        """Merge partial settings (smart-healing.json keys) over the defaults and save.

        Raises:
            ConfigurationError: If the merged configuration is invalid
        """
        data = default_config().to_dict()
        data.update({k: v for k, v in (overrides or {}).items() if v is not None})

        try:
            config = HealingConfiguration.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            raise ConfigurationError(f"Invalid smart healing settings: {e}") from e

        self.save_config(config)
        return config

    def _validate_config(self, config: HealingConfiguration) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If validation fails
        """
        errors = []

        if config.confidence_threshold < 0.0 or config.confidence_threshold > 1.0:
            errors.append("confidenceThreshold must be between 0.0 and 1.0")

        if config.max_healing_attempts < 1 or config.max_healing_attempts > 10:
            errors.append("maxHealingAttempts must be between 1 and 10")

        if not config.strategies:
            errors.append("At least one healing strategy must be specified")

        names = [s.name for s in config.strategies]
        if len(names) != len(set(names)):
            errors.append("Duplicate healing strategy names are not allowed")

        if any(not isinstance(s.priority, int) or isinstance(s.priority, bool) for s in config.strategies):
            errors.append("Healing strategy priorities must be integers")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed: " + "; ".join(errors))
