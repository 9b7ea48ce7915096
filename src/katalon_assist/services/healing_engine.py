"""
Smart Healing Engine for broken test object locators.

Given a locator that stopped matching, the engine runs the enabled healing
strategies in priority order and accepts the first candidate whose
confidence reaches the configured threshold. Every invocation produces one
immutable HealingAttempt; healing failures are data, not exceptions.
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

from ..core.config_loader import HealingConfigLoader
from ..core.errors import HealingDisabled, KatalonAssistError
from ..core.logging_config import get_healing_logger
from ..core.models import (
    HealingAttempt, HealingConfiguration, HealingReport, Locator, LocatorKind,
    StrategyImplementation
)
from .healing_ledger import HealingLedger
from .object_repository import ObjectRepository
from .strategy_registry import DEFAULT_TRANSFORMS, Transform, select_enabled

logger = logging.getLogger(__name__)


class SmartHealingEngine:
    """Heals object locators of one project and records the outcome."""

    def __init__(
        self,
        project_path: str,
        ledger: Optional[HealingLedger] = None,
        object_repository: Optional[ObjectRepository] = None,
        config_loader: Optional[HealingConfigLoader] = None,
        transforms: Optional[Dict[StrategyImplementation, Transform]] = None
    ):
        """Initialize the engine.

        Args:
            project_path: Root of the Katalon project
            ledger: Healing history; defaults to the project's persisted history
            object_repository: Collaborator used when auto-update is enabled
            config_loader: Source of the project's healing configuration
            transforms: Matcher per strategy implementation; defaults to the
                built-in heuristic transforms
        """
        self.project_path = project_path
        self.ledger = ledger or HealingLedger.for_project(project_path)
        self.object_repository = object_repository or ObjectRepository(project_path)
        self.config_loader = config_loader or HealingConfigLoader(project_path)
        self.transforms = dict(DEFAULT_TRANSFORMS)
        if transforms:
            self.transforms.update(transforms)

    def get_config(self) -> HealingConfiguration:
        return self.config_loader.load_config()

    def configure(self, overrides: Optional[Dict[str, Any]] = None) -> HealingConfiguration:
        return self.config_loader.configure(overrides)

    def report(self) -> HealingReport:
        return self.ledger.report()

    def heal(
        self,
        object_name: str,
        original_locator: Locator,
        kind: Optional[LocatorKind] = None,
        config: Optional[HealingConfiguration] = None
    ) -> HealingAttempt:
        """Try to find a replacement for a broken locator.

        Args:
            object_name: Object repository entry the locator belongs to
            original_locator: The locator that stopped matching
            kind: Selector kind to heal; defaults to the locator's own kind
            config: Healing configuration; loaded from the project when omitted

        Returns:
            HealingAttempt: The recorded outcome

        Raises:
            HealingDisabled: If smart healing is turned off for the project
        """
        config = config or self.get_config()
        kind = kind or original_locator.kind
        healing_logger = get_healing_logger("engine", object_name)

        if not config.enabled:
            raise HealingDisabled("Smart healing is disabled for this project")

        start_time = time.time()
        healing_logger.log_operation_start("heal", locator=str(original_locator))

        healed_locator = original_locator
        strategy_name = ""
        confidence = 0.0
        error_message = None

        for strategy in select_enabled(config.strategies):
            transform = self.transforms.get(strategy.implementation)
            if transform is None:
                continue

            try:
                result = transform(original_locator.value, kind)
            except Exception as e:
                error_message = f"{strategy.name}: {e}"
                healing_logger.warning(f"Strategy {strategy.name} raised: {e}", exc_info=True)
                continue

            healing_logger.debug(
                f"Strategy {strategy.name} proposed {result.locator} with confidence {result.confidence:.2f}")

            if result.confidence >= config.confidence_threshold:
                healed_locator = result.locator
                strategy_name = strategy.name
                confidence = result.confidence
                break

        succeeded = bool(strategy_name)
        attempt = HealingAttempt(
            object_name=object_name,
            original_locator=original_locator,
            healed_locator=healed_locator,
            strategy_name=strategy_name,
            confidence=confidence,
            succeeded=succeeded,
            timestamp=datetime.now(),
            error_message=None if succeeded else error_message,
        )

        if succeeded and config.auto_update_objects:
            self._update_object(object_name, healed_locator)

        if succeeded or config.report_failures:
            self.ledger.record(attempt)

        duration = time.time() - start_time
        if succeeded:
            healing_logger.log_operation_success(
                "heal", duration, strategy=strategy_name, healed_locator=str(healed_locator))
        else:
            healing_logger.log_operation_failure(
                "heal", duration, error_message or "no strategy reached the confidence threshold",
                threshold=config.confidence_threshold)

        return attempt

    def _update_object(self, object_name: str, locator: Locator) -> None:
        """Persist a healed locator; failures are logged, the attempt still succeeded."""
        try:
            self.object_repository.set_locator(object_name, locator.kind, locator)
        except (KatalonAssistError, OSError, ValueError) as e:
            logger.warning(f"Healed locator for {object_name} could not be saved: {e}")
