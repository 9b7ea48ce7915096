"""Core data models for healing and test execution."""

from .healing_models import (
    Locator,
    LocatorKind,
    StrategyImplementation,
    StrategyResult,
    HealingStrategy,
    HealingAttempt,
    HealingReport,
    HealingConfiguration
)
from .execution_models import (
    BrowserConfig,
    ExecutionRequest,
    ExecutionRun,
    ExecutionOutcome,
    ExecutionArtifacts,
    ExecutionResult,
    RunState,
    TestOutcome,
    TestStatus
)

__all__ = [
    "Locator",
    "LocatorKind",
    "StrategyImplementation",
    "StrategyResult",
    "HealingStrategy",
    "HealingAttempt",
    "HealingReport",
    "HealingConfiguration",
    "BrowserConfig",
    "ExecutionRequest",
    "ExecutionRun",
    "ExecutionOutcome",
    "ExecutionArtifacts",
    "ExecutionResult",
    "RunState",
    "TestOutcome",
    "TestStatus"
]
