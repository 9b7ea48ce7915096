"""
Services module for smart healing and test execution.
"""

from .strategy_registry import default_strategies, select_enabled
from .healing_engine import SmartHealingEngine
from .healing_ledger import HealingLedger, format_healing_report
from .object_repository import ObjectRepository
from .execution_supervisor import ExecutionSupervisor
from .result_collector import ResultCollector
from .test_executor import TestExecutionService, format_execution_result

__all__ = [
    "default_strategies",
    "select_enabled",
    "SmartHealingEngine",
    "HealingLedger",
    "format_healing_report",
    "ObjectRepository",
    "ExecutionSupervisor",
    "ResultCollector",
    "TestExecutionService",
    "format_execution_result"
]
