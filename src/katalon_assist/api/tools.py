"""
Automation-assistant tool handlers.

Each handler takes a validated request, calls the services and returns an
MCP-style text result.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

from ..core.errors import KatalonAssistError
from ..services.healing_engine import SmartHealingEngine
from ..services.healing_ledger import format_healing_report
from ..services.test_executor import TestExecutionService, format_execution_result
from .schemas import (
    ConfigureSmartHealingRequest, ExecuteTestSuiteRequest, HealObjectRequest,
    HealingReportRequest, ListRunningExecutionsRequest, StopExecutionRequest,
    ToolRequest, parse_tool_request
)

logger = logging.getLogger(__name__)

EngineFactory = Callable[[str], SmartHealingEngine]


def text_result(text: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


class AutomationTools:
    """Routes validated tool requests to the healing and execution services."""

    def __init__(
        self,
        executor: Optional[TestExecutionService] = None,
        engine_factory: Optional[EngineFactory] = None
    ):
        self.executor = executor or TestExecutionService()
        self.engine_factory = engine_factory or SmartHealingEngine
        self._handlers = {
            HealObjectRequest: self.heal_object,
            ConfigureSmartHealingRequest: self.configure_smart_healing,
            HealingReportRequest: self.get_healing_report,
            ExecuteTestSuiteRequest: self.execute_test_suite,
            StopExecutionRequest: self.stop_execution,
            ListRunningExecutionsRequest: self.list_running_executions,
        }

    async def call(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a raw tool call and run it.

        Raises:
            KatalonAssistError: Typed errors from validation or the services
        """
        request = parse_tool_request(payload)
        handler = self._handlers[type(request)]
        try:
            return await handler(request)
        except KatalonAssistError as e:
            logger.error(f"Tool {request.tool} failed: {e}")
            raise

    async def heal_object(self, request: HealObjectRequest) -> Dict[str, Any]:
        engine = self.engine_factory(request.project_path)
        attempt = engine.heal(request.object_name, request.to_locator(), request.selector_type)

        if attempt.succeeded:
            text = (
                f"✅ Healed \"{attempt.object_name}\" with {attempt.strategy_name} "
                f"(confidence {attempt.confidence:.2f})\n\n"
                f"- **Original**: {attempt.original_locator}\n"
                f"- **Healed**: {attempt.healed_locator}"
            )
        else:
            text = (
                f"❌ Could not heal \"{attempt.object_name}\"\n\n"
                f"- **Original**: {attempt.original_locator}"
            )
            if attempt.error_message:
                text += f"\n- **Error**: {attempt.error_message}"
        return text_result(text)

    async def configure_smart_healing(self, request: ConfigureSmartHealingRequest) -> Dict[str, Any]:
        engine = self.engine_factory(request.project_path)
        config = engine.configure(request.overrides())
        return text_result(
            "✅ Smart healing configured\n\n```json\n"
            f"{json.dumps(config.to_dict(), indent=2)}\n```"
        )

    async def get_healing_report(self, request: HealingReportRequest) -> Dict[str, Any]:
        report = self.engine_factory(request.project_path).report()
        return text_result(format_healing_report(report))

    async def execute_test_suite(self, request: ExecuteTestSuiteRequest) -> Dict[str, Any]:
        result = await self.executor.execute(request.to_execution_request())
        return text_result(format_execution_result(result))

    async def stop_execution(self, request: StopExecutionRequest) -> Dict[str, Any]:
        if self.executor.stop(request.execution_id):
            return text_result(f"🛑 Execution {request.execution_id} stopped")
        return text_result(f"ℹ️ Execution {request.execution_id} is not running")

    async def list_running_executions(self, request: ToolRequest) -> Dict[str, Any]:
        running = self.executor.list_running()
        if not running:
            return text_result("No running executions")
        return text_result("Running executions:\n" + "\n".join(f"- {run_id}" for run_id in running))
