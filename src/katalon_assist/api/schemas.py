"""
Request schemas for the automation-assistant tools.

Every tool call is validated into one of these models, selected by its
``tool`` tag, before any domain object is built.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import ValidationError
from ..core.models import BrowserConfig, ExecutionRequest, Locator, LocatorKind


class ToolRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class HealObjectRequest(ToolRequest):
    tool: Literal["heal_object"] = "heal_object"
    project_path: str = Field(..., alias="projectPath", min_length=1)
    object_name: str = Field(..., alias="objectName", min_length=1)
    selector: str = Field(..., min_length=1)
    selector_type: LocatorKind = Field(..., alias="selectorType")

    def to_locator(self) -> Locator:
        return Locator(self.selector_type, self.selector)


class ConfigureSmartHealingRequest(ToolRequest):
    tool: Literal["configure_smart_healing"] = "configure_smart_healing"
    project_path: str = Field(..., alias="projectPath", min_length=1)
    enabled: Optional[bool] = None
    confidence_threshold: Optional[float] = Field(None, alias="confidenceThreshold", ge=0.0, le=1.0)
    max_healing_attempts: Optional[int] = Field(None, alias="maxHealingAttempts", ge=1, le=10)
    report_failures: Optional[bool] = Field(None, alias="reportFailures")
    auto_update_objects: Optional[bool] = Field(None, alias="autoUpdateObjects")

    def overrides(self) -> Dict[str, Any]:
        """Settings given in the call, keyed as in smart-healing.json."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"tool", "project_path"})


class HealingReportRequest(ToolRequest):
    tool: Literal["get_healing_report"] = "get_healing_report"
    project_path: str = Field(..., alias="projectPath", min_length=1)


class BrowserConfigModel(ToolRequest):
    headless: bool = False
    window_size: Optional[str] = Field(None, alias="windowSize", pattern=r"^\d+,\d+$")
    user_agent: Optional[str] = Field(None, alias="userAgent")
    arguments: List[str] = Field(default_factory=list)


class ExecuteTestSuiteRequest(ToolRequest):
    tool: Literal["execute_test_suite"] = "execute_test_suite"
    project_path: str = Field(..., alias="projectPath", min_length=1)
    test_suite_path: str = Field(..., alias="testSuitePath", min_length=1)
    browser: str = "Chrome"
    execution_profile: str = Field("default", alias="executionProfile")
    browser_config: Optional[BrowserConfigModel] = Field(None, alias="browserConfig")
    report_folder: Optional[str] = Field(None, alias="reportFolder")
    console_log: bool = Field(True, alias="consoleLog")
    retry: int = Field(0, ge=0, le=10)

    def to_execution_request(self) -> ExecutionRequest:
        browser_config = None
        if self.browser_config:
            browser_config = BrowserConfig(
                headless=self.browser_config.headless,
                window_size=self.browser_config.window_size,
                user_agent=self.browser_config.user_agent,
                arguments=list(self.browser_config.arguments),
            )
        return ExecutionRequest(
            project_path=self.project_path,
            suite_path=self.test_suite_path,
            browser=self.browser,
            execution_profile=self.execution_profile,
            browser_config=browser_config,
            report_folder=self.report_folder,
            console_log=self.console_log,
            retry_count=self.retry,
        )


class StopExecutionRequest(ToolRequest):
    tool: Literal["stop_execution"] = "stop_execution"
    execution_id: str = Field(..., alias="executionId", min_length=1)


class ListRunningExecutionsRequest(ToolRequest):
    tool: Literal["list_running_executions"] = "list_running_executions"


AnyToolRequest = Annotated[
    Union[
        HealObjectRequest,
        ConfigureSmartHealingRequest,
        HealingReportRequest,
        ExecuteTestSuiteRequest,
        StopExecutionRequest,
        ListRunningExecutionsRequest,
    ],
    Field(discriminator="tool"),
]

_request_adapter = TypeAdapter(AnyToolRequest)


def parse_tool_request(payload: Dict[str, Any]) -> ToolRequest:
    """Validate a raw tool call.

    Raises:
        ValidationError: If the tool is unknown or its arguments are malformed
    """
    try:
        return _request_adapter.validate_python(payload)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid tool request: {problems}") from e
