"""Data models for test-runner execution and result collection."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any
from enum import Enum


class RunState(Enum):
    """Lifecycle of one runner process."""
    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    ERRORED = "errored"
    TIMED_OUT = "timed_out"


class TestStatus(Enum):
    """Outcome of a single test case."""
    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class BrowserConfig:
    """Extra browser arguments forwarded to the runner."""
    headless: bool = False
    window_size: Optional[str] = None
    user_agent: Optional[str] = None
    arguments: List[str] = field(default_factory=list)


@dataclass
class ExecutionRequest:
    """One request to run a test suite or test suite collection."""
    project_path: str
    suite_path: str
    browser: str = "Chrome"
    execution_profile: str = "default"
    browser_config: Optional[BrowserConfig] = None
    report_folder: Optional[str] = None
    console_log: bool = True
    retry_count: int = 0

    @property
    def is_collection(self) -> bool:
        """Suite collections are stored as .tsc files."""
        return self.suite_path.endswith(".tsc")


@dataclass
class ExecutionRun:
    """A live runner process, owned by the execution supervisor."""
    run_id: str
    process: Optional[asyncio.subprocess.Process] = None
    state: RunState = RunState.CREATED
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    @property
    def duration(self) -> Optional[float]:
        """Run duration in seconds."""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None


@dataclass(frozen=True)
class ExecutionOutcome:
    """Normalised process outcome of a completed run."""
    run_id: str
    exit_code: int
    combined_output: str

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class TestOutcome:
    """Result of one test case parsed from the runner report."""
    __test__ = False

    name: str
    status: TestStatus
    duration_ms: float
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "durationMs": self.duration_ms,
            "errorMessage": self.error_message,
        }


@dataclass
class ExecutionArtifacts:
    """Files the runner left in the report folder; absent ones are None/empty."""
    report_path: Optional[str] = None
    log_path: Optional[str] = None
    screenshots: List[str] = field(default_factory=list)


@dataclass
class ExecutionResult:
    """Complete result of one run: process outcome, test results and artifacts."""
    run_id: str
    exit_code: int
    start_time: datetime
    end_time: datetime
    test_results: List[TestOutcome] = field(default_factory=list)
    artifacts: ExecutionArtifacts = field(default_factory=ExecutionArtifacts)
    output: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def duration_ms(self) -> float:
        return (self.end_time - self.start_time).total_seconds() * 1000

    def count(self, status: TestStatus) -> int:
        """Number of test results with the given status."""
        return sum(1 for t in self.test_results if t.status == status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runId": self.run_id,
            "success": self.success,
            "exitCode": self.exit_code,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "durationMs": self.duration_ms,
            "testResults": [t.to_dict() for t in self.test_results],
            "reportPath": self.artifacts.report_path,
            "logPath": self.artifacts.log_path,
            "screenshots": list(self.artifacts.screenshots),
        }
