"""
Execution Supervisor for the Katalon Runtime Engine.

Launches ``katalonc`` as a subprocess, streams its output, tracks live runs
by run id and bounds every run with a wall-clock timeout. A run ends in
exactly one of Completed, Errored or TimedOut, and is removed from the
live-run table exactly once whichever path gets there first.
"""

import asyncio
import logging
import os
import threading
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..core.config import settings
from ..core.errors import ExecutionTimeout, SpawnError, ValidationError
from ..core.logging_config import get_execution_logger
from ..core.models import ExecutionOutcome, ExecutionRequest, ExecutionRun, RunState

logger = logging.getLogger(__name__)

SUPPORTED_BROWSERS = ["Chrome", "Firefox", "Safari", "Edge", "IE"]
PROJECT_MARKER = ".project"
RUNNER_EXECUTABLE = "katalonc"
RUNNER_LOCATIONS = [
    r"C:\Katalon_Studio_Engine\katalonc.exe",
    r"C:\Program Files\Katalon Studio\katalonc.exe",
    "/Applications/Katalon Studio.app/Contents/MacOS/katalonc",
    "/opt/katalon/katalonc",
]
READ_CHUNK_SIZE = 4096

OutputSink = Callable[[str, str, str], None]


def generate_run_id() -> str:
    return f"execution_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def default_report_folder(project_path: str, run_id: str) -> str:
    return str(Path(project_path) / "Reports" / run_id)


def log_output_chunk(run_id: str, stream_name: str, chunk: str) -> None:
    """Default observability sink: forward runner output to the execution log."""
    get_execution_logger("runner", run_id).debug(f"[{stream_name}] {chunk.rstrip()}")


class RunRegistry:
    """Live-run table keyed by run id.

    ``remove`` is a compare-and-remove: of several racing callers exactly
    one receives the run, the others get None.
    """

    def __init__(self):
        self._runs: Dict[str, ExecutionRun] = {}
        self._lock = threading.Lock()

    def register(self, run: ExecutionRun) -> bool:
        """Add a run; False if the id is already live."""
        with self._lock:
            if run.run_id in self._runs:
                return False
            self._runs[run.run_id] = run
            return True

    def get(self, run_id: str) -> Optional[ExecutionRun]:
        with self._lock:
            return self._runs.get(run_id)

    def remove(self, run_id: str) -> Optional[ExecutionRun]:
        with self._lock:
            return self._runs.pop(run_id, None)

    def run_ids(self) -> List[str]:
        with self._lock:
            return list(self._runs)


class ExecutionSupervisor:
    """Runs test suites through the Katalon Runtime Engine."""

    def __init__(
        self,
        runner_command: Optional[List[str]] = None,
        timeout_seconds: Optional[float] = None,
        output_sink: Optional[OutputSink] = None
    ):
        """Initialize the supervisor.

        Args:
            runner_command: Command prefix used instead of locating katalonc
            timeout_seconds: Wall-clock bound per run; defaults to settings
            output_sink: Called with (run_id, stream name, chunk) for every
                output chunk as it arrives
        """
        self.runner_command = runner_command
        self.timeout_seconds = timeout_seconds or settings.EXECUTION_TIMEOUT_SECONDS
        self.output_sink = output_sink or log_output_chunk
        self.registry = RunRegistry()

    def validate_request(self, request: ExecutionRequest) -> None:
        """Reject requests that cannot possibly run.

        Raises:
            ValidationError: For a missing project, project marker or suite,
                a suite outside the project, or an unsupported browser
        """
        project_path = Path(request.project_path)
        if not project_path.is_dir():
            raise ValidationError(f"Project path does not exist: {request.project_path}")

        if not (project_path / PROJECT_MARKER).exists():
            raise ValidationError(f"Invalid Katalon project: {request.project_path}")

        suite_path = (project_path / request.suite_path).resolve()
        try:
            suite_path.relative_to(project_path.resolve())
        except ValueError:
            raise ValidationError(f"Test suite must be inside the project: {request.suite_path}") from None

        if not suite_path.exists():
            raise ValidationError(f"Test suite not found: {request.suite_path}")

        if request.browser and request.browser not in SUPPORTED_BROWSERS:
            raise ValidationError(
                f"Unsupported browser: {request.browser}. Supported: {', '.join(SUPPORTED_BROWSERS)}")

        if request.retry_count < 0:
            raise ValidationError(f"Retry count must not be negative, got {request.retry_count}")

    def find_runner_executable(self) -> str:
        """KATALON_HOME first, then well-known install folders, then PATH lookup."""
        candidates = []
        katalon_home = os.getenv("KATALON_HOME") or settings.KATALON_HOME
        if katalon_home:
            candidates.append(str(Path(katalon_home) / RUNNER_EXECUTABLE))
        candidates.extend(RUNNER_LOCATIONS)

        for candidate in candidates:
            if Path(candidate).exists():
                logger.debug(f"Using Katalon runner at {candidate}")
                return candidate

        logger.debug(f"No Katalon install found, relying on PATH for {RUNNER_EXECUTABLE}")
        return RUNNER_EXECUTABLE

    def build_execution_args(self, request: ExecutionRequest, run_id: str) -> List[str]:
        """Build the katalonc argument vector for a request."""
        args = [
            "-noSplash",
            "-runMode=console",
            "-projectPath", request.project_path,
            "-retry", str(request.retry_count),
            "-statusDelay", str(settings.STATUS_DELAY_SECONDS),
        ]

        if request.is_collection:
            args.extend(["-testSuiteCollectionPath", request.suite_path])
        else:
            args.extend(["-testSuitePath", request.suite_path])

        if request.browser:
            args.extend(["-browserType", request.browser])

        if request.execution_profile and request.execution_profile != "default":
            args.extend(["-executionProfile", request.execution_profile])

        args.extend(["-reportFolder", request.report_folder or default_report_folder(request.project_path, run_id)])

        browser_config = request.browser_config
        if browser_config:
            if browser_config.headless:
                args.extend(["-args", "--headless"])
            if browser_config.window_size:
                args.extend(["-args", f"--window-size={browser_config.window_size}"])
            if browser_config.user_agent:
                args.extend(["-args", f"--user-agent={browser_config.user_agent}"])
            for extra in browser_config.arguments:
                args.extend(["-args", extra])

        if request.console_log:
            args.append("-consoleLog")

        return args

    def list_running(self) -> List[str]:
        return self.registry.run_ids()

    def new_run_id(self) -> str:
        """Run id not used by any live run."""
        run_id = generate_run_id()
        while self.registry.get(run_id) is not None:
            run_id = generate_run_id()
        return run_id

    async def run(self, request: ExecutionRequest, run_id: Optional[str] = None) -> ExecutionOutcome:
        """Run one suite or suite collection to completion.

        Args:
            request: What to run
            run_id: Identifier to use; generated when omitted

        Returns:
            ExecutionOutcome with exit code and combined output

        Raises:
            ValidationError: Before anything is spawned
            SpawnError: If the runner process could not start
            ExecutionTimeout: If the run exceeded the timeout and was killed
        """
        self.validate_request(request)

        run_id = run_id or self.new_run_id()
        command = list(self.runner_command) if self.runner_command else [self.find_runner_executable()]
        args = command + self.build_execution_args(request, run_id)
        execution_logger = get_execution_logger("supervisor", run_id)

        run = ExecutionRun(run_id=run_id)
        if not self.registry.register(run):
            raise ValidationError(f"Run {run_id} is already running")

        execution_logger.log_operation_start("test_execution", suite=request.suite_path, browser=request.browser)
        logger.info(f"🚀 EXECUTOR: Starting run {run_id}: {' '.join(args)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self._finish(run_id, RunState.ERRORED)
            execution_logger.log_operation_failure("test_execution", 0.0, str(e), error_code="spawn_error")
            raise SpawnError(f"Failed to start Katalon runner '{args[0]}': {e}", cause=e) from e

        run.process = process
        run.state = RunState.RUNNING

        if self.registry.get(run_id) is not run:
            # stop() won the race against the spawn
            self._kill(process)
            exit_code = await process.wait()
            logger.info(f"🛑 EXECUTOR: Run {run_id} was stopped before it started streaming")
            return ExecutionOutcome(run_id=run_id, exit_code=exit_code, combined_output="")

        chunks: List[str] = []
        completion = asyncio.gather(
            self._pump(run_id, "stdout", process.stdout, chunks),
            self._pump(run_id, "stderr", process.stderr, chunks),
            process.wait(),
        )

        try:
            _, _, exit_code = await asyncio.wait_for(completion, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            self._kill(process)
            await process.wait()
            self._finish(run_id, RunState.TIMED_OUT)
            execution_logger.log_operation_failure(
                "test_execution", self.timeout_seconds, "timeout", error_code="timeout")
            raise ExecutionTimeout(run_id, self.timeout_seconds)
        except asyncio.CancelledError:
            self._kill(process)
            self._finish(run_id, RunState.ERRORED)
            await asyncio.shield(process.wait())
            raise

        finished = self._finish(run_id, RunState.COMPLETED)
        duration = (finished or run).duration or 0.0
        outcome = ExecutionOutcome(run_id=run_id, exit_code=exit_code, combined_output="".join(chunks))

        if outcome.succeeded:
            execution_logger.log_operation_success("test_execution", duration, exit_code=exit_code)
        else:
            execution_logger.log_operation_failure(
                "test_execution", duration, f"exit code {exit_code}", error_code="non_zero_exit")
        logger.info(f"🏁 EXECUTOR: Run {run_id} finished with exit code {exit_code}")
        return outcome

    def stop(self, run_id: str) -> bool:
        """Terminate a live run. True if this call stopped it, False otherwise."""
        run = self.registry.remove(run_id)
        if run is None:
            return False

        run.end_time = datetime.now()
        if run.process is not None:
            self._kill(run.process)
        logger.info(f"🛑 EXECUTOR: Stopped run {run_id}")
        return True

    async def _pump(self, run_id: str, stream_name: str, stream: asyncio.StreamReader, chunks: List[str]) -> None:
        while True:
            data = await stream.read(READ_CHUNK_SIZE)
            if not data:
                break
            chunk = data.decode("utf-8", errors="replace")
            chunks.append(chunk)
            try:
                self.output_sink(run_id, stream_name, chunk)
            except Exception as e:
                logger.warning(f"Output sink failed for run {run_id}: {e}")

    def _finish(self, run_id: str, state: RunState) -> Optional[ExecutionRun]:
        """Remove the run if still live and stamp its terminal state."""
        run = self.registry.remove(run_id)
        if run is not None:
            run.state = state
            run.end_time = datetime.now()
        return run

    @staticmethod
    def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
