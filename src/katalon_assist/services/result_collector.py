"""
Result Collector for Katalon test runs.

Reads the JUnit report a run leaves in its report folder and turns it into
per-test outcomes. Collection is best effort: the runner may have died
before writing anything, and its exit code already tells the caller so.
"""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional

from ..core.errors import ParseError
from ..core.models import ExecutionArtifacts, TestOutcome, TestStatus
from .execution_supervisor import default_report_folder

logger = logging.getLogger(__name__)

EXECUTION_LOG = "execution.log"
SCREENSHOT_SUFFIXES = (".png", ".jpg")

_DURATION = re.compile(r"^\s*([0-9][0-9,]*(?:\.[0-9]+)?)\s*(ms|s|sec|m|min)?\s*$", re.IGNORECASE)
_UNIT_TO_MS = {None: 1000.0, "s": 1000.0, "sec": 1000.0, "ms": 1.0, "m": 60_000.0, "min": 60_000.0}


def parse_duration_ms(raw: Optional[str]) -> float:
    """JUnit ``time`` attribute in milliseconds; bare numbers are seconds."""
    if not raw:
        return 0.0
    match = _DURATION.match(raw)
    if not match:
        raise ParseError(f"Unrecognised duration: {raw!r}")
    value = float(match.group(1).replace(",", ""))
    unit = match.group(2).lower() if match.group(2) else None
    return value * _UNIT_TO_MS[unit]


def classify_test_case(test_case: ET.Element) -> TestStatus:
    if test_case.find("failure") is not None:
        return TestStatus.FAILED
    if test_case.find("error") is not None:
        return TestStatus.ERROR
    if test_case.find("skipped") is not None:
        return TestStatus.SKIPPED
    return TestStatus.PASSED


def _error_message(test_case: ET.Element) -> Optional[str]:
    for tag in ("failure", "error"):
        element = test_case.find(tag)
        if element is not None:
            message = element.get("message") or (element.text or "").strip()
            return message or None
    return None


def parse_junit_report(content: bytes) -> List[TestOutcome]:
    """Parse a JUnit XML document into test outcomes.

    Raises:
        ParseError: If the document is not well-formed or has bad durations
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ParseError(f"Invalid JUnit report: {e}") from e

    return [
        TestOutcome(
            name=test_case.get("name", "Unknown Test"),
            status=classify_test_case(test_case),
            duration_ms=parse_duration_ms(test_case.get("time")),
            error_message=_error_message(test_case),
        )
        for test_case in root.iter("testcase")
    ]


class ResultCollector:
    """Collects test outcomes and artifacts of a finished run."""

    def report_folder(self, project_path: str, run_id: str, report_folder: Optional[str] = None) -> Path:
        return Path(report_folder or default_report_folder(project_path, run_id))

    def find_report_file(self, folder: Path) -> Optional[Path]:
        """First JUnit report under the folder; katalonc nests it per suite."""
        if not folder.is_dir():
            return None
        candidates = sorted(
            p for p in folder.rglob("*.xml") if "junit" in p.name.lower()
        )
        return candidates[0] if candidates else None

    def collect(self, project_path: str, run_id: str, report_folder: Optional[str] = None) -> List[TestOutcome]:
        """Test outcomes of a run; empty when no readable report exists."""
        folder = self.report_folder(project_path, run_id, report_folder)
        report_file = self.find_report_file(folder)
        if report_file is None:
            logger.info(f"📁 COLLECTOR: No JUnit report for run {run_id} under {folder}")
            return []

        try:
            outcomes = parse_junit_report(report_file.read_bytes())
        except (ParseError, OSError) as e:
            logger.error(f"❌ COLLECTOR: Failed to parse execution results for run {run_id}: {e}")
            return []

        logger.info(f"📊 COLLECTOR: Parsed {len(outcomes)} test result(s) from {report_file}")
        return outcomes

    def collect_artifacts(self, project_path: str, run_id: str, report_folder: Optional[str] = None) -> ExecutionArtifacts:
        """Report folder, execution log and screenshots that exist on disk."""
        folder = self.report_folder(project_path, run_id, report_folder)
        if not folder.is_dir():
            return ExecutionArtifacts()

        log_path = folder / EXECUTION_LOG
        screenshots = sorted(
            str(p) for p in folder.rglob("*") if p.is_file() and p.suffix.lower() in SCREENSHOT_SUFFIXES
        )
        return ExecutionArtifacts(
            report_path=str(folder),
            log_path=str(log_path) if log_path.exists() else None,
            screenshots=screenshots,
        )
