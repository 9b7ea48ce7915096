"""
Healing Ledger for the smart healing system.

Keeps the bounded, append-only history of healing attempts for a project
and derives the aggregate healing report from it.
"""

import json
import logging
import os
import tempfile
import threading
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional

from ..core.config import settings
from ..core.models import HealingAttempt, HealingReport

logger = logging.getLogger(__name__)

HISTORY_RELATIVE_PATH = Path("Reports") / "smart-healing" / "healing-attempts.json"

RECENT_ATTEMPTS = 10
RECENT_FAILURE_WINDOW = 20
RECENT_FAILURE_LIMIT = 10
TOP_STRATEGIES = 3

NO_DATA_RECOMMENDATION = "No healing attempts found. Enable smart healing to start collecting data."
LOW_SUCCESS_RECOMMENDATION = "Low healing success rate. Consider reviewing object identification strategies."
HIGH_SUCCESS_RECOMMENDATION = "High healing success rate. Consider enabling auto-update for objects."
RECENT_FAILURES_RECOMMENDATION = "Multiple recent healing failures detected. Review application changes."

_path_locks: Dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(history_path: Optional[Path]) -> threading.Lock:
    """One lock per history file, shared by every ledger over that file."""
    if history_path is None:
        return threading.Lock()
    key = history_path.resolve()
    with _path_locks_guard:
        return _path_locks.setdefault(key, threading.Lock())


class HealingLedger:
    """Bounded FIFO history of healing attempts.

    With a ``history_path`` the history lives in a JSON file that is re-read
    on every access, so several ledgers over the same project agree. Without
    one the history is kept in memory only.
    """

    def __init__(self, history_path: Optional[str] = None, limit: Optional[int] = None):
        self.history_path = Path(history_path) if history_path else None
        self.limit = limit or settings.HEALING_HISTORY_LIMIT
        self._attempts: List[HealingAttempt] = []
        self._lock = _lock_for(self.history_path)

    @classmethod
    def for_project(cls, project_path: str, limit: Optional[int] = None) -> 'HealingLedger':
        """Ledger persisted under the project's Reports folder."""
        return cls(str(Path(project_path) / HISTORY_RELATIVE_PATH), limit)

    def record(self, attempt: HealingAttempt) -> None:
        """Append an attempt, evicting the oldest entries beyond the bound."""
        with self._lock:
            attempts = self._load()
            attempts.append(attempt)
            if len(attempts) > self.limit:
                attempts = attempts[-self.limit:]
            self._store(attempts)

    def attempts(self) -> List[HealingAttempt]:
        """Snapshot of the retained attempts, oldest first."""
        with self._lock:
            return list(self._load())

    def report(self) -> HealingReport:
        """Aggregate statistics and recommendations over the retained attempts."""
        attempts = self.attempts()
        successes = [a for a in attempts if a.succeeded]

        wins = Counter(a.strategy_name for a in successes)
        # Counter keeps first-seen order, sorted() is stable
        ranked = sorted(wins, key=lambda name: -wins[name])

        average_confidence = (
            sum(a.confidence for a in successes) / len(successes) if successes else 0.0
        )

        return HealingReport(
            total_attempts=len(attempts),
            success_count=len(successes),
            failure_count=len(attempts) - len(successes),
            average_confidence=average_confidence,
            top_strategies=ranked[:TOP_STRATEGIES],
            recent_attempts=attempts[-RECENT_ATTEMPTS:],
            recommendations=generate_recommendations(attempts, ranked),
        )

    def _load(self) -> List[HealingAttempt]:
        if self.history_path is None:
            return self._attempts

        if not self.history_path.exists():
            return []

        try:
            with open(self.history_path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
            return [HealingAttempt.from_dict(entry) for entry in raw]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Healing history {self.history_path} is unreadable, starting empty: {e}")
            return []

    def _store(self, attempts: List[HealingAttempt]) -> None:
        if self.history_path is None:
            self._attempts = attempts
            return

        self.history_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.history_path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump([a.to_dict() for a in attempts], f, indent=2)
            os.replace(tmp_path, self.history_path)
        except BaseException:
            os.unlink(tmp_path)
            raise


def generate_recommendations(attempts: List[HealingAttempt], ranked_strategies: List[str]) -> List[str]:
    """Rule based suggestions, evaluated in a fixed order."""
    if not attempts:
        return [NO_DATA_RECOMMENDATION]

    recommendations = []
    success_rate = sum(1 for a in attempts if a.succeeded) / len(attempts)

    if success_rate < 0.5:
        recommendations.append(LOW_SUCCESS_RECOMMENDATION)

    if success_rate > 0.8:
        recommendations.append(HIGH_SUCCESS_RECOMMENDATION)

    recent_failures = [a for a in attempts[-RECENT_FAILURE_WINDOW:] if not a.succeeded]
    if len(recent_failures) > RECENT_FAILURE_LIMIT:
        recommendations.append(RECENT_FAILURES_RECOMMENDATION)

    if ranked_strategies:
        recommendations.append(
            f"Most successful strategy: {ranked_strategies[0]}. Consider prioritizing this strategy.")

    return recommendations


def format_healing_report(report: HealingReport) -> str:
    """Render a healing report as Markdown."""
    lines = [
        "# Smart Healing Report",
        "",
        "## Summary",
        f"- **Total Attempts**: {report.total_attempts}",
        f"- **Successful Healing**: {report.success_count}",
        f"- **Failed Healing**: {report.failure_count}",
        f"- **Success Rate**: {report.success_rate * 100:.1f}%",
        f"- **Average Confidence**: {report.average_confidence:.2f}",
        "",
        "## Top Strategies",
    ]
    lines.extend(f"{i}. {name}" for i, name in enumerate(report.top_strategies, 1))
    if not report.top_strategies:
        lines.append("- None yet")

    lines.extend(["", "## Recent Attempts"])
    for attempt in report.recent_attempts:
        status = "✅" if attempt.succeeded else "❌"
        detail = f"{attempt.original_locator} → {attempt.healed_locator}"
        if attempt.succeeded:
            detail += f" via {attempt.strategy_name} ({attempt.confidence:.2f})"
        elif attempt.error_message:
            detail += f" ({attempt.error_message})"
        lines.append(f"- {status} **{attempt.object_name}**: {detail}")
    if not report.recent_attempts:
        lines.append("- None")

    lines.extend(["", "## Recommendations"])
    lines.extend(f"- {r}" for r in report.recommendations)
    return "\n".join(lines)
