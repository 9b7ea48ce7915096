"""Data models for the locator self-healing system."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any
from enum import Enum


class LocatorKind(Enum):
    """Selector kinds understood by the object repository."""
    XPATH = "xpath"
    CSS = "css"
    ID = "id"
    NAME = "name"
    CLASS = "class"
    TAG = "tag"
    LINK_TEXT = "link_text"
    PARTIAL_LINK_TEXT = "partial_link_text"


class StrategyImplementation(Enum):
    """Transform run by a healing strategy."""
    ATTRIBUTE_BASED = "attribute_based"
    XPATH_BASED = "xpath_based"
    CSS_BASED = "css_based"
    TEXT_BASED = "text_based"
    POSITION_BASED = "position_based"
    VISUAL_BASED = "visual_based"


@dataclass(frozen=True)
class Locator:
    """A (kind, value) pair identifying a UI element."""
    kind: LocatorKind
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Locator':
        return cls(kind=LocatorKind(data["kind"]), value=data["value"])

    def __str__(self) -> str:
        return f"{self.kind.value}={self.value}"


@dataclass(frozen=True)
class StrategyResult:
    """Candidate produced by one healing transform."""
    locator: Locator
    confidence: float

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be between 0.0 and 1.0, got {self.confidence}")


@dataclass
class HealingStrategy:
    """A named, prioritised healing method."""
    name: str
    priority: int
    enabled: bool
    implementation: StrategyImplementation
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "priority": self.priority,
            "enabled": self.enabled,
            "description": self.description,
            "implementation": self.implementation.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HealingStrategy':
        return cls(
            name=data["name"],
            priority=data["priority"],
            enabled=data.get("enabled", True),
            implementation=StrategyImplementation(data["implementation"]),
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class HealingAttempt:
    """Record of one heal() invocation. Never mutated after creation."""
    object_name: str
    original_locator: Locator
    healed_locator: Locator
    strategy_name: str
    confidence: float
    succeeded: bool
    timestamp: datetime = field(default_factory=datetime.now)
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert attempt to the JSON shape stored in the healing history."""
        data = {
            "objectName": self.object_name,
            "originalSelector": self.original_locator.value,
            "originalSelectorType": self.original_locator.kind.value,
            "healedSelector": self.healed_locator.value,
            "healedSelectorType": self.healed_locator.kind.value,
            "strategy": self.strategy_name,
            "confidence": self.confidence,
            "timestamp": self.timestamp.isoformat(),
            "success": self.succeeded,
        }
        if self.error_message is not None:
            data["errorMessage"] = self.error_message
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HealingAttempt':
        """Create attempt from a healing history entry.

        Entries written without selector types are read as XPath.
        """
        original_kind = LocatorKind(data.get("originalSelectorType", "xpath"))
        healed_kind = LocatorKind(data.get("healedSelectorType", original_kind.value))
        timestamp = data.get("timestamp")
        return cls(
            object_name=data["objectName"],
            original_locator=Locator(original_kind, data["originalSelector"]),
            healed_locator=Locator(healed_kind, data.get("healedSelector", data["originalSelector"])),
            strategy_name=data.get("strategy", ""),
            confidence=float(data.get("confidence", 0.0)),
            succeeded=bool(data.get("success", False)),
            timestamp=datetime.fromisoformat(timestamp.replace("Z", "+00:00")) if timestamp else datetime.now(),
            error_message=data.get("errorMessage"),
        )


@dataclass
class HealingReport:
    """Aggregate statistics over the healing history of a project."""
    total_attempts: int
    success_count: int
    failure_count: int
    average_confidence: float
    top_strategies: List[str] = field(default_factory=list)
    recent_attempts: List[HealingAttempt] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def success_rate(self) -> float:
        """Fraction of attempts that produced a healed locator."""
        if not self.total_attempts:
            return 0.0
        return self.success_count / self.total_attempts

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary for tool responses."""
        return {
            "totalAttempts": self.total_attempts,
            "successfulHealing": self.success_count,
            "failedHealing": self.failure_count,
            "successRate": self.success_rate,
            "averageConfidence": self.average_confidence,
            "topStrategies": list(self.top_strategies),
            "recentAttempts": [a.to_dict() for a in self.recent_attempts],
            "recommendations": list(self.recommendations),
            "generatedAt": self.generated_at.isoformat(),
        }


@dataclass
class HealingConfiguration:
    """Smart healing settings of one project."""
    enabled: bool = True
    confidence_threshold: float = 0.8
    max_healing_attempts: int = 3
    report_failures: bool = True
    auto_update_objects: bool = False
    strategies: List[HealingStrategy] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to the smart-healing.json layout."""
        return {
            "enabled": self.enabled,
            "confidenceThreshold": self.confidence_threshold,
            "maxHealingAttempts": self.max_healing_attempts,
            "reportFailures": self.report_failures,
            "autoUpdateObjects": self.auto_update_objects,
            "healingStrategies": [s.to_dict() for s in self.strategies],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HealingConfiguration':
        """Create configuration from the smart-healing.json layout."""
        return cls(
            enabled=bool(data["enabled"]),
            confidence_threshold=float(data["confidenceThreshold"]),
            max_healing_attempts=int(data["maxHealingAttempts"]),
            report_failures=bool(data["reportFailures"]),
            auto_update_objects=bool(data["autoUpdateObjects"]),
            strategies=[HealingStrategy.from_dict(s) for s in data["healingStrategies"]],
        )
