"""
Healing strategy catalog and locator transforms.

Each transform takes the broken locator value and its kind and proposes a
candidate locator with a heuristic confidence. Transforms never mutate their
input; a transform that does not apply to the locator shape returns a
confidence of 0.
"""

import re
from typing import Callable, Dict, Iterable, List, Optional

from ..core.models import (
    HealingStrategy, Locator, LocatorKind, StrategyImplementation, StrategyResult
)

Transform = Callable[[str, LocatorKind], StrategyResult]

# Attribute names tried when the primary attribute stops matching, in order
ATTRIBUTE_FALLBACKS: Dict[LocatorKind, List[str]] = {
    LocatorKind.ID: ["name", "data-testid", "class"],
    LocatorKind.NAME: ["id", "data-testid", "class"],
    LocatorKind.CLASS: ["id", "name", "data-testid"],
    LocatorKind.XPATH: ["id", "name", "class"],
}
DEFAULT_ATTRIBUTE_FALLBACK = ["id", "name", "class"]

STABLE_ROOT = "//body"

_POSITIONAL_PREDICATE = re.compile(r"\[\d+\]")
_TEXT_NODE_STEP = re.compile(r"/text\(\)")
_EXACT_ID = re.compile(r"@id=(['\"])(.*?)\1")
_ID_PREDICATE = re.compile(r"@id=['\"]([^'\"]+)['\"]")
_CLASS_PREDICATE = re.compile(r"@class=['\"]([^'\"]+)['\"]")
_TEXT_PREDICATE = re.compile(r"text\(\)=['\"]([^'\"]+)['\"]")
_ANY_ATTRIBUTE_PREDICATE = re.compile(r"@([\w-]+)=['\"]([^'\"]+)['\"]")


def default_strategies() -> List[HealingStrategy]:
    """Built-in strategy catalog, highest priority first."""
    return [
        HealingStrategy(
            name="css_conversion",
            priority=10,
            enabled=True,
            implementation=StrategyImplementation.CSS_BASED,
            description="Convert XPath to CSS selectors when possible",
        ),
        HealingStrategy(
            name="attribute_fallback",
            priority=9,
            enabled=True,
            implementation=StrategyImplementation.ATTRIBUTE_BASED,
            description="Try alternative attributes (id, name, class) when primary selector fails",
        ),
        HealingStrategy(
            name="xpath_optimization",
            priority=8,
            enabled=True,
            implementation=StrategyImplementation.XPATH_BASED,
            description="Optimize XPath selectors for better reliability",
        ),
        HealingStrategy(
            name="text_content_matching",
            priority=7,
            enabled=True,
            implementation=StrategyImplementation.TEXT_BASED,
            description="Use text content for element identification",
        ),
        HealingStrategy(
            name="relative_positioning",
            priority=6,
            enabled=True,
            implementation=StrategyImplementation.POSITION_BASED,
            description="Use relative positioning from stable parent elements",
        ),
        HealingStrategy(
            name="visual_recognition",
            priority=5,
            enabled=False,
            implementation=StrategyImplementation.VISUAL_BASED,
            description="Use visual appearance for element identification (requires additional setup)",
        ),
    ]


def select_enabled(strategies: Iterable[HealingStrategy]) -> List[HealingStrategy]:
    """Enabled strategies by priority, highest first; ties keep registration order."""
    return sorted((s for s in strategies if s.enabled), key=lambda s: -s.priority)


def _is_xpath(value: str) -> bool:
    return value.startswith("//")


def _unchanged(value: str, kind: LocatorKind) -> StrategyResult:
    return StrategyResult(Locator(kind, value), 0.0)


def _identifying_token(value: str, kind: LocatorKind) -> Optional[str]:
    """Best identifying token carried by a locator, or None."""
    if kind == LocatorKind.XPATH or _is_xpath(value):
        match = _ANY_ATTRIBUTE_PREDICATE.search(value)
        return match.group(2) if match else None
    if kind == LocatorKind.CSS:
        match = re.match(r"^[\w-]*[#.]([\w-]+)$", value)
        return match.group(1) if match else None
    return value.strip() or None


def attribute_fallback(value: str, kind: LocatorKind) -> StrategyResult:
    """Propose the same identifying token under the first fallback attribute."""
    token = _identifying_token(value, kind)
    if not token:
        return _unchanged(value, kind)

    fallback = ATTRIBUTE_FALLBACKS.get(kind, DEFAULT_ATTRIBUTE_FALLBACK)[0]
    if fallback == "data-testid":
        candidate = Locator(LocatorKind.CSS, f'[data-testid="{token}"]')
    else:
        candidate = Locator(LocatorKind(fallback), token)
    # TODO: probe the live page for the fallback attribute instead of the fixed score
    return StrategyResult(candidate, 0.85)


def xpath_optimization(value: str, kind: LocatorKind) -> StrategyResult:
    """Drop positional predicates and text() steps, loosen an exact @id match."""
    if not _is_xpath(value):
        return _unchanged(value, kind)

    optimized = _POSITIONAL_PREDICATE.sub("", value)
    optimized = _TEXT_NODE_STEP.sub("", optimized)
    optimized = re.sub(r"\s+", " ", optimized).strip()
    optimized = _EXACT_ID.sub(lambda m: f'contains(@id, "{m.group(2)}")', optimized, count=1)

    if optimized == value:
        return _unchanged(value, kind)
    return StrategyResult(Locator(LocatorKind.XPATH, optimized), 0.8)


def css_conversion(value: str, kind: LocatorKind) -> StrategyResult:
    """Convert an XPath @id/@class predicate to the equivalent CSS selector."""
    if not _is_xpath(value):
        return _unchanged(value, kind)

    id_match = _ID_PREDICATE.search(value)
    if id_match:
        return StrategyResult(Locator(LocatorKind.CSS, f"#{id_match.group(1)}"), 0.9)

    class_match = _CLASS_PREDICATE.search(value)
    if class_match:
        classes = ".".join(class_match.group(1).split())
        return StrategyResult(Locator(LocatorKind.CSS, f".{classes}"), 0.85)

    return _unchanged(value, kind)


def text_content_matching(value: str, kind: LocatorKind) -> StrategyResult:
    """Rewrite an exact text() predicate as a contains() match."""
    match = _TEXT_PREDICATE.search(value)
    if not match:
        return _unchanged(value, kind)
    return StrategyResult(Locator(LocatorKind.XPATH, f'//*[contains(text(), "{match.group(1)}")]'), 0.75)


def relative_positioning(value: str, kind: LocatorKind) -> StrategyResult:
    """Anchor an XPath under the document body."""
    if not _is_xpath(value) or value.startswith(STABLE_ROOT):
        return _unchanged(value, kind)
    return StrategyResult(Locator(LocatorKind.XPATH, f"{STABLE_ROOT}{value}"), 0.7)


def visual_recognition(value: str, kind: LocatorKind) -> StrategyResult:
    """Placeholder for image based matching; always a low score."""
    return StrategyResult(Locator(kind, value), 0.3)


DEFAULT_TRANSFORMS: Dict[StrategyImplementation, Transform] = {
    StrategyImplementation.ATTRIBUTE_BASED: attribute_fallback,
    StrategyImplementation.XPATH_BASED: xpath_optimization,
    StrategyImplementation.CSS_BASED: css_conversion,
    StrategyImplementation.TEXT_BASED: text_content_matching,
    StrategyImplementation.POSITION_BASED: relative_positioning,
    StrategyImplementation.VISUAL_BASED: visual_recognition,
}
