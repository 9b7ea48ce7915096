"""
Unit tests for the healing strategy catalog and its locator transforms.
"""

import pytest

from katalon_assist.core.models import (
    HealingStrategy, Locator, LocatorKind, StrategyImplementation, StrategyResult
)
from katalon_assist.services.strategy_registry import (
    DEFAULT_TRANSFORMS, attribute_fallback, css_conversion, default_strategies,
    relative_positioning, select_enabled, text_content_matching, visual_recognition,
    xpath_optimization
)


class TestStrategyCatalog:
    """Test the built-in strategy catalog and ordering."""

    def test_default_catalog_names_are_unique(self):
        names = [s.name for s in default_strategies()]
        assert len(names) == len(set(names)) == 6

    def test_visual_recognition_disabled_by_default(self):
        strategies = {s.name: s for s in default_strategies()}
        assert strategies["visual_recognition"].enabled is False
        assert all(s.enabled for name, s in strategies.items() if name != "visual_recognition")

    def test_every_implementation_has_a_transform(self):
        for strategy in default_strategies():
            assert strategy.implementation in DEFAULT_TRANSFORMS

    def test_select_enabled_orders_by_priority_descending(self):
        ordered = select_enabled(default_strategies())
        priorities = [s.priority for s in ordered]
        assert priorities == sorted(priorities, reverse=True)
        assert ordered[0].name == "css_conversion"
        assert "visual_recognition" not in [s.name for s in ordered]

    def test_select_enabled_keeps_registration_order_on_ties(self):
        strategies = [
            HealingStrategy("first", 5, True, StrategyImplementation.CSS_BASED),
            HealingStrategy("second", 5, True, StrategyImplementation.XPATH_BASED),
            HealingStrategy("top", 9, True, StrategyImplementation.TEXT_BASED),
        ]
        assert [s.name for s in select_enabled(strategies)] == ["top", "first", "second"]

    def test_select_enabled_does_not_mutate_input(self):
        strategies = default_strategies()
        before = [s.name for s in strategies]
        select_enabled(strategies)
        assert [s.name for s in strategies] == before


class TestTransforms:
    """Test each heuristic transform on representative locators."""

    def test_css_conversion_from_id_predicate(self):
        result = css_conversion("//button[@id='submit-btn']", LocatorKind.XPATH)
        assert result.locator == Locator(LocatorKind.CSS, "#submit-btn")
        assert result.confidence == 0.9

    def test_css_conversion_from_class_predicate(self):
        result = css_conversion('//div[@class="btn primary"]', LocatorKind.XPATH)
        assert result.locator == Locator(LocatorKind.CSS, ".btn.primary")
        assert result.confidence == 0.85

    def test_css_conversion_not_applicable(self):
        result = css_conversion("#already-css", LocatorKind.CSS)
        assert result.confidence == 0.0
        assert result.locator == Locator(LocatorKind.CSS, "#already-css")

    def test_xpath_optimization_drops_positions_and_loosens_id(self):
        result = xpath_optimization("//div[2]/span[@id='total']/text()", LocatorKind.XPATH)
        assert result.locator.kind == LocatorKind.XPATH
        assert result.locator.value == '//div/span[contains(@id, "total")]'
        assert result.confidence == 0.8

    def test_xpath_optimization_unchanged_scores_zero(self):
        result = xpath_optimization("//button", LocatorKind.XPATH)
        assert result.confidence == 0.0

    def test_text_content_matching(self):
        result = text_content_matching("//a[text()='Sign in']", LocatorKind.XPATH)
        assert result.locator.value == '//*[contains(text(), "Sign in")]'
        assert result.confidence == 0.75

    def test_relative_positioning_anchors_under_body(self):
        result = relative_positioning("//form//input", LocatorKind.XPATH)
        assert result.locator.value == "//body//form//input"
        assert result.confidence == 0.7

    def test_relative_positioning_skips_body_anchored(self):
        assert relative_positioning("//body//input", LocatorKind.XPATH).confidence == 0.0

    def test_attribute_fallback_for_id(self):
        result = attribute_fallback("username", LocatorKind.ID)
        assert result.locator == Locator(LocatorKind.NAME, "username")
        assert result.confidence == 0.85

    def test_attribute_fallback_to_data_testid(self):
        result = attribute_fallback("email", LocatorKind.NAME)
        assert result.locator == Locator(LocatorKind.ID, "email")

        result = attribute_fallback("btn", LocatorKind.CLASS)
        assert result.locator == Locator(LocatorKind.ID, "btn")

    def test_attribute_fallback_from_xpath_predicate(self):
        result = attribute_fallback("//input[@name='q']", LocatorKind.XPATH)
        assert result.locator == Locator(LocatorKind.ID, "q")

    def test_attribute_fallback_without_token(self):
        assert attribute_fallback("//div/span", LocatorKind.XPATH).confidence == 0.0

    def test_visual_recognition_low_score(self):
        assert visual_recognition("//img", LocatorKind.XPATH).confidence == 0.3

    @pytest.mark.parametrize("transform", list(DEFAULT_TRANSFORMS.values()))
    def test_transforms_return_bounded_confidence(self, transform):
        result = transform("//button[@id='x'][1]", LocatorKind.XPATH)
        assert isinstance(result, StrategyResult)
        assert 0.0 <= result.confidence <= 1.0


def test_strategy_result_rejects_out_of_range_confidence():
    with pytest.raises(ValueError):
        StrategyResult(Locator(LocatorKind.CSS, "#a"), 1.5)
