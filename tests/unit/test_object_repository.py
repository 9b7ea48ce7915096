"""
Unit tests for Object Repository access.
"""

import xml.etree.ElementTree as ET

import pytest

from katalon_assist.core.errors import ObjectNotFound, ValidationError
from katalon_assist.core.models import Locator, LocatorKind
from katalon_assist.services.object_repository import (
    ObjectRepository, build_object_xml, parse_object_xml, sanitize_object_name
)


@pytest.fixture
def repository(katalon_project):
    return ObjectRepository(str(katalon_project))


class TestObjectFiles:
    """Test creating and reading .rs test objects."""

    def test_sanitize_object_name(self):
        assert sanitize_object_name("Page Login/btn-submit") == "Page_Login_btn_submit"

    def test_create_object(self, repository, broken_locator, katalon_project):
        path = repository.create_object("loginBtn", broken_locator, description="Login button")

        assert path == katalon_project / "Object Repository" / "loginBtn.rs"
        root = parse_object_xml(path.read_bytes())
        assert root.tag == "WebElementEntity"
        assert root.findtext("name") == "loginBtn"
        assert root.findtext("description") == "Login button"
        assert root.find("healingMetadata") is None

    def test_create_object_requires_name(self, repository, broken_locator):
        with pytest.raises(ValidationError):
            repository.create_object("", broken_locator)

    def test_get_locator(self, repository, broken_locator):
        repository.create_object("loginBtn", broken_locator)
        assert repository.get_locator("loginBtn") == broken_locator

    def test_missing_object(self, repository):
        assert repository.exists("ghost") is False
        with pytest.raises(ObjectNotFound):
            repository.get_locator("ghost")

    def test_invalid_xml(self, repository):
        path = repository.object_path("broken")
        path.parent.mkdir(parents=True)
        path.write_text("<WebElementEntity>")

        with pytest.raises(ValidationError):
            repository.get_locator("broken")

    def test_build_emits_declaration(self):
        root = ET.Element("WebElementEntity")
        ET.SubElement(root, "name").text = "x"
        assert build_object_xml(root).startswith(b"<?xml")


class TestLocatorUpdates:
    """Test storing healed locators."""

    def test_set_locator_selects_new_kind(self, repository, broken_locator):
        repository.create_object("loginBtn", broken_locator)
        healed = Locator(LocatorKind.CSS, "#submit-btn")

        repository.set_locator("loginBtn", LocatorKind.CSS, healed)

        assert repository.get_locator("loginBtn") == healed
        root = parse_object_xml(repository.object_path("loginBtn").read_bytes())
        selected = [p for p in root.iter("WebElementProperty") if p.get("isSelected") == "true"]
        assert len(selected) == 1
        entry = root.find("healingHistory/entry")
        assert entry.findtext("originalSelector") == broken_locator.value
        assert entry.findtext("healedSelector") == "#submit-btn"

    def test_set_locator_updates_existing_kind(self, repository, broken_locator):
        repository.create_object("loginBtn", broken_locator)
        repository.set_locator("loginBtn", LocatorKind.XPATH, Locator(LocatorKind.XPATH, "//button"))

        root = parse_object_xml(repository.object_path("loginBtn").read_bytes())
        assert len(root.findall("webElementProperties/WebElementProperty")) == 1
        assert repository.get_locator("loginBtn").value == "//button"

    def test_set_locator_missing_object(self, repository):
        with pytest.raises(ObjectNotFound):
            repository.set_locator("ghost", LocatorKind.CSS, Locator(LocatorKind.CSS, "#a"))


def test_update_healing_settings(repository, broken_locator):
    repository.create_object("loginBtn", broken_locator, smart_healing_enabled=True)

    settings = repository.update_healing_settings(
        "loginBtn", enabled=False, strategies=["css_conversion"], confidence_threshold=0.7)

    assert settings["enabled"] is False
    assert settings["strategies"] == ["css_conversion"]
    assert settings["confidenceThreshold"] == 0.7
    assert "lastUpdated" in settings


class TestForeignProperties:
    """Test objects carrying Katalon properties that are not selector kinds."""

    @staticmethod
    def write_object(repository, properties):
        root = ET.Element("WebElementEntity")
        ET.SubElement(root, "name").text = "link"
        container = ET.SubElement(root, "webElementProperties")
        for name, value, selected in properties:
            prop = ET.SubElement(container, "WebElementProperty", {
                "isSelected": "true" if selected else "false", "name": name})
            ET.SubElement(prop, "value").text = value
        path = repository.object_path("link")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_object_xml(root))

    def test_unknown_property_names_are_skipped(self, repository):
        self.write_object(repository, [
            ("text", "Sign in", True),
            ("href", "/login", False),
            ("xpath", "//a[@href='/login']", False),
        ])

        assert repository.get_locator("link") == Locator(LocatorKind.XPATH, "//a[@href='/login']")

    def test_no_supported_property(self, repository):
        self.write_object(repository, [("title", "Sign in", True)])

        with pytest.raises(ValidationError, match="link"):
            repository.get_locator("link")
