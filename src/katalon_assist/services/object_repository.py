"""
Object Repository access for Katalon test objects.

Test objects are ``WebElementEntity`` XML documents stored as ``.rs`` files
under ``<project>/Object Repository``. Parsing and building are plain
functions with no retained parser state.
"""

import logging
import re
import uuid
import xml.etree.ElementTree as ET
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..core.errors import ObjectNotFound, ValidationError
from ..core.logging_config import get_healing_logger
from ..core.models import Locator, LocatorKind

logger = logging.getLogger(__name__)

OBJECT_REPOSITORY_DIR = "Object Repository"


def parse_object_xml(content: bytes) -> ET.Element:
    """Parse a .rs document into its root element."""
    return ET.fromstring(content)


def build_object_xml(root: ET.Element) -> bytes:
    """Serialise a .rs root element with an XML declaration."""
    ET.indent(root, space="   ")
    return ET.tostring(root, encoding="UTF-8", xml_declaration=True)


def sanitize_object_name(object_name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", object_name)


def _text_child(parent: ET.Element, tag: str, text: Any) -> ET.Element:
    child = ET.SubElement(parent, tag)
    child.text = str(text).lower() if isinstance(text, bool) else str(text)
    return child


def _set_child_text(parent: ET.Element, tag: str, text: Any) -> None:
    child = parent.find(tag)
    if child is None:
        _text_child(parent, tag, text)
    else:
        child.text = str(text).lower() if isinstance(text, bool) else str(text)


class ObjectRepository:
    """Reads and updates test object locators of one project."""

    def __init__(self, project_path: str):
        self.project_path = Path(project_path)
        self.repository_path = self.project_path / OBJECT_REPOSITORY_DIR

    def object_path(self, object_name: str) -> Path:
        return self.repository_path / f"{sanitize_object_name(object_name)}.rs"

    def exists(self, object_name: str) -> bool:
        return self.object_path(object_name).exists()

    def create_object(
        self,
        object_name: str,
        locator: Locator,
        description: str = "",
        smart_healing_enabled: bool = False
    ) -> Path:
        """Write a new test object with a single selected locator."""
        if not object_name:
            raise ValidationError("Object name is required for creation")

        root = ET.Element("WebElementEntity")
        _text_child(root, "description", description)
        _text_child(root, "name", object_name)
        _text_child(root, "tag", "")
        _text_child(root, "elementGuidId", str(uuid.uuid4()))
        _text_child(root, "selectorMethod", "BASIC")
        _text_child(root, "useRalativeImagePath", False)
        properties = ET.SubElement(root, "webElementProperties")
        self._append_property(properties, locator, selected=True)
        if smart_healing_enabled:
            metadata = ET.SubElement(root, "healingMetadata")
            _text_child(metadata, "enabled", True)

        path = self.object_path(object_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(build_object_xml(root))
        logger.info(f"Created object {object_name} at {path}")
        return path

    def get_locator(self, object_name: str) -> Locator:
        """Selected locator of an object, or its first one.

        Properties whose name is not a selector kind (text, title, href, ...)
        are skipped.

        Raises:
            ObjectNotFound: If the object file or its locators are missing
            ValidationError: If no property names a supported selector kind
        """
        root = self._read(object_name)
        properties = self._properties(root)
        if not properties:
            raise ObjectNotFound(object_name)

        known_kinds = {kind.value for kind in LocatorKind}
        locators = [p for p in properties if p.get("name") in known_kinds]
        if not locators:
            raise ValidationError(f"Object \"{object_name}\" has no selector property of a supported kind")

        selected = next((p for p in locators if p.get("isSelected") == "true"), locators[0])
        return Locator(LocatorKind(selected.get("name")), selected.findtext("value", ""))

    def set_locator(self, object_name: str, kind: LocatorKind, locator: Locator) -> None:
        """Store a healed locator under ``kind`` and make it the selected one.

        Raises:
            ObjectNotFound: If the object does not exist
        """
        healing_logger = get_healing_logger("object_repository", object_name)
        root = self._read(object_name)
        properties_root = root.find("webElementProperties")
        if properties_root is None:
            properties_root = ET.SubElement(root, "webElementProperties")

        previous = None
        target = None
        for prop in properties_root.findall("WebElementProperty"):
            if prop.get("isSelected") == "true" and previous is None:
                previous = prop.findtext("value")
            if prop.get("name") == kind.value:
                target = prop
            prop.set("isSelected", "false")

        if target is None:
            target = self._append_property(properties_root, Locator(kind, locator.value), selected=True)
        else:
            _set_child_text(target, "value", locator.value)
            target.set("isSelected", "true")

        history = root.find("healingHistory")
        if history is None:
            history = ET.SubElement(root, "healingHistory")
        entry = ET.SubElement(history, "entry")
        _text_child(entry, "timestamp", datetime.now().isoformat())
        _text_child(entry, "originalSelector", previous or "")
        _text_child(entry, "healedSelector", locator.value)
        _text_child(entry, "strategy", "smart_healing")

        self._write(object_name, root)
        healing_logger.info(f"Updated {kind.value} locator to {locator.value}")

    def update_healing_settings(
        self,
        object_name: str,
        enabled: Optional[bool] = None,
        strategies: Optional[List[str]] = None,
        confidence_threshold: Optional[float] = None
    ) -> Dict[str, Any]:
        """Store per-object healing metadata and return the merged settings.

        Raises:
            ObjectNotFound: If the object does not exist
        """
        root = self._read(object_name)
        metadata = root.find("healingMetadata")
        if metadata is None:
            metadata = ET.SubElement(root, "healingMetadata")

        if enabled is not None:
            _set_child_text(metadata, "enabled", enabled)
        if confidence_threshold is not None:
            _set_child_text(metadata, "confidenceThreshold", confidence_threshold)
        if strategies is not None:
            existing = metadata.find("strategies")
            if existing is not None:
                metadata.remove(existing)
            strategies_el = ET.SubElement(metadata, "strategies")
            for name in strategies:
                _text_child(strategies_el, "strategy", name)
        _set_child_text(metadata, "lastUpdated", datetime.now().isoformat())

        self._write(object_name, root)
        return self.healing_settings(object_name)

    def healing_settings(self, object_name: str) -> Dict[str, Any]:
        """Per-object healing metadata as a dictionary."""
        metadata = self._read(object_name).find("healingMetadata")
        if metadata is None:
            return {}

        result: Dict[str, Any] = {}
        if metadata.find("enabled") is not None:
            result["enabled"] = metadata.findtext("enabled") == "true"
        if metadata.find("confidenceThreshold") is not None:
            result["confidenceThreshold"] = float(metadata.findtext("confidenceThreshold"))
        if metadata.find("strategies") is not None:
            result["strategies"] = [s.text for s in metadata.find("strategies").findall("strategy")]
        if metadata.find("lastUpdated") is not None:
            result["lastUpdated"] = metadata.findtext("lastUpdated")
        return result

    def _read(self, object_name: str) -> ET.Element:
        path = self.object_path(object_name)
        if not path.exists():
            raise ObjectNotFound(object_name)
        try:
            return parse_object_xml(path.read_bytes())
        except ET.ParseError as e:
            raise ValidationError(f"Object \"{object_name}\" is not a valid test object: {e}") from e

    def _write(self, object_name: str, root: ET.Element) -> None:
        self.object_path(object_name).write_bytes(build_object_xml(root))

    @staticmethod
    def _properties(root: ET.Element) -> List[ET.Element]:
        return root.findall("webElementProperties/WebElementProperty")

    @staticmethod
    def _append_property(parent: ET.Element, locator: Locator, selected: bool) -> ET.Element:
        prop = ET.SubElement(parent, "WebElementProperty", {
            "isSelected": "true" if selected else "false",
            "name": locator.kind.value,
        })
        _text_child(prop, "matchCondition", "equals")
        _text_child(prop, "name", locator.kind.value)
        _text_child(prop, "type", "Main")
        _text_child(prop, "value", locator.value)
        return prop
