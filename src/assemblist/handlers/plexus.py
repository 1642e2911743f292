"""Merge ``META-INF/plexus/components.xml`` component registries."""

from __future__ import annotations

import copy
import logging
import xml.etree.ElementTree as ET

from assemblist.exceptions import ArchiveCreationError
from assemblist.handlers.base import ContainerDescriptorHandler

logger = logging.getLogger(__name__)

COMPONENTS_XML_PATH = "META-INF/plexus/components.xml"


class ComponentsXmlHandler(ContainerDescriptorHandler):
    """Combines every ``components.xml`` entry into a single document.

    Components are keyed by ``role`` + ``role-hint``; when two inputs
    declare the same key, the first declaration wins. The merged output is::

        <component-set>
          <components>
            <component>
              <role>...</role>
              <role-hint>...</role-hint>
              <implementation>...</implementation>
            </component>
          </components>
        </component-set>
    """

    def __init__(self) -> None:
        self.components: dict[str, ET.Element] = {}

    @property
    def name(self) -> str:
        return "plexus"

    def claims(self, path: str) -> bool:
        return path.replace("\\", "/").lstrip("/") == COMPONENTS_XML_PATH

    def accept(self, path: str, data: bytes) -> bool:
        try:
            root = ET.fromstring(data)
        except ET.ParseError as exc:
            raise ArchiveCreationError(f"Error adding {path} to the archive: {exc}") from exc
        self.add_components(root)
        return True

    def add_components(self, root: ET.Element) -> None:
        """Register every ``<component>`` found under *root*."""
        for component in root.iter("component"):
            role = (component.findtext("role") or "").strip()
            hint = (component.findtext("role-hint") or "").strip()
            key = f"{role}{hint}"
            if key in self.components:
                logger.debug("Skipping duplicate component %s", key)
                continue
            self.components[key] = copy.deepcopy(component)

    def finalize(self) -> list[tuple[str, bytes]]:
        if not self.components:
            return []
        component_set = ET.Element("component-set")
        container = ET.SubElement(component_set, "components")
        for component in self.components.values():
            container.append(copy.deepcopy(component))
        ET.indent(component_set)
        data = ET.tostring(component_set, encoding="utf-8", xml_declaration=True)
        return [(COMPONENTS_XML_PATH, data + b"\n")]

    def reset(self) -> None:
        self.components.clear()
