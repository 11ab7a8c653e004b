"""Minimal POM reading for dependency collection.

Only what graph building needs is modeled: coordinates, properties,
parent inheritance, dependency management (including ``import`` BOMs),
dependencies with scope, optional flag, classifier, type and exclusions.
Profiles, plugins and build sections are ignored.
"""
from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from depfetch.models import ArtifactCoordinate, DependencyNode, Scope

logger = logging.getLogger(__name__)

_PROPERTY_RE = re.compile(r"\$\{([^}]+)\}")
_MAX_PARENT_DEPTH = 16

# dependency <type> -> (extension, implied classifier)
_TYPE_MAP = {
    "jar": ("jar", None),
    "bundle": ("jar", None),
    "ejb": ("jar", None),
    "maven-plugin": ("jar", None),
    "test-jar": ("jar", "tests"),
    "java-source": ("jar", "sources"),
    "javadoc": ("jar", "javadoc"),
    "pom": ("pom", None),
}

ManagedKey = Tuple[str, str, str, Optional[str]]


@dataclass
class ManagedDependency:
    version: Optional[str]
    scope: Optional[str]
    exclusions: frozenset


@dataclass
class PomModel:
    """Effective view of a POM after parent and property resolution."""
    coordinate: ArtifactCoordinate
    packaging: str = "jar"
    properties: Dict[str, str] = field(default_factory=dict)
    managed: Dict[ManagedKey, ManagedDependency] = field(default_factory=dict)
    dependencies: List[DependencyNode] = field(default_factory=list)


ModelLoader = Callable[[ArtifactCoordinate, int], Optional[PomModel]]


def interpolate(text: Optional[str], properties: Dict[str, str]) -> Optional[str]:
    """Expand ``${name}`` references; unknown references are left as-is."""
    if text is None:
        return None
    value = text.strip()
    for _ in range(10):
        expanded = _PROPERTY_RE.sub(lambda m: properties.get(m.group(1), m.group(0)), value)
        if expanded == value:
            break
        value = expanded
    return value


def _strip_namespaces(root: ET.Element) -> ET.Element:
    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]
    return root


def _text(elem: Optional[ET.Element], name: str) -> Optional[str]:
    if elem is None:
        return None
    value = elem.findtext(name)
    return value.strip() if value and value.strip() else None


def _type_to_extension(dep_type: Optional[str], classifier: Optional[str]) -> Tuple[str, Optional[str]]:
    extension, implied = _TYPE_MAP.get(dep_type or "jar", (dep_type or "jar", None))
    return extension, classifier or implied


def _exclusions(elem: ET.Element, properties: Dict[str, str]) -> frozenset:
    found = set()
    for exclusion in elem.findall("exclusions/exclusion"):
        group = interpolate(_text(exclusion, "groupId"), properties)
        name = interpolate(_text(exclusion, "artifactId"), properties)
        if group and name:
            found.add((group, name))
    return frozenset(found)


def _read_dependency(elem: ET.Element, properties: Dict[str, str]):
    group = interpolate(_text(elem, "groupId"), properties)
    name = interpolate(_text(elem, "artifactId"), properties)
    if not group or not name:
        return None
    extension, classifier = _type_to_extension(
        interpolate(_text(elem, "type"), properties),
        interpolate(_text(elem, "classifier"), properties),
    )
    return {
        "group": group,
        "name": name,
        "version": interpolate(_text(elem, "version"), properties),
        "extension": extension,
        "classifier": classifier,
        "scope": interpolate(_text(elem, "scope"), properties),
        "optional": (interpolate(_text(elem, "optional"), properties) or "").lower() == "true",
        "exclusions": _exclusions(elem, properties),
        "system_path": interpolate(_text(elem, "systemPath"), properties),
        "type": interpolate(_text(elem, "type"), properties) or "jar",
    }


def parse_pom(content: bytes, loader: ModelLoader, depth: int = 0) -> PomModel:
    """Build the effective model of a POM document.

    ``loader(coordinate, depth)`` returns the model of a parent or imported
    BOM, or None when it cannot be obtained.

    Raises:
        ET.ParseError: when the document is not well-formed XML.
    """
    root = _strip_namespaces(ET.fromstring(content))

    parent_model: Optional[PomModel] = None
    parent_elem = root.find("parent")
    parent_group = _text(parent_elem, "groupId")
    parent_name = _text(parent_elem, "artifactId")
    parent_version = _text(parent_elem, "version")
    if parent_group and parent_name and parent_version:
        if depth >= _MAX_PARENT_DEPTH:
            logger.warning("Parent chain too deep at %s:%s", parent_group, parent_name)
        else:
            parent_coordinate = ArtifactCoordinate(parent_group, parent_name, parent_version, extension="pom")
            parent_model = loader(parent_coordinate, depth + 1)
            if parent_model is None:
                logger.warning("Could not load parent POM %s", parent_coordinate)

    group = _text(root, "groupId") or parent_group or ""
    name = _text(root, "artifactId") or ""
    version = _text(root, "version") or parent_version or ""

    properties: Dict[str, str] = dict(parent_model.properties) if parent_model else {}
    props_elem = root.find("properties")
    if props_elem is not None:
        for prop in props_elem:
            if isinstance(prop.tag, str):
                properties[prop.tag] = (prop.text or "").strip()
    properties.update({
        "project.groupId": group, "pom.groupId": group,
        "project.artifactId": name, "pom.artifactId": name,
        "project.version": version, "pom.version": version, "version": version,
    })
    if parent_group:
        properties["project.parent.groupId"] = parent_group
    if parent_version:
        properties["project.parent.version"] = parent_version

    model = PomModel(
        coordinate=ArtifactCoordinate(interpolate(group, properties), interpolate(name, properties),
                                      interpolate(version, properties), extension="pom"),
        packaging=_text(root, "packaging") or "jar",
        properties=properties,
        managed=dict(parent_model.managed) if parent_model else {},
    )

    for elem in root.findall("dependencyManagement/dependencies/dependency"):
        dep = _read_dependency(elem, properties)
        if dep is None:
            continue
        if dep["scope"] == Scope.IMPORT.value and dep["type"] == "pom" and dep["version"]:
            bom = loader(ArtifactCoordinate(dep["group"], dep["name"], dep["version"], extension="pom"), depth + 1)
            if bom is None:
                logger.warning("Could not import BOM %s:%s:%s", dep["group"], dep["name"], dep["version"])
                continue
            for key, managed in bom.managed.items():
                model.managed.setdefault(key, managed)
            continue
        key = (dep["group"], dep["name"], dep["extension"], dep["classifier"])
        model.managed[key] = ManagedDependency(dep["version"], dep["scope"], dep["exclusions"])

    merged: Dict[ManagedKey, DependencyNode] = {}
    if parent_model:
        for node in parent_model.dependencies:
            c = node.coordinate
            merged[(c.group, c.name, c.extension, c.classifier)] = node
    for elem in root.findall("dependencies/dependency"):
        dep = _read_dependency(elem, properties)
        if dep is None:
            continue
        key = (dep["group"], dep["name"], dep["extension"], dep["classifier"])
        managed = model.managed.get(key)
        dep_version = dep["version"] or (managed.version if managed else None)
        if not dep_version:
            logger.warning("No version for dependency %s:%s in %s", dep["group"], dep["name"], model.coordinate)
            continue
        scope = dep["scope"] or (managed.scope if managed else None)
        exclusions = dep["exclusions"] | (managed.exclusions if managed else frozenset())
        merged[key] = DependencyNode(
            coordinate=ArtifactCoordinate(dep["group"], dep["name"], dep_version,
                                          classifier=dep["classifier"], extension=dep["extension"]),
            scope=Scope.parse(scope),
            optional=dep["optional"],
            exclusions=exclusions,
            system_path=dep["system_path"],
        )
    model.dependencies = list(merged.values())
    return model
