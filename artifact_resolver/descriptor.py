"""
Read declared dependencies from Maven POM descriptors.

Only the top-level ``<dependencies>`` block is read. Parent POMs,
dependency management and profiles are not evaluated.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional

from .errors import MissingMetadataError, NotationError
from .models import Coordinate, DependencyEdge, Scope
from .notation import DEFAULT_TYPE


logger = logging.getLogger(__name__)

_PROPERTY = re.compile(r"\$\{([^}]+)\}")


def _local(tag: str) -> str:
    """Strip the XML namespace from a tag."""
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _text(element: ET.Element, name: str) -> Optional[str]:
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def _properties(project: ET.Element, coordinate: Optional[Coordinate]) -> Dict[str, str]:
    props: Dict[str, str] = {}
    parent = _child(project, "parent")
    group = _text(project, "groupId") or (parent is not None and _text(parent, "groupId")) or None
    version = _text(project, "version") or (parent is not None and _text(parent, "version")) or None
    if coordinate is not None:
        group = group or coordinate.group
        version = version or coordinate.version
    if group:
        props["project.groupId"] = props["pom.groupId"] = group
    if version:
        props["project.version"] = props["pom.version"] = version

    block = _child(project, "properties")
    if block is not None:
        for prop in block:
            if prop.text is not None:
                props[_local(prop.tag)] = prop.text.strip()
    return props


def _interpolate(value: Optional[str], props: Dict[str, str]) -> Optional[str]:
    if value is None:
        return None
    # properties may reference other properties
    for _ in range(10):
        replaced = _PROPERTY.sub(lambda m: props.get(m.group(1), m.group(0)), value)
        if replaced == value:
            break
        value = replaced
    return value


def parse_pom_dependencies(
    pom_xml: str,
    source: Optional[Coordinate] = None,
    default_type: str = DEFAULT_TYPE,
) -> List[DependencyEdge]:
    """Parse the dependency edges declared by a POM document.

    Args:
        pom_xml: POM document text
        source: Coordinate the POM describes, used as edge source and
            as fallback for ``${project.*}`` properties
        default_type: Type used when a dependency declares none

    Returns:
        Edges in declaration order
    """
    project = ET.fromstring(pom_xml)
    props = _properties(project, source)

    dependencies = _child(project, "dependencies")
    if dependencies is None:
        return []

    edges: List[DependencyEdge] = []
    for dep in dependencies:
        if _local(dep.tag) != "dependency":
            continue
        group = _interpolate(_text(dep, "groupId"), props)
        artifact = _interpolate(_text(dep, "artifactId"), props)
        version = _interpolate(_text(dep, "version"), props)
        if not group or not artifact or not version or "${" in version:
            logger.warning(
                "Skipping dependency %s:%s without a usable version in %s",
                group, artifact, source.notation if source else "descriptor",
            )
            continue

        exclusions = set()
        block = _child(dep, "exclusions")
        if block is not None:
            for exclusion in block:
                ex_group = _text(exclusion, "groupId") or "*"
                ex_artifact = _text(exclusion, "artifactId") or "*"
                exclusions.add((ex_group, ex_artifact))

        edges.append(DependencyEdge(
            to=Coordinate(
                group=group,
                artifact=artifact,
                type=_interpolate(_text(dep, "type"), props) or default_type,
                version=version,
                classifier=_interpolate(_text(dep, "classifier"), props),
            ),
            scope=Scope.parse(_interpolate(_text(dep, "scope"), props)),
            optional=(_text(dep, "optional") or "").lower() == "true",
            exclusions=frozenset(exclusions),
            source=source,
        ))
    return edges


class PomDescriptorReader:
    """DescriptorReader for POM files on disk."""

    def __init__(self, default_type: str = DEFAULT_TYPE) -> None:
        self.default_type = default_type

    def read_dependencies(self, coordinate: Coordinate, descriptor_path: str) -> List[DependencyEdge]:
        path = Path(descriptor_path)
        logger.info("Reading dependencies of %s from %s", coordinate.notation, path)
        try:
            pom_xml = path.read_text(encoding="utf-8")
            return parse_pom_dependencies(pom_xml, coordinate, self.default_type)
        except (OSError, ET.ParseError, NotationError) as e:
            raise MissingMetadataError(
                coordinate, f"Cannot read descriptor {path} for {coordinate.notation}: {e}"
            ) from e
