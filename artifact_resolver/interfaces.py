"""
Interfaces for the collaborators of the resolver.
"""

from __future__ import annotations

from typing import List, Protocol

from .models import Coordinate, DependencyEdge


class MetadataProvider(Protocol):
    """Return the declared dependencies of a coordinate.

    Implementations raise MissingMetadataError when no metadata exists and
    TransportError when the backend cannot be reached.
    """

    def fetch_dependencies(self, coordinate: Coordinate) -> List[DependencyEdge]:
        ...


class ArtifactMaterializer(Protocol):
    """Produce a local file for a coordinate, downloading it if needed."""

    def materialize(self, coordinate: Coordinate) -> str:
        ...


class DescriptorReader(Protocol):
    """Read declared dependencies from a local descriptor file."""

    def read_dependencies(self, coordinate: Coordinate, descriptor_path: str) -> List[DependencyEdge]:
        ...
