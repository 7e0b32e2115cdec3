"""
Error taxonomy for dependency resolution.
"""

from __future__ import annotations

from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Coordinate


class ResolverError(RuntimeError):
    """Base class for resolution failures."""


class NotationError(ResolverError, ValueError):
    """Raised when coordinate or scope text is malformed."""


class RepositoryConfigError(ResolverError, ValueError):
    """Raised when a remote repository URL or definition is invalid."""


class CollectionError(ResolverError):
    """Raised when the dependency graph cannot be collected."""


class MissingMetadataError(CollectionError):
    """Raised when no repository has metadata for a coordinate."""

    def __init__(self, coordinate: "Coordinate", message: Optional[str] = None) -> None:
        self.coordinate = coordinate
        super().__init__(message or f"No metadata found for {coordinate.notation}")


class TransportError(CollectionError):
    """Raised when a collaborator fails to talk to its backend."""

    def __init__(self, coordinate: "Coordinate", message: str) -> None:
        self.coordinate = coordinate
        super().__init__(f"{coordinate.notation}: {message}")


class CyclicDependencyError(CollectionError):
    """Raised in strict-acyclic mode when a dependency cycle is found."""

    def __init__(self, cycle: Sequence["Coordinate"]) -> None:
        self.cycle = tuple(cycle)
        path = " -> ".join(c.notation for c in self.cycle)
        super().__init__(f"Dependency cycle detected: {path}")


class ResolutionCancelled(CollectionError):
    """Raised when a resolution is cancelled before it completes."""


class ConflictResolutionError(ResolverError):
    """Raised when the resolved graph violates an internal invariant."""


class MaterializationError(ResolverError):
    """Raised when an artifact file cannot be downloaded or cached."""

    def __init__(self, coordinate: "Coordinate", message: str) -> None:
        self.coordinate = coordinate
        super().__init__(f"{coordinate.notation}: {message}")
