"""
Artifact Resolver

Resolves artifact coordinates into a conflict-free dependency graph and exports
it as an ordered classpath and a nested dependency tree.
"""

__version__ = "0.1.0"

from .cli import main
from .config import ResolutionConfig
from .errors import (
    CollectionError,
    ConflictResolutionError,
    CyclicDependencyError,
    MaterializationError,
    MissingMetadataError,
    NotationError,
    RepositoryConfigError,
    ResolutionCancelled,
    ResolverError,
    TransportError,
)
from .models import Coordinate, DependencyEdge, Scope
from .resolver import ResolutionContext

__all__ = [
    "main",
    "CollectionError",
    "ConflictResolutionError",
    "Coordinate",
    "CyclicDependencyError",
    "DependencyEdge",
    "MaterializationError",
    "MissingMetadataError",
    "NotationError",
    "RepositoryConfigError",
    "ResolutionCancelled",
    "ResolutionConfig",
    "ResolutionContext",
    "ResolverError",
    "Scope",
    "TransportError",
]
