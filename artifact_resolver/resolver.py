"""
Resolution context tying collection, conflict resolution and export together.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import requests

from .collector import DependencyCollector
from .concurrency import CancellationToken
from .config import ResolutionConfig
from .conflicts import ConflictResolver
from .descriptor import PomDescriptorReader
from .exporter import (
    classpath,
    classpath_string,
    dependencies_notation,
    dependencies_path,
    entry_path,
    structural_graph,
)
from .interfaces import ArtifactMaterializer, DescriptorReader, MetadataProvider
from .materializer import MaterializationCoordinator
from .models import (
    BuildArtifact,
    Coordinate,
    DependencyEdge,
    RemoteRepository,
    ResolutionResult,
    ResolvedEntry,
    Scope,
)
from .notation import coerce
from .overlay import BuildArtifactOverlay
from .remote import LocalRepository, RemoteArtifactMaterializer, RemoteMetadataProvider
from .repositories import RepositoryRegistry


logger = logging.getLogger(__name__)

# Scopes whose artifacts are never fetched from a repository.
UNFETCHED_SCOPES = frozenset({Scope.SYSTEM, Scope.IMPORT})

ExclusionSpec = Union[str, Tuple[str, str]]


def _parse_exclusion(value: ExclusionSpec) -> Tuple[str, str]:
    if isinstance(value, str):
        group, _, artifact = value.partition(":")
        return (group or "*", artifact or "*")
    group, artifact = value
    return (group or "*", artifact or "*")


class ResolutionContext:
    """Caller-owned state for resolving a set of dependencies.

    Holds the declared dependencies, remote repositories, build artifacts and
    configuration. Each call to resolve_dependencies() builds a fresh result
    and publishes it only on success.
    """

    def __init__(
        self,
        config: Optional[ResolutionConfig] = None,
        metadata_provider: Optional[MetadataProvider] = None,
        materializer: Optional[ArtifactMaterializer] = None,
        descriptor_reader: Optional[DescriptorReader] = None,
        local_repo_path: Optional[Union[str, Path]] = None,
        include_central: bool = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config or ResolutionConfig()
        self.registry = RepositoryRegistry(include_central=include_central)
        self.overlay = BuildArtifactOverlay()
        self.descriptor_reader = descriptor_reader or PomDescriptorReader(self.config.default_type)
        self.local_repository = LocalRepository(local_repo_path)
        self.session = session
        self._metadata_provider = metadata_provider
        self._materializer = materializer
        self._coordinator: Optional[MaterializationCoordinator] = None
        self._dependencies: List[DependencyEdge] = []
        self._result: Optional[ResolutionResult] = None
        self._lock = threading.Lock()

    # Dependencies

    def add_dependency(
        self,
        notation: Union[str, Coordinate],
        scope: Union[str, Scope] = Scope.COMPILE,
        optional: bool = False,
        exclusions: Iterable[ExclusionSpec] = (),
    ) -> DependencyEdge:
        """Declare a root dependency by notation and scope."""
        edge = DependencyEdge(
            to=coerce(notation, self.config.default_type),
            scope=Scope.parse(scope),
            optional=optional,
            exclusions=frozenset(_parse_exclusion(e) for e in exclusions),
        )
        return self.add_dependency_edge(edge)

    def add_dependency_edge(self, edge: DependencyEdge) -> DependencyEdge:
        self._dependencies.append(edge)
        return edge

    def clear_dependencies(self) -> None:
        self._dependencies = []

    def dependencies(self) -> List[DependencyEdge]:
        return list(self._dependencies)

    # Build artifacts

    def add_build_artifact(
        self,
        notation: Union[str, Coordinate],
        artifact_path: Union[str, Path],
        descriptor_path: Optional[Union[str, Path]] = None,
    ) -> BuildArtifact:
        """Register a locally built artifact that overrides resolution."""
        return self.overlay.add(notation, artifact_path, descriptor_path, self.config.default_type)

    def clear_build_artifacts(self) -> None:
        self.overlay.clear()

    def build_artifacts(self) -> List[BuildArtifact]:
        return self.overlay.list()

    # Repositories

    def add_remote_repository_by_url(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> RemoteRepository:
        return self.registry.add_url(url, username, password)

    def add_remote_repository(self, repo_id: str, repo_type: str, url: str) -> RemoteRepository:
        return self.registry.add(repo_id, repo_type, url)

    def clear_remote_repositories(self) -> None:
        self.registry.clear()

    def remote_repositories(self) -> List[RemoteRepository]:
        return self.registry.list()

    def remote_repository_urls(self) -> List[str]:
        return self.registry.urls()

    @property
    def local_repo_path(self) -> Path:
        return self.local_repository.path

    @local_repo_path.setter
    def local_repo_path(self, path: Union[str, Path]) -> None:
        self.local_repository = LocalRepository(path)
        self._coordinator = None

    # Resolution

    @property
    def result(self) -> Optional[ResolutionResult]:
        """The last successfully published result."""
        with self._lock:
            return self._result

    def resolve_dependencies(
        self,
        download_artifacts: Optional[bool] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ResolutionResult:
        """Collect, resolve and optionally materialize the declared dependencies.

        Args:
            download_artifacts: Override config.download_artifacts
            cancel_token: Signal that stops the resolution

        Returns:
            The newly published ResolutionResult

        Raises:
            CollectionError: On strict-mode metadata failures, cycles or cancellation
            MaterializationError: When an artifact cannot be downloaded
        """
        download = self.config.download_artifacts if download_artifacts is None else download_artifacts
        token = cancel_token or CancellationToken()
        roots = list(self._dependencies)

        logger.info("Local repository: %s", self.local_repository.path)
        logger.info("Remote repositories:")
        for repository in self.registry.list():
            logger.info("  %s (%s)", repository.id, repository.url)

        collector = DependencyCollector(self.config, self.overlay, self.descriptor_reader)
        collection = collector.collect(roots, self._provider(), token)

        resolved = ConflictResolver(self.overlay, self.config.scope_filter).resolve(collection.graph)

        paths: Dict = {}
        for entry in resolved:
            if entry.build_artifact is not None:
                paths[entry.coordinate.key] = entry.build_artifact.artifact_path

        if download:
            logger.info("Resolving dependencies to files")
            wanted = [
                entry.coordinate
                for entry in resolved
                if entry.build_artifact is None and entry.scope not in UNFETCHED_SCOPES
            ]
            materialized = self._materialization().materialize_all(wanted, token)
            for coordinate, path in materialized.items():
                paths[coordinate.key] = path

        token.raise_if_cancelled()
        result = ResolutionResult(
            graph=collection.graph,
            resolved=resolved,
            paths=paths,
            errors=collection.errors,
        )
        with self._lock:
            self._result = result
        logger.debug("Setting resolved dependencies: %s", dependencies_notation(resolved))
        return result

    def download_artifacts(
        self,
        notations: Sequence[Union[str, Coordinate]],
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[str]:
        """Materialize arbitrary coordinates, returning paths in input order."""
        coordinates = [coerce(n, self.config.default_type) for n in notations]
        wanted = [c for c in coordinates if self.overlay.get(c.key) is None]
        materialized = self._materialization().materialize_all(wanted, cancel_token)

        paths = []
        for coordinate in coordinates:
            artifact = self.overlay.get(coordinate.key)
            paths.append(artifact.artifact_path if artifact is not None else materialized[coordinate])
        return paths

    # Export

    def current_dependencies(self) -> List[Union[ResolvedEntry, DependencyEdge]]:
        """Resolved entries after a resolution, declared edges before."""
        result = self.result
        if result is None:
            return self.dependencies()
        return result.resolved.entries()

    def file_for(self, entry: ResolvedEntry) -> str:
        result = self.result
        if result is not None and entry.coordinate.key in result.paths:
            return result.paths[entry.coordinate.key]
        return str(self.local_repository.path_for(entry.coordinate))

    def classpath(self) -> List[str]:
        result = self.result
        if result is None:
            return []
        return classpath(result.resolved, self.file_for, self.config.include_optional_in_classpath)

    def resolved_classpath(self) -> str:
        return classpath_string(self.classpath())

    def dependencies_notation(self) -> List[str]:
        result = self.result
        if result is None:
            return [edge.to.notation for edge in self._dependencies]
        return dependencies_notation(result.resolved)

    def dependencies_path(self) -> Dict[str, str]:
        result = self.result
        if result is None:
            return {}
        return dependencies_path(result.resolved, self.file_for)

    def dependencies_graph(self) -> Dict[str, Dict]:
        result = self.result
        if result is None:
            return {}
        return structural_graph(result.graph, result.resolved)

    def path_of(self, notation: Union[str, Coordinate]) -> Optional[str]:
        """Local path of a resolved coordinate, None if it was not resolved."""
        result = self.result
        if result is None:
            return None
        entry = result.resolved.get(coerce(notation, self.config.default_type).key)
        return None if entry is None else entry_path(entry, self.file_for)

    def _provider(self) -> MetadataProvider:
        if self._metadata_provider is not None:
            return self._metadata_provider
        return RemoteMetadataProvider(
            self.registry,
            session=self.session,
            timeout=self.config.fetch_timeout,
            default_type=self.config.default_type,
        )

    def _materialization(self) -> MaterializationCoordinator:
        if self._coordinator is None:
            materializer = self._materializer or RemoteArtifactMaterializer(
                self.registry,
                self.local_repository,
                session=self.session,
                timeout=self.config.fetch_timeout,
            )
            self._coordinator = MaterializationCoordinator(
                materializer,
                max_workers=self.config.fetch_concurrency,
                timeout=self.config.fetch_timeout,
            )
        return self._coordinator
