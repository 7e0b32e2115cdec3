"""
Core data models for dependency resolution.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

from .errors import ConflictResolutionError, NotationError


CoordinateKey = Tuple[str, str, str, Optional[str]]
Exclusion = Tuple[str, str]


class Scope(str, Enum):
    """Declared usage context of a dependency."""

    COMPILE = "compile"
    RUNTIME = "runtime"
    PROVIDED = "provided"
    TEST = "test"
    SYSTEM = "system"
    IMPORT = "import"

    @classmethod
    def parse(cls, value) -> "Scope":
        if isinstance(value, Scope):
            return value
        if not value:
            return cls.COMPILE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise NotationError(f"Unknown scope: {value!r}") from None


@dataclass(frozen=True)
class Coordinate:
    """An artifact coordinate: group, artifact, type, classifier and version."""

    group: str
    artifact: str
    type: str
    version: str
    classifier: Optional[str] = None

    @property
    def key(self) -> CoordinateKey:
        """Identity used to detect competing versions."""
        return (self.group, self.artifact, self.type, self.classifier)

    @property
    def notation(self) -> str:
        fields = [self.group, self.artifact, self.type]
        if self.classifier:
            fields.append(self.classifier)
        fields.append(self.version)
        return ":".join(fields)

    def with_version(self, version: str) -> "Coordinate":
        return Coordinate(self.group, self.artifact, self.type, version, self.classifier)

    def __str__(self) -> str:
        return self.notation


@dataclass(frozen=True)
class DependencyEdge:
    """A declared dependency from one coordinate to another."""

    to: Coordinate
    scope: Scope = Scope.COMPILE
    optional: bool = False
    exclusions: FrozenSet[Exclusion] = frozenset()
    source: Optional[Coordinate] = None


def is_excluded(coordinate: Coordinate, exclusions: FrozenSet[Exclusion]) -> bool:
    """Return True if (group, artifact) matches an exclusion, `*` matching anything."""
    for group, artifact in exclusions:
        if group in ("*", coordinate.group) and artifact in ("*", coordinate.artifact):
            return True
    return False


@dataclass
class GraphNode:
    """A node of the collected dependency graph.

    `path` holds the sibling index taken at each level from the synthetic
    root, so its first element is the declaration order.
    """

    id: int
    coordinate: Coordinate
    scope: Scope
    depth: int
    path: Tuple[int, ...]
    parent: Optional[int] = None
    optional: bool = False
    exclusions: FrozenSet[Exclusion] = frozenset()
    children: List[int] = field(default_factory=list)

    @property
    def declaration_order(self) -> int:
        return self.path[0]


@dataclass
class DependencyGraph:
    """Arena of graph nodes referenced by id."""

    nodes: List[GraphNode] = field(default_factory=list)
    roots: List[int] = field(default_factory=list)
    cycles: List[Tuple[Coordinate, ...]] = field(default_factory=list)

    def add_node(
        self,
        coordinate: Coordinate,
        scope: Scope,
        parent: Optional[GraphNode],
        index: int,
        optional: bool,
        exclusions: FrozenSet[Exclusion],
    ) -> GraphNode:
        node = GraphNode(
            id=len(self.nodes),
            coordinate=coordinate,
            scope=scope,
            depth=1 if parent is None else parent.depth + 1,
            path=(index,) if parent is None else parent.path + (index,),
            parent=None if parent is None else parent.id,
            optional=optional,
            exclusions=exclusions,
        )
        self.nodes.append(node)
        if parent is None:
            self.roots.append(node.id)
        else:
            parent.children.append(node.id)
        return node

    def node(self, node_id: int) -> GraphNode:
        return self.nodes[node_id]

    def ancestors(self, node: GraphNode) -> List[GraphNode]:
        """Return the chain from the root-declared node down to `node`."""
        chain = [node]
        while chain[-1].parent is not None:
            chain.append(self.nodes[chain[-1].parent])
        chain.reverse()
        return chain

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass(frozen=True)
class BuildArtifact:
    """A locally built artifact that overrides resolution for its key."""

    coordinate: Coordinate
    artifact_path: str
    descriptor_path: Optional[str] = None


@dataclass(frozen=True)
class ResolvedEntry:
    """The winning coordinate for one identity key."""

    coordinate: Coordinate
    scope: Scope
    optional: bool = False
    depth: int = 1
    build_artifact: Optional[BuildArtifact] = None


class ResolvedSet:
    """Ordered mapping of identity key to exactly one resolved entry."""

    def __init__(self) -> None:
        self._entries: "OrderedDict[CoordinateKey, ResolvedEntry]" = OrderedDict()

    def add(self, entry: ResolvedEntry) -> None:
        if entry.coordinate.key in self._entries:
            raise ConflictResolutionError(
                f"Duplicate resolved entry for {entry.coordinate.notation}"
            )
        self._entries[entry.coordinate.key] = entry

    def replace(self, entry: ResolvedEntry) -> None:
        """Swap the entry for an existing key, keeping its position."""
        self._entries[entry.coordinate.key] = entry

    def get(self, key: CoordinateKey) -> Optional[ResolvedEntry]:
        return self._entries.get(key)

    def entries(self) -> List[ResolvedEntry]:
        return list(self._entries.values())

    def coordinates(self) -> List[Coordinate]:
        return [entry.coordinate for entry in self._entries.values()]

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[ResolvedEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ResolvedSet):
            return NotImplemented
        return list(self._entries.items()) == list(other._entries.items())

    def __repr__(self) -> str:
        return f"ResolvedSet({[e.coordinate.notation for e in self._entries.values()]})"


@dataclass(frozen=True)
class Credentials:
    """Username/password pair for a remote repository."""

    username: str
    password: str


@dataclass(frozen=True)
class RemoteRepository:
    """A remote source of metadata and artifacts."""

    id: str
    type: str
    url: str
    credentials: Optional[Credentials] = None


@dataclass(frozen=True)
class ResolutionResult:
    """Published outcome of one resolution."""

    graph: DependencyGraph
    resolved: ResolvedSet
    paths: Dict[CoordinateKey, str] = field(default_factory=dict)
    errors: Tuple[Exception, ...] = ()

    @property
    def cycles(self) -> List[Tuple[Coordinate, ...]]:
        return list(self.graph.cycles)
