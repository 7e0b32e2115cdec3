"""
Breadth-first collection of the dependency graph.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from functools import partial
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .concurrency import CancellationToken, SingleFlightCache, TimedCall
from .config import ResolutionConfig
from .descriptor import PomDescriptorReader
from .errors import (
    CollectionError,
    CyclicDependencyError,
    ResolutionCancelled,
    TransportError,
)
from .interfaces import DescriptorReader, MetadataProvider
from .models import (
    Coordinate,
    CoordinateKey,
    DependencyEdge,
    DependencyGraph,
    GraphNode,
    Scope,
    is_excluded,
)
from .overlay import BuildArtifactOverlay


logger = logging.getLogger(__name__)

# Declared scopes that never reach the consumers of a dependency.
NON_TRANSITIVE_SCOPES = frozenset({Scope.TEST, Scope.PROVIDED, Scope.SYSTEM, Scope.IMPORT})
LEAF_SCOPES = frozenset({Scope.SYSTEM, Scope.IMPORT})

Outcome = Union[List[DependencyEdge], CollectionError]


def propagate_scope(parent: Optional[Scope], declared: Scope) -> Optional[Scope]:
    """Effective scope of a child edge, or None if the edge is not inherited.

    Args:
        parent: Effective scope of the parent, None for root-declared edges
        declared: Scope declared on the edge
    """
    if parent is None:
        return declared
    if declared in NON_TRANSITIVE_SCOPES:
        return None
    if parent == Scope.COMPILE:
        return declared
    if parent == Scope.RUNTIME:
        return Scope.RUNTIME
    if parent in (Scope.TEST, Scope.PROVIDED):
        return parent
    return None


@dataclass(frozen=True)
class CollectionResult:
    """Collected graph plus the metadata failures tolerated in lenient mode."""

    graph: DependencyGraph
    errors: Tuple[CollectionError, ...] = ()


class DependencyCollector:
    """Expand root dependency edges into a full dependency graph.

    Depth and path of every node are fixed when the node is enqueued, so the
    order in which concurrent fetches complete never changes the graph.
    """

    def __init__(
        self,
        config: Optional[ResolutionConfig] = None,
        overlay: Optional[BuildArtifactOverlay] = None,
        descriptor_reader: Optional[DescriptorReader] = None,
    ) -> None:
        self.config = config or ResolutionConfig()
        self.overlay = overlay
        self.descriptor_reader = descriptor_reader or PomDescriptorReader(self.config.default_type)

    def collect(
        self,
        root_edges: Sequence[DependencyEdge],
        metadata_provider: MetadataProvider,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CollectionResult:
        token = cancel_token or CancellationToken()
        token.raise_if_cancelled()

        graph = DependencyGraph()
        cache: SingleFlightCache[List[DependencyEdge]] = SingleFlightCache("metadata")
        first_seen: Dict[CoordinateKey, int] = {}
        errors: List[CollectionError] = []
        failed = set()

        frontier: List[GraphNode] = []
        for index, edge in enumerate(root_edges):
            node = graph.add_node(edge.to, edge.scope, None, index, edge.optional, edge.exclusions)
            first_seen.setdefault(node.coordinate.key, node.id)
            frontier.append(node)

        logger.info("Collecting dependencies for %d root coordinates", len(frontier))
        executor = ThreadPoolExecutor(
            max_workers=self.config.fetch_concurrency,
            thread_name_prefix="metadata",
        )
        try:
            while frontier:
                token.raise_if_cancelled()
                expandable = [n for n in frontier if self._expands(n, first_seen)]
                outcomes = self._fetch_level(expandable, metadata_provider, cache, executor, token)
                token.raise_if_cancelled()

                next_frontier: List[GraphNode] = []
                for node in expandable:
                    outcome = outcomes[node.coordinate]
                    if isinstance(outcome, CollectionError):
                        if not self.config.lenient_metadata:
                            raise outcome
                        if node.coordinate not in failed:
                            failed.add(node.coordinate)
                            errors.append(outcome)
                            logger.warning("Skipping %s: %s", node.coordinate.notation, outcome)
                        continue

                    ancestor_keys = [n.coordinate.key for n in graph.ancestors(node)]
                    for index, edge in enumerate(outcome):
                        child = self._enqueue(graph, node, ancestor_keys, index, edge)
                        if child is not None:
                            first_seen.setdefault(child.coordinate.key, child.id)
                            next_frontier.append(child)
                frontier = next_frontier
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        for cycle in self._repeat_cycles(graph):
            if self.config.strict_acyclic:
                raise CyclicDependencyError(cycle)
            logger.info("Cycle detected: %s", " -> ".join(c.notation for c in cycle))
            graph.cycles.append(cycle)

        logger.info(
            "Collected %d nodes (%d cycles, %d metadata errors)",
            len(graph), len(graph.cycles), len(errors),
        )
        return CollectionResult(graph=graph, errors=tuple(errors))

    @staticmethod
    def _repeat_cycles(graph: DependencyGraph) -> List[Tuple[Coordinate, ...]]:
        """Find cycles that pass through repeated, unexpanded occurrences of a key.

        Ancestor checks only see cycles along one chain. When a key reappears
        elsewhere it is left unexpanded, so a cycle closing through it is only
        visible on the key-level graph, where each key's outgoing edges are
        those of its expanded occurrence.
        """
        edges: Dict[CoordinateKey, "OrderedDict[CoordinateKey, Coordinate]"] = OrderedDict()
        for node in graph.nodes:
            edges.setdefault(node.coordinate.key, OrderedDict())
            if node.parent is not None:
                parent_key = graph.node(node.parent).coordinate.key
                edges[parent_key].setdefault(node.coordinate.key, node.coordinate)

        cycles: List[Tuple[Coordinate, ...]] = []
        done = set()
        for root_id in graph.roots:
            root = graph.node(root_id)
            if root.coordinate.key in done:
                continue
            path = [(root.coordinate.key, root.coordinate)]
            on_path = {root.coordinate.key}
            stack = [iter(edges[root.coordinate.key].items())]
            while stack:
                for key, coordinate in stack[-1]:
                    if key in on_path:
                        start = [k for k, _ in path].index(key)
                        cycles.append(tuple(c for _, c in path[start:]) + (coordinate,))
                    elif key not in done:
                        path.append((key, coordinate))
                        on_path.add(key)
                        stack.append(iter(edges[key].items()))
                        break
                else:
                    stack.pop()
                    key, _ = path.pop()
                    on_path.discard(key)
                    done.add(key)
        return cycles

    def _expands(self, node: GraphNode, first_seen: Dict[CoordinateKey, int]) -> bool:
        if node.scope in LEAF_SCOPES:
            return False
        if node.optional and self.config.ignore_optional_subtrees:
            return False
        # a later occurrence of a key always loses to the first one
        return first_seen.get(node.coordinate.key) == node.id

    def _enqueue(
        self,
        graph: DependencyGraph,
        parent: GraphNode,
        ancestor_keys: List[CoordinateKey],
        index: int,
        edge: DependencyEdge,
    ) -> Optional[GraphNode]:
        coordinate = edge.to
        scope = propagate_scope(parent.scope, edge.scope)
        if scope is None:
            logger.debug(
                "Dropping %s dependency %s of %s",
                edge.scope.value, coordinate.notation, parent.coordinate.notation,
            )
            return None

        if is_excluded(coordinate, parent.exclusions):
            logger.debug("Excluding %s below %s", coordinate.notation, parent.coordinate.notation)
            return None

        if coordinate.key in ancestor_keys:
            chain = graph.ancestors(parent)
            start = ancestor_keys.index(coordinate.key)
            cycle = tuple(n.coordinate for n in chain[start:]) + (coordinate,)
            if self.config.strict_acyclic:
                raise CyclicDependencyError(cycle)
            logger.info("Cycle detected: %s", " -> ".join(c.notation for c in cycle))
            graph.cycles.append(cycle)
            return None

        optional = edge.optional or parent.optional
        return graph.add_node(
            coordinate,
            scope,
            parent,
            index,
            optional,
            parent.exclusions | edge.exclusions,
        )

    def _fetch_level(
        self,
        nodes: Sequence[GraphNode],
        provider: MetadataProvider,
        cache: SingleFlightCache,
        executor: ThreadPoolExecutor,
        token: CancellationToken,
    ) -> Dict[Coordinate, Outcome]:
        timeout = self.config.fetch_timeout
        pending = OrderedDict()
        for node in nodes:
            coordinate = node.coordinate
            if coordinate in pending:
                continue
            loader = partial(self._load, coordinate, provider, token)
            pending[coordinate] = TimedCall(executor, cache.get_or_load, coordinate, loader, timeout)

        outcomes: Dict[Coordinate, Outcome] = {}
        for coordinate, call in pending.items():
            try:
                outcomes[coordinate] = call.result(timeout=timeout)
            except ResolutionCancelled:
                raise
            except FutureTimeout:
                outcomes[coordinate] = TransportError(
                    coordinate, f"metadata fetch timed out after {timeout}s"
                )
            except CollectionError as e:
                outcomes[coordinate] = e
            except Exception as e:
                outcomes[coordinate] = TransportError(coordinate, str(e) or type(e).__name__)
        return outcomes

    def _load(
        self,
        coordinate: Coordinate,
        provider: MetadataProvider,
        token: CancellationToken,
    ) -> List[DependencyEdge]:
        token.raise_if_cancelled()
        artifact = self.overlay.get(coordinate.key) if self.overlay is not None else None
        if artifact is not None:
            if artifact.descriptor_path is None:
                logger.debug("Build artifact %s has no descriptor, treating as leaf", coordinate.notation)
                return []
            return list(self.descriptor_reader.read_dependencies(artifact.coordinate, artifact.descriptor_path))

        logger.info("Fetching metadata for %s", coordinate.notation)
        return list(provider.fetch_dependencies(coordinate))


def collect(
    root_edges: Sequence[DependencyEdge],
    metadata_provider: MetadataProvider,
    config: Optional[ResolutionConfig] = None,
    overlay: Optional[BuildArtifactOverlay] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> CollectionResult:
    """Collect the dependency graph with a one-off collector."""
    collector = DependencyCollector(config=config, overlay=overlay)
    return collector.collect(root_edges, metadata_provider, cancel_token)
