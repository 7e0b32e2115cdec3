"""
Nearest-wins conflict resolution.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional, Set

from .errors import ConflictResolutionError
from .models import (
    CoordinateKey,
    DependencyGraph,
    GraphNode,
    ResolvedEntry,
    ResolvedSet,
    Scope,
)
from .overlay import BuildArtifactOverlay


logger = logging.getLogger(__name__)

# Strongest scope first.
SCOPE_STRENGTH = [
    Scope.COMPILE,
    Scope.RUNTIME,
    Scope.SYSTEM,
    Scope.PROVIDED,
    Scope.TEST,
    Scope.IMPORT,
]


class ConflictResolver:
    """Select one version per identity key.

    Nodes are ranked by depth, then by the sibling indices of their path, so
    at equal depth the path declared first at the point of divergence wins.
    A node is only a candidate when its parent was itself selected; losers
    take their subtree with them.
    A transitive winner takes the strongest scope among the live candidates
    for its key, before any scope filter applies.
    """

    def __init__(
        self,
        overlay: Optional[BuildArtifactOverlay] = None,
        scope_filter: Optional[FrozenSet[Scope]] = None,
    ) -> None:
        self.overlay = overlay
        self.scope_filter = scope_filter

    def select(self, graph: DependencyGraph) -> Dict[CoordinateKey, GraphNode]:
        """Return the winning node for every identity key."""
        self._check(graph)
        winners: Dict[CoordinateKey, GraphNode] = {}
        selected: Set[int] = set()

        for node in sorted(graph.nodes, key=lambda n: (n.depth, n.path)):
            if node.parent is not None and node.parent not in selected:
                continue
            key = node.coordinate.key
            if key in winners:
                logger.debug(
                    "%s omitted for conflict with %s",
                    node.coordinate.notation, winners[key].coordinate.version,
                )
                continue
            winners[key] = node
            selected.add(node.id)
        return winners

    def resolve(self, graph: DependencyGraph) -> ResolvedSet:
        winners = self.select(graph)
        selected = {node.id for node in winners.values()}
        candidates = self._live_candidates(graph, selected)

        resolved = ResolvedSet()
        for node in self._preorder(graph, selected):
            key = node.coordinate.key
            scope = self._mediate_scope(node, candidates[key])
            if self.scope_filter is not None and scope not in self.scope_filter:
                continue
            resolved.add(ResolvedEntry(
                coordinate=node.coordinate,
                scope=scope,
                optional=all(c.optional for c in candidates[key]),
                depth=node.depth,
            ))

        if self.overlay is not None:
            self._apply_overlay(resolved)

        logger.info("Resolved %d of %d collected nodes", len(resolved), len(graph))
        return resolved

    def _live_candidates(self, graph: DependencyGraph, selected: Set[int]) -> Dict[CoordinateKey, List[GraphNode]]:
        """Group the nodes whose parent survived selection by identity key."""
        candidates: Dict[CoordinateKey, List[GraphNode]] = {}
        for node in graph.nodes:
            if node.parent is not None and node.parent not in selected:
                continue
            candidates.setdefault(node.coordinate.key, []).append(node)
        return candidates

    @staticmethod
    def _mediate_scope(winner: GraphNode, candidates: List[GraphNode]) -> Scope:
        """Widen a transitive winner's scope to the strongest live candidate.

        Root declarations keep the scope they were declared with.
        """
        if winner.depth <= 1:
            return winner.scope
        scope = min((c.scope for c in candidates), key=SCOPE_STRENGTH.index)
        if scope != winner.scope:
            logger.debug(
                "Scope of %s widened from %s to %s",
                winner.coordinate.notation, winner.scope.value, scope.value,
            )
        return scope

    def _preorder(self, graph: DependencyGraph, selected: Set[int]) -> List[GraphNode]:
        ordered: List[GraphNode] = []
        stack = [graph.node(i) for i in reversed(graph.roots)]
        while stack:
            node = stack.pop()
            if node.id not in selected:
                continue
            ordered.append(node)
            stack.extend(graph.node(i) for i in reversed(node.children))
        return ordered

    def _apply_overlay(self, resolved: ResolvedSet) -> None:
        for artifact in self.overlay.list():
            entry = resolved.get(artifact.coordinate.key)
            if entry is None:
                continue
            if entry.coordinate != artifact.coordinate:
                logger.info(
                    "Build artifact %s overrides resolved %s",
                    artifact.coordinate.notation, entry.coordinate.notation,
                )
            resolved.replace(ResolvedEntry(
                coordinate=artifact.coordinate,
                scope=entry.scope,
                optional=entry.optional,
                depth=entry.depth,
                build_artifact=artifact,
            ))

    @staticmethod
    def _check(graph: DependencyGraph) -> None:
        seen_paths = set()
        for position, node in enumerate(graph.nodes):
            if node.id != position:
                raise ConflictResolutionError(f"Node id {node.id} stored at position {position}")
            if node.parent is not None:
                if not 0 <= node.parent < len(graph.nodes) or node.id not in graph.nodes[node.parent].children:
                    raise ConflictResolutionError(
                        f"Node {node.coordinate.notation} has a dangling parent {node.parent}"
                    )
                if graph.nodes[node.parent].depth + 1 != node.depth:
                    raise ConflictResolutionError(f"Node {node.coordinate.notation} has an inconsistent depth")
            if (node.depth, node.path) in seen_paths:
                raise ConflictResolutionError(f"Duplicate graph path {node.path}")
            seen_paths.add((node.depth, node.path))


def resolve(
    graph: DependencyGraph,
    overlay: Optional[BuildArtifactOverlay] = None,
    scope_filter: Optional[FrozenSet[Scope]] = None,
) -> ResolvedSet:
    """Resolve `graph` into one entry per identity key."""
    return ConflictResolver(overlay, scope_filter).resolve(graph)
