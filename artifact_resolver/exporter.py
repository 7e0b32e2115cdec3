"""
Export resolved dependencies as a classpath and as a nested graph.
"""

from __future__ import annotations

import os
from typing import Callable, Dict, List, Optional

from .conflicts import ConflictResolver
from .models import DependencyGraph, GraphNode, ResolvedEntry, ResolvedSet


FileResolver = Callable[[ResolvedEntry], str]


def entry_path(entry: ResolvedEntry, file_resolver: FileResolver) -> str:
    """Local path of an entry, build artifacts using their own file."""
    if entry.build_artifact is not None:
        return entry.build_artifact.artifact_path
    return str(file_resolver(entry))


def classpath(
    resolved: ResolvedSet,
    file_resolver: FileResolver,
    include_optional: bool = True,
) -> List[str]:
    """Ordered file paths, one per resolved entry."""
    return [
        entry_path(entry, file_resolver)
        for entry in resolved
        if include_optional or not entry.optional
    ]


def classpath_string(paths: List[str]) -> str:
    return os.pathsep.join(paths)


def dependencies_notation(resolved: ResolvedSet) -> List[str]:
    return [entry.coordinate.notation for entry in resolved]


def dependencies_path(resolved: ResolvedSet, file_resolver: FileResolver) -> Dict[str, str]:
    """Map each resolved notation to its local file path."""
    return {
        entry.coordinate.notation: entry_path(entry, file_resolver)
        for entry in resolved
    }


def structural_graph(
    graph: DependencyGraph,
    resolved: ResolvedSet,
    winners: Optional[Dict] = None,
) -> Dict[str, Dict]:
    """Nested mapping of notation to children, with resolved versions.

    The parent/child shape of `graph` is kept. Only the winning occurrence of
    a key lists its children; other occurrences render as leaves. Nodes whose
    key is not in `resolved` are pruned together with their subtree.
    """
    if winners is None:
        winners = ConflictResolver().select(graph)
    winning_ids = {node.id for node in winners.values()}

    def render(node: GraphNode, out: Dict[str, Dict]) -> None:
        entry = resolved.get(node.coordinate.key)
        if entry is None:
            return
        children: Dict[str, Dict] = out.setdefault(entry.coordinate.notation, {})
        if node.id not in winning_ids:
            return
        for child_id in node.children:
            render(graph.node(child_id), children)

    tree: Dict[str, Dict] = {}
    for root_id in graph.roots:
        render(graph.node(root_id), tree)
    return tree
