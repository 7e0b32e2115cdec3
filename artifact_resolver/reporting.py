"""
Reporting and export utilities.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Dict, Optional

import pandas as pd

from .exporter import entry_path
from .models import ResolutionResult, ResolvedEntry


logger = logging.getLogger(__name__)

COLUMNS = [
    "notation",
    "group",
    "artifact",
    "type",
    "classifier",
    "version",
    "scope",
    "optional",
    "depth",
    "build_artifact",
    "path",
]


def resolved_frame(
    result: ResolutionResult,
    file_resolver: Optional[Callable[[ResolvedEntry], str]] = None,
) -> pd.DataFrame:
    """One row per resolved entry, in classpath order."""
    rows = []
    for entry in result.resolved:
        coordinate = entry.coordinate
        if file_resolver is not None:
            path = entry_path(entry, file_resolver)
        elif entry.build_artifact is not None:
            path = entry.build_artifact.artifact_path
        else:
            path = result.paths.get(coordinate.key)
        rows.append({
            "notation": coordinate.notation,
            "group": coordinate.group,
            "artifact": coordinate.artifact,
            "type": coordinate.type,
            "classifier": coordinate.classifier,
            "version": coordinate.version,
            "scope": entry.scope.value,
            "optional": entry.optional,
            "depth": entry.depth,
            "build_artifact": entry.build_artifact is not None,
            "path": path,
        })
    return pd.DataFrame(rows, columns=COLUMNS)


def print_summary(result: ResolutionResult) -> None:
    df = resolved_frame(result)
    logger.info("=" * 60)
    logger.info("RESOLUTION RESULTS")
    logger.info("=" * 60)
    logger.info("Collected nodes: %s", len(result.graph))
    logger.info("Resolved dependencies: %s", len(df))
    if len(df) > 0:
        for scope, count in df["scope"].value_counts().sort_index().items():
            logger.info("  %s: %s", scope, count)
    logger.info("Cycles: %s", len(result.cycles))
    logger.info("Metadata errors: %s", len(result.errors))
    logger.info("=" * 60)


def export_resolved_csv(result: ResolutionResult, output_dir: Path, name: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    csv_file = output_dir / f"{name}_resolved.csv"
    resolved_frame(result).to_csv(csv_file, index=False)
    return csv_file


def save_graph_json(graph: Dict[str, Dict], output_dir: Path, name: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    graph_file = output_dir / f"{name}_graph.json"
    with open(graph_file, 'w') as f:
        json.dump(graph, f, indent=2)
    return graph_file


def save_errors_json(result: ResolutionResult, output_dir: Path, name: str) -> Optional[Path]:
    if not result.errors:
        return None
    output_dir.mkdir(parents=True, exist_ok=True)
    errors_file = output_dir / f"{name}_errors.json"
    records = [
        {
            "coordinate": getattr(getattr(error, "coordinate", None), "notation", None),
            "error": type(error).__name__,
            "message": str(error),
        }
        for error in result.errors
    ]
    with open(errors_file, 'w') as f:
        json.dump(records, f, indent=2)
    return errors_file
