import json
from pathlib import Path

import pandas as pd

from artifact_resolver.collector import collect
from artifact_resolver.conflicts import resolve
from artifact_resolver.errors import MissingMetadataError
from artifact_resolver.models import ResolutionResult
from artifact_resolver.notation import parse
from artifact_resolver.reporting import (
    COLUMNS,
    export_resolved_csv,
    resolved_frame,
    save_errors_json,
    save_graph_json,
)


def _result(provider_factory, edge, errors=()):
    provider = provider_factory({"g:a:1": [("g:b:1", "runtime")], "g:b:1": []})
    graph = collect([edge("g:a:1")], provider).graph
    resolved = resolve(graph)
    paths = {parse("g:a:1").key: "/repo/a-1.jar"}
    return ResolutionResult(graph=graph, resolved=resolved, paths=paths, errors=tuple(errors))


def test_resolved_frame(provider_factory, edge):
    df = resolved_frame(_result(provider_factory, edge))

    assert list(df.columns) == COLUMNS
    assert list(df["notation"]) == ["g:a:jar:1", "g:b:jar:1"]
    assert list(df["scope"]) == ["compile", "runtime"]
    assert list(df["depth"]) == [1, 2]
    assert df.loc[0, "path"] == "/repo/a-1.jar"
    assert pd.isna(df.loc[1, "path"])


def test_resolved_frame_with_file_resolver(provider_factory, edge):
    df = resolved_frame(_result(provider_factory, edge), lambda entry: f"/x/{entry.coordinate.artifact}")

    assert list(df["path"]) == ["/x/a", "/x/b"]


def test_reporting_exports(tmp_path: Path, provider_factory, edge):
    output_dir = tmp_path / "out"
    result = _result(provider_factory, edge, [MissingMetadataError(parse("g:c:1"))])

    csv_file = export_resolved_csv(result, output_dir, "demo")
    graph_file = save_graph_json({"g:a:jar:1": {}}, output_dir, "demo")
    errors_file = save_errors_json(result, output_dir, "demo")

    assert csv_file == output_dir / "demo_resolved.csv"
    assert len(pd.read_csv(csv_file)) == 2
    assert json.loads(graph_file.read_text()) == {"g:a:jar:1": {}}
    (record,) = json.loads(errors_file.read_text())
    assert record["coordinate"] == "g:c:jar:1"
    assert record["error"] == "MissingMetadataError"


def test_no_errors_file_without_errors(tmp_path: Path, provider_factory, edge):
    assert save_errors_json(_result(provider_factory, edge), tmp_path, "demo") is None
    assert not (tmp_path / "demo_errors.json").exists()
