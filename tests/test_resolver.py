"""Tests for the resolution context."""

import pytest

from artifact_resolver.concurrency import CancellationToken
from artifact_resolver.config import ResolutionConfig
from artifact_resolver.errors import (
    CyclicDependencyError,
    MaterializationError,
    MissingMetadataError,
    NotationError,
    ResolutionCancelled,
)
from artifact_resolver.models import DependencyEdge, ResolvedEntry, Scope
from artifact_resolver.repositories import CENTRAL_URL
from artifact_resolver.resolver import ResolutionContext


DECLARATIONS = {
    "g:app:1": ["g:lib:1", ("g:rt:1", "runtime"), ("g:junit:4", "test")],
    "g:lib:1": ["g:util:2"],
    "g:rt:1": [],
    "g:util:2": [],
    "g:util:1": [],
}


@pytest.fixture
def context(tmp_path, provider_factory, materializer):
    return ResolutionContext(
        metadata_provider=provider_factory(DECLARATIONS),
        materializer=materializer,
        local_repo_path=tmp_path / "m2",
    )


def test_empty_input_resolves_to_nothing(context):
    result = context.resolve_dependencies()

    assert len(result.resolved) == 0
    assert result.errors == ()
    assert context.classpath() == []
    assert context.resolved_classpath() == ""
    assert context.dependencies_graph() == {}


def test_resolve_downloads_in_classpath_order(context, materializer):
    context.add_dependency("g:app:1")

    result = context.resolve_dependencies()

    assert context.dependencies_notation() == [
        "g:app:jar:1", "g:lib:jar:1", "g:util:jar:2", "g:rt:jar:1",
    ]
    root = materializer.root
    assert context.classpath() == [
        str(root / "app-1.jar"),
        str(root / "lib-1.jar"),
        str(root / "util-2.jar"),
        str(root / "rt-1.jar"),
    ]
    assert len(result.paths) == 4
    assert context.path_of("g:util:2") == str(root / "util-2.jar")
    assert context.path_of("g:missing:1") is None


def test_nearest_root_declaration_wins(context):
    context.add_dependency("g:app:1")
    context.add_dependency("g:util:1")

    context.resolve_dependencies(download_artifacts=False)

    assert "g:util:jar:1" in context.dependencies_notation()
    assert "g:util:jar:2" not in context.dependencies_notation()


def test_no_download_falls_back_to_local_layout(context, materializer, tmp_path):
    context.add_dependency("g:rt:1")

    context.resolve_dependencies(download_artifacts=False)

    assert materializer.calls == []
    assert context.classpath() == [str(tmp_path / "m2" / "g" / "rt" / "1" / "rt-1.jar")]


def test_config_can_disable_download(tmp_path, provider_factory, materializer):
    context = ResolutionContext(
        config=ResolutionConfig(download_artifacts=False),
        metadata_provider=provider_factory(DECLARATIONS),
        materializer=materializer,
        local_repo_path=tmp_path / "m2",
    )
    context.add_dependency("g:rt:1")

    context.resolve_dependencies()

    assert materializer.calls == []


def test_failed_resolution_keeps_previous_result(context):
    context.add_dependency("g:rt:1")
    first = context.resolve_dependencies()
    context.add_dependency("g:absent:1")

    with pytest.raises(MissingMetadataError):
        context.resolve_dependencies()

    assert context.result is first
    assert context.dependencies_notation() == ["g:rt:jar:1"]


def test_materialization_failure_is_not_published(tmp_path, provider_factory, materializer):
    broken = type(materializer)(materializer.root, missing=["g:rt:1"])
    context = ResolutionContext(
        metadata_provider=provider_factory(DECLARATIONS),
        materializer=broken,
        local_repo_path=tmp_path / "m2",
    )
    context.add_dependency("g:rt:1")

    with pytest.raises(MaterializationError):
        context.resolve_dependencies()

    assert context.result is None


def test_cancelled_resolution_is_not_published(context):
    context.add_dependency("g:app:1")
    token = CancellationToken()
    token.cancel()

    with pytest.raises(ResolutionCancelled):
        context.resolve_dependencies(cancel_token=token)

    assert context.result is None


def test_lenient_resolution_reports_errors(tmp_path, provider_factory, materializer):
    context = ResolutionContext(
        config=ResolutionConfig(lenient_metadata=True),
        metadata_provider=provider_factory({"g:a:1": ["g:gone:1"]}),
        materializer=materializer,
        local_repo_path=tmp_path / "m2",
    )
    context.add_dependency("g:a:1")

    result = context.resolve_dependencies(download_artifacts=False)

    assert len(result.errors) == 1
    assert isinstance(result.errors[0], MissingMetadataError)
    assert context.dependencies_notation() == ["g:a:jar:1", "g:gone:jar:1"]


def test_strict_acyclic_raises(tmp_path, provider_factory, materializer):
    context = ResolutionContext(
        config=ResolutionConfig(strict_acyclic=True),
        metadata_provider=provider_factory({"g:a:1": ["g:b:1"], "g:b:1": ["g:a:1"]}),
        materializer=materializer,
        local_repo_path=tmp_path / "m2",
    )
    context.add_dependency("g:a:1")

    with pytest.raises(CyclicDependencyError):
        context.resolve_dependencies()


def test_current_dependencies_before_and_after(context):
    edge = context.add_dependency("g:rt:1", "runtime")

    assert context.current_dependencies() == [edge]
    assert context.dependencies_notation() == ["g:rt:jar:1"]

    context.resolve_dependencies(download_artifacts=False)

    (entry,) = context.current_dependencies()
    assert isinstance(entry, ResolvedEntry)
    assert entry.scope is Scope.RUNTIME


def test_bad_notation_fails_at_declaration(context):
    with pytest.raises(NotationError):
        context.add_dependency("only:two")
    with pytest.raises(NotationError):
        context.add_dependency("g:a:1", scope="bogus")

    assert context.dependencies() == []


def test_string_exclusions(context):
    context.add_dependency("g:lib:1", exclusions=["g:util"])

    context.resolve_dependencies(download_artifacts=False)

    assert context.dependencies_notation() == ["g:lib:jar:1"]


def test_build_artifact_overrides_resolution(context, materializer, tmp_path):
    built = tmp_path / "target" / "util-3.jar"
    context.add_build_artifact("g:util:3", built)
    context.add_dependency("g:app:1")

    context.resolve_dependencies()

    assert "g:util:jar:3" in context.dependencies_notation()
    assert str(built) in context.classpath()
    assert all(c.artifact != "util" for c in materializer.calls)
    assert len(context.build_artifacts()) == 1

    context.clear_build_artifacts()
    assert context.build_artifacts() == []


def test_system_scope_is_never_materialized(context, materializer):
    context.add_dependency("g:sys:1", "system")

    context.resolve_dependencies()

    assert materializer.calls == []
    assert context.dependencies_notation() == ["g:sys:jar:1"]


def test_download_artifacts_deduplicates(context, materializer):
    paths = context.download_artifacts(["g:a:1", "g:a:jar:1", "g:b:1"])

    assert paths[0] == paths[1] == str(materializer.root / "a-1.jar")
    assert paths[2] == str(materializer.root / "b-1.jar")
    assert len(materializer.calls) == 2


def test_central_is_registered_by_default(tmp_path):
    assert ResolutionContext(local_repo_path=tmp_path).remote_repository_urls() == [CENTRAL_URL]
    assert ResolutionContext(local_repo_path=tmp_path, include_central=False).remote_repositories() == []


def test_repository_management(tmp_path):
    context = ResolutionContext(local_repo_path=tmp_path, include_central=False)

    context.add_remote_repository_by_url("https://repo.example.com/maven2/", "user", "pw")
    context.add_remote_repository("internal", "default", "https://internal.example.com/repo")

    assert [r.id for r in context.remote_repositories()] == ["repo.example.com-maven2", "internal"]
    context.clear_remote_repositories()
    assert context.remote_repository_urls() == []


def test_local_repo_path_can_be_changed(context, tmp_path):
    context.local_repo_path = tmp_path / "other"

    assert context.local_repo_path == tmp_path / "other"


def test_add_dependency_edge_and_clear(context):
    context.add_dependency_edge(DependencyEdge(to=context.add_dependency("g:rt:1").to))
    assert len(context.dependencies()) == 2

    context.clear_dependencies()
    assert context.dependencies() == []
