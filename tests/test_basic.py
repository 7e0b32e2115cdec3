"""Tests for the artifact_resolver package."""

import pytest


def test_package_import():
    """Test that the package can be imported."""
    import artifact_resolver
    assert artifact_resolver.__version__ == "0.1.0"


def test_cli_import():
    """Test that CLI module can be imported."""
    from artifact_resolver.cli import main
    assert callable(main)


def test_public_api():
    """Test that the main types are exported at package level."""
    from artifact_resolver import (
        CollectionError,
        Coordinate,
        ResolutionConfig,
        ResolutionContext,
        ResolverError,
    )

    assert issubclass(CollectionError, ResolverError)
    assert ResolutionContext is not None
    assert Coordinate("g", "a", "jar", "1").notation == "g:a:jar:1"
    assert ResolutionConfig().fetch_concurrency == 4


def test_error_taxonomy():
    """Test that every resolution failure shares one base class."""
    from artifact_resolver import errors

    for name in (
        "NotationError",
        "RepositoryConfigError",
        "MissingMetadataError",
        "TransportError",
        "CyclicDependencyError",
        "ResolutionCancelled",
        "ConflictResolutionError",
        "MaterializationError",
    ):
        assert issubclass(getattr(errors, name), errors.ResolverError)


def test_config_from_dict():
    """Test that options accept camelCase and snake_case names."""
    from artifact_resolver.config import ResolutionConfig
    from artifact_resolver.models import Scope

    config = ResolutionConfig.from_dict({
        "downloadArtifacts": False,
        "fetch_concurrency": 2,
        "scopeFilter": ["compile", "runtime"],
    })

    assert config.download_artifacts is False
    assert config.fetch_concurrency == 2
    assert config.scope_filter == frozenset({Scope.COMPILE, Scope.RUNTIME})
    assert config.keeps(Scope.RUNTIME)
    assert not config.keeps(Scope.TEST)


@pytest.mark.parametrize("options", [
    {"fetch_concurrency": 0},
    {"fetch_timeout": -1},
    {"unknown_option": True},
])
def test_config_rejects_invalid_options(options):
    """Test that invalid options raise ValueError."""
    from artifact_resolver.config import ResolutionConfig

    with pytest.raises(ValueError):
        ResolutionConfig.from_dict(options)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
