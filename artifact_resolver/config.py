"""
Resolution configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, FrozenSet, Iterable, Optional

from .models import Scope
from .notation import DEFAULT_TYPE


_CAMEL_CASE = {
    "downloadArtifacts": "download_artifacts",
    "lenientMetadata": "lenient_metadata",
    "strictAcyclic": "strict_acyclic",
    "ignoreOptionalSubtrees": "ignore_optional_subtrees",
    "fetchConcurrency": "fetch_concurrency",
    "scopeFilter": "scope_filter",
    "fetchTimeout": "fetch_timeout",
    "includeOptionalInClasspath": "include_optional_in_classpath",
    "defaultType": "default_type",
}


@dataclass(frozen=True)
class ResolutionConfig:
    """Options recognized by a resolution.

    Attributes:
        download_artifacts: Materialize resolved artifacts into the local repository
        lenient_metadata: Aggregate missing metadata instead of aborting
        strict_acyclic: Fail on the first dependency cycle
        ignore_optional_subtrees: Treat optional dependencies as leaves
        fetch_concurrency: Worker limit for metadata fetches and downloads
        scope_filter: Scopes kept in the resolved set, None keeps all
        fetch_timeout: Seconds allowed for one collaborator call
        include_optional_in_classpath: Export optional entries to the classpath
        default_type: Type used for three-field notations
    """

    download_artifacts: bool = True
    lenient_metadata: bool = False
    strict_acyclic: bool = False
    ignore_optional_subtrees: bool = False
    fetch_concurrency: int = 4
    scope_filter: Optional[FrozenSet[Scope]] = None
    fetch_timeout: float = 30.0
    include_optional_in_classpath: bool = True
    default_type: str = DEFAULT_TYPE

    def __post_init__(self) -> None:
        if self.fetch_concurrency < 1:
            raise ValueError("fetch_concurrency must be at least 1")
        if self.fetch_timeout is not None and self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")
        if not self.default_type:
            raise ValueError("default_type must not be empty")
        if self.scope_filter is not None:
            object.__setattr__(self, "scope_filter", _parse_scopes(self.scope_filter))

    @classmethod
    def from_dict(cls, options: Dict[str, Any]) -> "ResolutionConfig":
        """Build a config from snake_case or camelCase option names."""
        known = {f.name for f in fields(cls)}
        values = {}
        for name, value in options.items():
            name = _CAMEL_CASE.get(name, name)
            if name not in known:
                raise ValueError(f"Unknown resolution option: {name}")
            values[name] = value
        return cls(**values)

    def keeps(self, scope: Scope) -> bool:
        return self.scope_filter is None or scope in self.scope_filter


def _parse_scopes(scopes: Iterable) -> FrozenSet[Scope]:
    if isinstance(scopes, (str, Scope)):
        scopes = [scopes]
    return frozenset(Scope.parse(scope) for scope in scopes)
