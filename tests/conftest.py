"""Shared fakes for resolver tests."""

import random
import threading
import time
from typing import Dict, Iterable, List, Optional

import pytest

from artifact_resolver.errors import MissingMetadataError, TransportError
from artifact_resolver.models import Coordinate, DependencyEdge, Scope
from artifact_resolver.notation import parse


def make_edge(notation, scope="compile", optional=False, exclusions=(), source=None):
    return DependencyEdge(
        to=parse(notation),
        scope=Scope.parse(scope),
        optional=optional,
        exclusions=frozenset(exclusions),
        source=source,
    )


class FakeMetadataProvider:
    """In-memory metadata keyed by notation.

    `declarations` maps a notation to its dependencies, each given as a
    notation string or a (notation, scope[, optional[, exclusions]]) tuple.
    Notations absent from the mapping raise MissingMetadataError.
    """

    def __init__(
        self,
        declarations: Dict[str, Iterable],
        delays: Optional[Dict[str, float]] = None,
        failing: Iterable[str] = (),
        jitter: float = 0.0,
        seed: int = 0,
    ) -> None:
        self.declarations = {parse(k): list(v) for k, v in declarations.items()}
        self.delays = {parse(k): v for k, v in (delays or {}).items()}
        self.failing = {parse(n) for n in failing}
        self.jitter = jitter
        self.calls: List[Coordinate] = []
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def fetch_dependencies(self, coordinate: Coordinate) -> List[DependencyEdge]:
        with self._lock:
            self.calls.append(coordinate)
            delay = self.delays.get(coordinate, 0.0)
            if self.jitter:
                delay += self._random.random() * self.jitter
        if delay:
            time.sleep(delay)
        if coordinate in self.failing:
            raise TransportError(coordinate, "connection refused")
        if coordinate not in self.declarations:
            raise MissingMetadataError(coordinate)

        edges = []
        for dep in self.declarations[coordinate]:
            if isinstance(dep, str):
                dep = (dep,)
            edges.append(make_edge(*dep, source=coordinate))
        return edges

    def call_count(self, notation: str) -> int:
        target = parse(notation)
        with self._lock:
            return sum(1 for c in self.calls if c == target)


class FakeMaterializer:
    """Materializer writing empty files under a directory and counting calls."""

    def __init__(self, root, delay: float = 0.0, missing: Iterable[str] = ()) -> None:
        self.root = root
        self.delay = delay
        self.missing = {parse(n) for n in missing}
        self.calls: List[Coordinate] = []
        self._lock = threading.Lock()

    def materialize(self, coordinate: Coordinate) -> str:
        with self._lock:
            self.calls.append(coordinate)
        if self.delay:
            time.sleep(self.delay)
        if coordinate in self.missing:
            raise FileNotFoundError(coordinate.notation)
        path = self.root / f"{coordinate.artifact}-{coordinate.version}.{coordinate.type}"
        path.write_bytes(b"")
        return str(path)


@pytest.fixture
def edge():
    return make_edge


@pytest.fixture
def provider_factory():
    return FakeMetadataProvider


@pytest.fixture
def materializer(tmp_path):
    root = tmp_path / "artifacts"
    root.mkdir()
    return FakeMaterializer(root)
