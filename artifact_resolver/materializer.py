"""
Parallel artifact materialization with one download per coordinate.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Dict, List, Optional, Sequence

from .concurrency import CancellationToken, SingleFlightCache, TimedCall
from .errors import MaterializationError, ResolverError
from .interfaces import ArtifactMaterializer
from .models import Coordinate


logger = logging.getLogger(__name__)


class MaterializationCoordinator:
    """Run an ArtifactMaterializer across coordinates.

    Distinct coordinates are materialized in parallel. Requests for the same
    coordinate, including from concurrent callers, share one call.
    """

    def __init__(
        self,
        materializer: ArtifactMaterializer,
        max_workers: int = 4,
        timeout: Optional[float] = None,
    ) -> None:
        self.materializer = materializer
        self.max_workers = max_workers
        self.timeout = timeout
        self._cache: SingleFlightCache[str] = SingleFlightCache("artifact", cache_errors=False)

    def materialize(self, coordinate: Coordinate) -> str:
        """Materialize one coordinate, reusing an earlier or in-flight result."""
        cached = self._cache.peek(coordinate)
        if cached is not None and cached.done() and cached.exception() is None:
            if not os.path.exists(cached.result()):
                logger.info("Cached file for %s is gone, materializing again", coordinate.notation)
                self._cache.discard(coordinate)
        try:
            return self._cache.get_or_load(
                coordinate, lambda: self._call(coordinate), self.timeout
            )
        except FutureTimeout:
            raise MaterializationError(
                coordinate, f"timed out after {self.timeout}s waiting for materialization"
            ) from None

    def materialize_all(
        self,
        coordinates: Sequence[Coordinate],
        cancel_token: Optional[CancellationToken] = None,
    ) -> Dict[Coordinate, str]:
        """Materialize `coordinates`, returning paths in input order.

        Raises the first failure in input order.
        """
        token = cancel_token or CancellationToken()
        token.raise_if_cancelled()
        unique: List[Coordinate] = list(dict.fromkeys(coordinates))
        if not unique:
            return {}

        logger.info("Materializing %d artifacts", len(unique))
        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="materialize")
        try:
            calls = [
                (coordinate, TimedCall(executor, self._guarded, coordinate, token))
                for coordinate in unique
            ]
            paths: Dict[Coordinate, str] = {}
            for coordinate, call in calls:
                try:
                    paths[coordinate] = call.result(timeout=self.timeout)
                except FutureTimeout:
                    raise MaterializationError(
                        coordinate, f"timed out after {self.timeout}s"
                    ) from None
            return paths
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _guarded(self, coordinate: Coordinate, token: CancellationToken) -> str:
        token.raise_if_cancelled()
        return self.materialize(coordinate)

    def _call(self, coordinate: Coordinate) -> str:
        try:
            return str(self.materializer.materialize(coordinate))
        except ResolverError:
            raise
        except Exception as e:
            raise MaterializationError(coordinate, str(e) or type(e).__name__) from e
