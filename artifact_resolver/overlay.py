"""
Locally built artifacts that take precedence over resolution.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import List, Optional, Union

from .models import BuildArtifact, Coordinate, CoordinateKey
from .notation import DEFAULT_TYPE, coerce


logger = logging.getLogger(__name__)


class BuildArtifactOverlay:
    """Build artifacts keyed by identity, latest addition wins."""

    def __init__(self) -> None:
        self._artifacts: "OrderedDict[CoordinateKey, BuildArtifact]" = OrderedDict()

    def add(
        self,
        coordinate: Union[str, Coordinate],
        artifact_path: str,
        descriptor_path: Optional[str] = None,
        default_type: str = DEFAULT_TYPE,
    ) -> BuildArtifact:
        coordinate = coerce(coordinate, default_type)
        artifact = BuildArtifact(coordinate, str(artifact_path), str(descriptor_path) if descriptor_path else None)
        if coordinate.key in self._artifacts:
            logger.info("Replacing build artifact for %s", coordinate.notation)
        self._artifacts[coordinate.key] = artifact
        return artifact

    def get(self, key: CoordinateKey) -> Optional[BuildArtifact]:
        return self._artifacts.get(key)

    def clear(self) -> None:
        self._artifacts.clear()

    def list(self) -> List[BuildArtifact]:
        return list(self._artifacts.values())

    def __contains__(self, key) -> bool:
        return key in self._artifacts

    def __len__(self) -> int:
        return len(self._artifacts)
