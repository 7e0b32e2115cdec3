"""
Default collaborators backed by Maven 2 layout repositories.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Tuple
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests
from tqdm import tqdm

from .descriptor import parse_pom_dependencies
from .errors import MaterializationError, MissingMetadataError, NotationError, TransportError
from .models import Coordinate, DependencyEdge, RemoteRepository
from .notation import DEFAULT_TYPE
from .repositories import RepositoryRegistry


logger = logging.getLogger(__name__)

DEFAULT_LOCAL_REPO = Path.home() / ".m2" / "repository"

# Packaging types whose file is a jar.
EXTENSIONS = {
    "bundle": "jar",
    "ejb": "jar",
    "ejb-client": "jar",
    "java-source": "jar",
    "javadoc": "jar",
    "maven-plugin": "jar",
    "test-jar": "jar",
}


def artifact_relative_path(coordinate: Coordinate, extension: Optional[str] = None) -> str:
    """Maven 2 layout path of an artifact file."""
    extension = extension or EXTENSIONS.get(coordinate.type, coordinate.type)
    name = f"{coordinate.artifact}-{coordinate.version}"
    if coordinate.classifier:
        name = f"{name}-{coordinate.classifier}"
    return "/".join([
        coordinate.group.replace(".", "/"),
        coordinate.artifact,
        coordinate.version,
        f"{name}.{extension}",
    ])


def descriptor_relative_path(coordinate: Coordinate) -> str:
    return "/".join([
        coordinate.group.replace(".", "/"),
        coordinate.artifact,
        coordinate.version,
        f"{coordinate.artifact}-{coordinate.version}.pom",
    ])


def _join(repository: RemoteRepository, relative: str) -> str:
    return repository.url.rstrip("/") + "/" + relative


def _auth(repository: RemoteRepository) -> Optional[Tuple[str, str]]:
    if repository.credentials is None:
        return None
    return (repository.credentials.username, repository.credentials.password)


def _file_path(repository: RemoteRepository, relative: str) -> Optional[Path]:
    parsed = urlparse(repository.url)
    if parsed.scheme != "file":
        return None
    return Path(url2pathname(parsed.path)) / relative


class LocalRepository:
    """Local artifact cache laid out like a Maven 2 repository."""

    def __init__(self, path=None) -> None:
        self.path = Path(path) if path else DEFAULT_LOCAL_REPO

    def path_for(self, coordinate: Coordinate) -> Path:
        return self.path / artifact_relative_path(coordinate)

    def descriptor_path_for(self, coordinate: Coordinate) -> Path:
        return self.path / descriptor_relative_path(coordinate)


class RemoteMetadataProvider:
    """MetadataProvider that reads POMs from registered repositories.

    Repositories are tried in registration order; the first one holding the
    POM wins. A 404 moves on to the next repository.
    """

    def __init__(
        self,
        registry: RepositoryRegistry,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        default_type: str = DEFAULT_TYPE,
    ) -> None:
        self.registry = registry
        self.session = session or requests.Session()
        self.timeout = timeout
        self.default_type = default_type

    def fetch_dependencies(self, coordinate: Coordinate) -> List[DependencyEdge]:
        relative = descriptor_relative_path(coordinate)
        failures: List[str] = []
        for repository in self.registry.list():
            try:
                pom_xml = self._read(repository, relative)
            except (requests.RequestException, OSError) as e:
                logger.warning("Failed to fetch %s from %s: %s", coordinate.notation, repository.id, e)
                failures.append(f"{repository.id}: {e}")
                continue
            if pom_xml is None:
                logger.debug("%s not found in %s", coordinate.notation, repository.id)
                continue
            try:
                return parse_pom_dependencies(pom_xml, coordinate, self.default_type)
            except (ET.ParseError, NotationError) as e:
                logger.warning("Invalid POM for %s in %s: %s", coordinate.notation, repository.id, e)
                failures.append(f"{repository.id}: invalid POM ({e})")

        if failures:
            raise TransportError(coordinate, "; ".join(failures))
        raise MissingMetadataError(coordinate)

    def _read(self, repository: RemoteRepository, relative: str) -> Optional[str]:
        local = _file_path(repository, relative)
        if local is not None:
            if not local.is_file():
                return None
            return local.read_text(encoding="utf-8")

        url = _join(repository, relative)
        logger.debug("GET %s", url)
        with self.session.get(url, auth=_auth(repository), timeout=self.timeout) as response:
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.text


class RemoteArtifactMaterializer:
    """ArtifactMaterializer that downloads into a LocalRepository."""

    def __init__(
        self,
        registry: RepositoryRegistry,
        local_repository: Optional[LocalRepository] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        progress: bool = True,
    ) -> None:
        self.registry = registry
        self.local_repository = local_repository or LocalRepository()
        self.session = session or requests.Session()
        self.timeout = timeout
        self.progress = progress

    def materialize(self, coordinate: Coordinate) -> str:
        target = self.local_repository.path_for(coordinate)
        if target.is_file():
            logger.debug("Cache hit: artifact %s", coordinate.notation)
            return str(target)

        target.parent.mkdir(parents=True, exist_ok=True)
        relative = artifact_relative_path(coordinate)
        failures: List[str] = []
        for repository in self.registry.list():
            try:
                if self._download(repository, relative, target):
                    logger.info("Downloaded %s from %s", coordinate.notation, repository.id)
                    return str(target)
            except (requests.RequestException, OSError) as e:
                logger.warning("Failed to download %s from %s: %s", coordinate.notation, repository.id, e)
                failures.append(f"{repository.id}: {e}")

        detail = "; ".join(failures) if failures else "not found in any repository"
        raise MaterializationError(coordinate, detail)

    def _download(self, repository: RemoteRepository, relative: str, target: Path) -> bool:
        local = _file_path(repository, relative)
        if local is not None:
            if not local.is_file():
                return False
            def copy(handle) -> None:
                with local.open("rb") as source:
                    shutil.copyfileobj(source, handle)

            self._write_atomic(target, copy)
            return True

        url = _join(repository, relative)
        with self.session.get(url, auth=_auth(repository), timeout=self.timeout, stream=True) as response:
            if response.status_code == 404:
                return False
            response.raise_for_status()
            total_size = int(response.headers.get("content-length", 0))

            def write(handle) -> None:
                with tqdm(
                    total=total_size,
                    unit="B",
                    unit_scale=True,
                    desc=target.name,
                    disable=not self.progress,
                ) as pbar:
                    for chunk in response.iter_content(chunk_size=8192):
                        handle.write(chunk)
                        pbar.update(len(chunk))

            self._write_atomic(target, write)
        return True

    @staticmethod
    def _write_atomic(target: Path, write) -> None:
        """Write through a temporary file so readers never see partial content."""
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as handle:
                write(handle)
            os.replace(tmp_name, target)
        except BaseException:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise
