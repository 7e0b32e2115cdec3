"""
Ordered registry of remote repositories.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlparse

from .errors import RepositoryConfigError
from .models import Credentials, RemoteRepository


logger = logging.getLogger(__name__)

CENTRAL_ID = "central"
CENTRAL_URL = "https://repo1.maven.org/maven2/"

_SCHEMES = ("http", "https", "file")


def derive_repository_id(url: str) -> str:
    """Derive a repository id from host, path and port of `url`.

    `https://repo.example.com:8081/maven/releases/` becomes
    `repo.example.com-maven-releases-8081`.
    """
    parsed = _parse_url(url)
    parts = [parsed.hostname or "local"]
    path = parsed.path.strip("/").replace("/", "-").replace(":", "-")
    if path:
        parts.append(path)
    if parsed.port is not None:
        parts.append(str(parsed.port))
    return "-".join(parts)


def _parse_url(url: str):
    if not url or not isinstance(url, str):
        raise RepositoryConfigError(f"Invalid repository url: {url!r}")
    try:
        parsed = urlparse(url.strip())
        # port is validated lazily by urllib
        parsed.port
    except ValueError as e:
        raise RepositoryConfigError(f"Invalid repository url {url!r}: {e}") from e
    if parsed.scheme not in _SCHEMES:
        raise RepositoryConfigError(f"Unsupported repository url scheme: {url!r}")
    if parsed.scheme != "file" and not parsed.hostname:
        raise RepositoryConfigError(f"Repository url has no host: {url!r}")
    return parsed


class RepositoryRegistry:
    """Remote repositories in registration order, unique by id."""

    def __init__(self, include_central: bool = False) -> None:
        self._repositories: List[RemoteRepository] = []
        if include_central:
            self.add(CENTRAL_ID, "default", CENTRAL_URL)

    def add_url(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> RemoteRepository:
        """Add a repository by url, deriving its id."""
        repo_id = derive_repository_id(url)
        credentials = None
        if username is not None:
            credentials = Credentials(username, password or "")
        return self.add(repo_id, "default", url, credentials)

    def add(
        self,
        repo_id: str,
        repo_type: str,
        url: str,
        credentials: Optional[Credentials] = None,
    ) -> RemoteRepository:
        """Add a repository; re-adding a known id is a no-op."""
        if not repo_id:
            raise RepositoryConfigError("Repository id must not be empty")
        _parse_url(url)

        existing = self.get(repo_id)
        if existing is not None:
            logger.debug("Repository %s already registered", repo_id)
            return existing

        repository = RemoteRepository(repo_id, repo_type or "default", url.strip(), credentials)
        self._repositories.append(repository)
        logger.debug("Registered repository %s at %s", repo_id, repository.url)
        return repository

    def get(self, repo_id: str) -> Optional[RemoteRepository]:
        for repository in self._repositories:
            if repository.id == repo_id:
                return repository
        return None

    def clear(self) -> None:
        self._repositories = []

    def list(self) -> List[RemoteRepository]:
        return list(self._repositories)

    def urls(self) -> List[str]:
        return [repository.url for repository in self._repositories]

    def __len__(self) -> int:
        return len(self._repositories)

    def __iter__(self):
        return iter(self.list())
