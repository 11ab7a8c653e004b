"""Repository registry: presets plus user repositories, and connection handles."""

from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Tuple

from depfetch.common import http_client
from depfetch.constants import Constants
from depfetch.errors import DuplicateRepositoryError
from depfetch.models import RepositoryDescriptor, ResolvedVersionSet

if TYPE_CHECKING:
    from depfetch.config import EngineConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepositoryPolicy:
    """Whether a repository serves snapshots, and how checksum mismatches are handled."""
    snapshots_enabled: bool = True
    checksum_policy: str = "fail"


@dataclass(frozen=True)
class RemoteRepository:
    """Connection handle built from a descriptor."""
    descriptor: RepositoryDescriptor
    policy: RepositoryPolicy = RepositoryPolicy()

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def url(self) -> str:
        return self.descriptor.url

    @property
    def auth(self) -> Optional[Tuple[str, str]]:
        creds = self.descriptor.credentials
        return (creds.username, creds.password) if creds else None

    def accepts_version(self, version: str) -> bool:
        """False for snapshot versions when the snapshot policy is disabled."""
        if self.policy.snapshots_enabled:
            return True
        return Constants.SNAPSHOT_MARKER not in str(version).upper()

    def url_for(self, relative_path: str) -> str:
        return self.url.rstrip("/") + "/" + relative_path.lstrip("/")

    def get(self, relative_path: str) -> Optional[bytes]:
        """Fetch a file from the repository; None when it does not exist.

        Raises:
            TransportFailure: on any network or authentication error.
        """
        status, body = http_client.fetch(self.url_for(relative_path), auth=self.auth, context=self.id)
        if status == http_client.HTTP_NOT_FOUND:
            return None
        return body


def is_snapshot_repository(repository_id: str) -> bool:
    return Constants.SNAPSHOT_MARKER in repository_id.upper()


class RepositoryRegistry:
    """Ordered repository list: presets first, then user repositories."""

    def __init__(self, config: "EngineConfig"):
        self._config = config
        self._check_unique(config.presets + config.repositories)

    @staticmethod
    def _check_unique(descriptors: List[RepositoryDescriptor]) -> None:
        seen = set()
        for descriptor in descriptors:
            if descriptor.id in seen or descriptor.id == Constants.LOCAL_REPOSITORY_ID:
                raise DuplicateRepositoryError(f"Repository id '{descriptor.id}' is already in use")
            seen.add(descriptor.id)

    @property
    def releases_only(self) -> bool:
        return self._config.releases_only

    def list_repositories(self, releases_only: Optional[bool] = None) -> List[RepositoryDescriptor]:
        """Presets then user repositories; snapshot channels dropped in releases-only mode."""
        only_releases = self.releases_only if releases_only is None else releases_only
        return [
            r for r in list(self._config.presets) + list(self._config.repositories)
            if not only_releases or not is_snapshot_repository(r.id)
        ]

    def build_repository(self, descriptor: RepositoryDescriptor) -> RemoteRepository:
        """Build a connection handle honoring the releases-only policy."""
        if self.releases_only:
            policy = RepositoryPolicy(snapshots_enabled=False)
        else:
            policy = RepositoryPolicy()
        return RemoteRepository(descriptor=descriptor, policy=policy)

    def repositories(self, releases_only: Optional[bool] = None) -> List[RemoteRepository]:
        return [self.build_repository(d) for d in self.list_repositories(releases_only)]

    def find(self, repository_id: str) -> Optional[RepositoryDescriptor]:
        for descriptor in self.list_repositories(releases_only=False):
            if descriptor.id == repository_id:
                return descriptor
        return None

    def add(self, descriptor: RepositoryDescriptor) -> None:
        """Append a user repository; its id must not collide with any other."""
        self._check_unique(self._config.presets + self._config.repositories + [descriptor])
        self._config.repositories.append(descriptor)
        logger.info("Added repository %s (%s)", descriptor.id, descriptor.url)

    def remove(self, repository_id: str) -> bool:
        """Remove a user repository; presets cannot be removed."""
        before = len(self._config.repositories)
        self._config.repositories = [r for r in self._config.repositories if r.id != repository_id]
        return len(self._config.repositories) != before

    def local_repository(self) -> RemoteRepository:
        """Handle for the local cache root itself."""
        url = pathlib.Path(self._config.local_repository).absolute().as_uri()
        descriptor = RepositoryDescriptor(id=Constants.LOCAL_REPOSITORY_ID, type="default", url=url)
        return RemoteRepository(descriptor=descriptor)

    def find_repository(self, repository_id: Optional[str]) -> Optional[RemoteRepository]:
        """Connection handle for an active repository id, or None."""
        for repository in self.repositories():
            if repository.id == repository_id:
                return repository
        return None

    def origin_repository(self, result: ResolvedVersionSet, version) -> Optional[RemoteRepository]:
        """Repository that supplied ``version`` in ``result``, else the local repository."""
        if result is None or version is None:
            return None
        return self.find_repository(result.repository_for(version)) or self.local_repository()
