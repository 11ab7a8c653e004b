"""Facade wiring the registry, cache, resolvers, fetcher and validator together."""

from __future__ import annotations

import logging
import os
import threading
import weakref
from typing import Iterable, List, Optional, Tuple

from depfetch.cache.local import LocalCache
from depfetch.config import EngineConfig
from depfetch.errors import ConfigurationFailure
from depfetch.fetch.fetcher import ArtifactFetcher
from depfetch.graph.resolver import DependencyGraphResolver
from depfetch.models import ArtifactCoordinate, RepositoryDescriptor, ResolvedVersionSet
from depfetch.registry.repositories import RemoteRepository, RepositoryRegistry
from depfetch.validator import RepositoryValidator
from depfetch.versioning.resolver import VersionResolver
from depfetch.versioning.version import MavenVersion

logger = logging.getLogger(__name__)


class CoordinateLock:
    """Mutex handed out by ``RepositorySystem.lock_for``.

    Wraps a ``threading.Lock`` so the registry can hold it weakly: the entry
    disappears once no caller references the lock.
    """

    __slots__ = ("_lock", "__weakref__")

    def __init__(self):
        self._lock = threading.Lock()

    def acquire(self, blocking: bool = True, timeout: float = -1) -> bool:
        return self._lock.acquire(blocking, timeout)

    def release(self) -> None:
        self._lock.release()

    def locked(self) -> bool:
        return self._lock.locked()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


class RepositorySystem:
    """Entry point used by host applications.

    Operations are synchronous. Callers that may resolve the same
    coordinate concurrently must hold ``lock_for(coordinate)`` around the
    call, because metadata invalidation is not atomic for readers.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        root = self.config.local_repository
        if os.path.exists(root) and not os.path.isdir(root):
            raise ConfigurationFailure(f"Local repository {root} is not a directory")
        try:
            os.makedirs(root, exist_ok=True)
        except OSError as exc:
            raise ConfigurationFailure(f"Cannot create local repository {root}", cause=exc) from exc

        self.registry = RepositoryRegistry(self.config)
        self.cache = LocalCache(root)
        self.versions = VersionResolver(self.cache)
        self.fetcher = ArtifactFetcher(self.registry, self.cache)
        self.graph = DependencyGraphResolver(self.fetcher, self.versions)
        self.validator = RepositoryValidator(self.registry, self.fetcher)

        self._locks: "weakref.WeakValueDictionary" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()
        logger.debug("Repository system ready (local repository %s, releases only: %s)",
                     root, self.config.releases_only)

    def lock_for(self, coordinate: ArtifactCoordinate) -> CoordinateLock:
        """Per group/name lock for callers that resolve concurrently.

        Every caller holding a reference gets the same lock; unreferenced
        locks are dropped.
        """
        with self._locks_guard:
            lock = self._locks.get(coordinate.key)
            if lock is None:
                lock = CoordinateLock()
                self._locks[coordinate.key] = lock
            return lock

    def get_repositories(self) -> List[RemoteRepository]:
        return self.registry.repositories()

    def get_remote_repository(self, result: ResolvedVersionSet, version) -> Optional[RemoteRepository]:
        return self.registry.origin_repository(result, version)

    def find_versions(self, coordinate: ArtifactCoordinate) -> ResolvedVersionSet:
        return self.versions.resolve_version_range(coordinate, self.get_repositories())

    def find_latest_version(self, coordinate: ArtifactCoordinate) -> Optional[MavenVersion]:
        return self.versions.resolve_latest_release(coordinate, self.get_repositories())

    def resolve_artifacts(self, remote_repository: Optional[RemoteRepository],
                          *coordinates: ArtifactCoordinate) -> str:
        """Install every coordinate; absolute path of the first, or ''."""
        return self.fetcher.resolve_and_install_batch(list(coordinates), remote_repository)

    def resolve_dependencies(self, remote_repository: Optional[RemoteRepository],
                             coordinate: ArtifactCoordinate,
                             exclusions: Iterable[Tuple[str, str]] = ()) -> str:
        """Platform path list of the coordinate's dependencies, or ''."""
        return self.graph.classpath_string(coordinate, remote_repository, exclusions)

    def validate_repository(self, descriptor: RepositoryDescriptor) -> str:
        return self.validator.validate(descriptor)
