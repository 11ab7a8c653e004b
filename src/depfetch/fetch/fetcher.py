"""Artifact download and installation into the local cache."""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List, Optional, Sequence

from depfetch.cache.local import LocalCache, artifact_relative_path, parse_checksum, sha1_hex
from depfetch.constants import Constants
from depfetch.errors import (
    ArtifactNotFound,
    CacheWriteFailure,
    ResolutionError,
    TransportFailure,
)
from depfetch.models import ArtifactCoordinate, CachedArtifact
from depfetch.registry.repositories import RemoteRepository, RepositoryRegistry
from depfetch.common.logging_utils import extra_context, is_debug_enabled, Timer

logger = logging.getLogger(__name__)


@dataclass
class ResolvedArtifact:
    """An artifact located either in the local cache or on a remote repository.

    ``payload`` is None for cache hits; see ``ArtifactFetcher.payload_of``.
    """
    coordinate: ArtifactCoordinate
    payload: Optional[bytes]
    checksum: Optional[bytes]
    repository_id: str
    cached: Optional[CachedArtifact] = None


def _snapshot_file_version(content: bytes, coordinate: ArtifactCoordinate) -> Optional[str]:
    """Timestamped file version for a snapshot from version-level metadata."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError:
        return None
    for entry in root.findall("versioning/snapshotVersions/snapshotVersion"):
        extension = (entry.findtext("extension") or "").strip()
        classifier = (entry.findtext("classifier") or "").strip() or None
        value = (entry.findtext("value") or "").strip()
        if value and extension == coordinate.extension and classifier == coordinate.classifier:
            return value
    timestamp = (root.findtext("versioning/snapshot/timestamp") or "").strip()
    build = (root.findtext("versioning/snapshot/buildNumber") or "").strip()
    if timestamp and build:
        base = coordinate.version[: -len(Constants.SNAPSHOT_MARKER)]
        return f"{base}{timestamp}-{build}"
    return None


class ArtifactFetcher:
    """Resolve artifacts from the local cache or the registry's repositories."""

    def __init__(self, registry: RepositoryRegistry, cache: LocalCache):
        self.registry = registry
        self.cache = cache

    def _candidates(self, preferred_repository: Optional[RemoteRepository]) -> List[RemoteRepository]:
        if preferred_repository is not None:
            return [preferred_repository]
        return self.registry.repositories()

    def _download_file(self, repository: RemoteRepository, coordinate: ArtifactCoordinate,
                       relative: str) -> Optional[ResolvedArtifact]:
        payload = repository.get(relative)
        if payload is None:
            return None
        checksum = repository.get(relative + Constants.CHECKSUM_EXTENSION)
        if checksum is not None:
            expected = parse_checksum(checksum)
            actual = sha1_hex(payload)
            if expected != actual:
                message = f"{repository.id}: checksum mismatch for {relative} (expected {expected}, got {actual})"
                if repository.policy.checksum_policy == "fail":
                    raise TransportFailure(message)
                logger.warning(message)
        return ResolvedArtifact(coordinate=coordinate, payload=payload, checksum=checksum, repository_id=repository.id)

    def _download(self, repository: RemoteRepository,
                  coordinate: ArtifactCoordinate) -> Optional[ResolvedArtifact]:
        """Download from one repository; None when it does not hold the artifact.

        Raises:
            TransportFailure: on network, authentication or checksum errors.
        """
        if not repository.accepts_version(coordinate.version):
            return None
        result = self._download_file(repository, coordinate, artifact_relative_path(coordinate))
        if result is None and coordinate.is_snapshot:
            # Remote snapshots are usually published with timestamped file names
            version_dir = artifact_relative_path(coordinate).rsplit("/", 1)[0]
            metadata = repository.get(f"{version_dir}/{Constants.METADATA_FILE}")
            file_version = _snapshot_file_version(metadata, coordinate) if metadata else None
            if file_version:
                timestamped = coordinate.with_version(file_version)
                relative = f"{version_dir}/{artifact_relative_path(timestamped).rsplit('/', 1)[1]}"
                result = self._download_file(repository, coordinate, relative)
        return result

    def fetch(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository],
              use_cache: bool = True) -> ResolvedArtifact:
        """Resolve ``coordinate``; the first repository holding it wins.

        Raises:
            ArtifactNotFound: no repository holds the artifact.
            ResolutionError: a repository failed and none held the artifact;
                the last TransportFailure is attached as ``cause``.
        """
        if use_cache:
            cached = self.cache.find_artifact(coordinate)
            if cached is not None:
                return ResolvedArtifact(coordinate, None, None, Constants.LOCAL_REPOSITORY_ID, cached)

        last_failure: Optional[TransportFailure] = None
        for repository in repositories:
            with Timer() as timer:
                try:
                    result = self._download(repository, coordinate)
                except TransportFailure as exc:
                    last_failure = exc
                    logger.info("Could not fetch %s from %s: %s", coordinate, repository.id, exc.message)
                    continue
            if result is not None:
                if is_debug_enabled(logger):
                    logger.debug("Artifact resolved", extra=extra_context(
                        event="artifact_resolved", component="fetcher", target=str(coordinate),
                        repository=repository.id, duration_ms=timer.duration_ms(),
                    ))
                return result

        names = ", ".join(r.id for r in repositories) or "no repositories"
        if last_failure is not None:
            raise ResolutionError(f"Could not resolve {coordinate} from {names}", cause=last_failure)
        raise ArtifactNotFound(f"Could not find artifact {coordinate} in {names}")

    def resolve(self, coordinate: ArtifactCoordinate,
                preferred_repository: Optional[RemoteRepository] = None) -> Optional[ResolvedArtifact]:
        """Resolve one artifact, restricted to ``preferred_repository`` if given."""
        try:
            return self.fetch(coordinate, self._candidates(preferred_repository))
        except ResolutionError as exc:
            logger.info("%s", exc.message)
            return None

    def install(self, resolved: ResolvedArtifact) -> Optional[CachedArtifact]:
        """Write a resolved artifact and its checksum sidecar to the local cache."""
        if resolved.cached is not None:
            return resolved.cached
        try:
            return self.cache.store_artifact(resolved.coordinate, resolved.payload, resolved.checksum)
        except CacheWriteFailure as exc:
            logger.warning("Could not install %s: %s", resolved.coordinate, exc)
            return None

    def payload_of(self, resolved: ResolvedArtifact) -> bytes:
        """Content of a resolved artifact, read from the cache for cache hits.

        Raises:
            CacheReadFailure: the installed file cannot be read.
        """
        if resolved.payload is not None:
            return resolved.payload
        return self.cache.read_artifact(resolved.coordinate) or b""

    def resolve_and_install_batch(self, coordinates: Sequence[ArtifactCoordinate],
                                  preferred_repository: Optional[RemoteRepository] = None) -> str:
        """Resolve and install every coordinate; return the first one's local path.

        Unresolvable coordinates are skipped. Returns an empty string when
        the first coordinate could not be resolved.
        """
        if not coordinates:
            return ""
        resolved = []
        for coordinate in coordinates:
            result = self.resolve(coordinate, preferred_repository)
            if result is None:
                logger.warning("Skipping unresolved artifact %s", coordinate)
                continue
            resolved.append(result)

        for result in resolved:
            self.install(result)

        return self.resolve_local(coordinates[0])

    def resolve_local(self, coordinate: ArtifactCoordinate) -> str:
        """Absolute path of ``coordinate`` in the local cache, or an empty string."""
        cached = self.cache.find_artifact(coordinate)
        if cached is None:
            logger.debug("%s is not in the local repository", coordinate)
            return ""
        return os.path.abspath(cached.local_path)
