"""Version range resolution against Maven repository metadata."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Sequence

from depfetch.cache.local import LocalCache, metadata_relative_path
from depfetch.constants import Constants
from depfetch.errors import CacheWriteFailure, TransportFailure
from depfetch.models import ArtifactCoordinate, ResolvedVersionSet
from depfetch.common.logging_utils import extra_context, is_debug_enabled, Timer
from depfetch.versioning.ranges import VersionRange, is_range
from depfetch.versioning.version import MavenVersion

logger = logging.getLogger(__name__)


def parse_metadata_versions(content: bytes) -> List[str]:
    """Return versions listed in a maven-metadata.xml document, in source order.

    Raises:
        ET.ParseError: when the document is not well-formed XML.
    """
    root = ET.fromstring(content)
    versions = []
    versions_elem = root.find("versioning/versions")
    if versions_elem is not None:
        for item in versions_elem.findall("version"):
            if isinstance(item.text, str) and item.text.strip():
                versions.append(item.text.strip())
    # Single-version metadata sometimes carries only <version>
    if not versions:
        single = root.find("version")
        if single is not None and single.text and single.text.strip():
            versions.append(single.text.strip())
    return versions


class VersionResolver:
    """Resolve version ranges across an ordered repository list.

    Each call is independent: origin information travels with the returned
    ResolvedVersionSet and nothing is retained on the instance.
    """

    def __init__(self, cache: LocalCache):
        self.cache = cache

    def _remote_versions(self, repository, coordinate: ArtifactCoordinate) -> List[str]:
        """Fetch one repository's version list, caching the metadata locally.

        Falls back to a previously cached copy when the transport fails.

        Raises:
            TransportFailure: when the repository is unreachable and nothing is cached,
                or it serves malformed metadata.
        """
        group, name = coordinate.group, coordinate.name
        relative = metadata_relative_path(group, name)
        try:
            content = repository.get(relative)
        except TransportFailure as exc:
            cached = self.cache.read_metadata(group, name, repository.id)
            if cached is None:
                raise
            logger.info("Using cached metadata of %s for %s:%s (%s)", repository.id, group, name, exc.message)
            content = cached
        else:
            if content is None:
                return []
            try:
                self.cache.write_metadata(group, name, repository.id, content)
            except CacheWriteFailure as exc:
                logger.debug("Could not cache metadata from %s: %s", repository.id, exc)
        try:
            return parse_metadata_versions(content)
        except ET.ParseError as exc:
            raise TransportFailure(f"{repository.id}: malformed {Constants.METADATA_FILE} for {group}:{name}",
                                   cause=exc) from exc

    def resolve_version_range(self, coordinate: ArtifactCoordinate,
                              repositories: Sequence) -> ResolvedVersionSet:
        """Return every version matching ``coordinate.version`` with its origin.

        A plain (non-range) version resolves to itself without any query.
        Failures are logged and reported as an empty set with ``error`` set.
        """
        spec = coordinate.version
        if not is_range(spec):
            try:
                return ResolvedVersionSet(coordinate, [MavenVersion(spec)], {})
            except ValueError as exc:
                return ResolvedVersionSet(coordinate, error=str(exc))

        try:
            version_range = VersionRange.parse(spec)
        except ValueError as exc:
            logger.warning("Invalid version range for %s: %s", coordinate, exc)
            return ResolvedVersionSet(coordinate, error=str(exc))

        remote = [r for r in repositories if r.id != Constants.LOCAL_REPOSITORY_ID]
        found: Dict[MavenVersion, str] = {}
        failures: List[TransportFailure] = []

        with Timer() as timer:
            for repository in remote:
                try:
                    versions = self._remote_versions(repository, coordinate)
                except TransportFailure as exc:
                    failures.append(exc)
                    logger.info("Version lookup for %s:%s failed on %s: %s",
                                coordinate.group, coordinate.name, repository.id, exc.message)
                    continue
                for text in versions:
                    if not repository.accepts_version(text):
                        continue
                    version = MavenVersion(text)
                    if version not in found and version_range.contains(version):
                        found[version] = repository.id

            if remote and len(failures) == len(remote):
                message = f"No repository could be queried for {coordinate.group}:{coordinate.name}"
                logger.warning(message)
                return ResolvedVersionSet(coordinate, error=message)

            for text in self.cache.installed_versions(coordinate.group, coordinate.name):
                version = MavenVersion(text)
                if version not in found and version_range.contains(version):
                    found[version] = Constants.LOCAL_REPOSITORY_ID

        self.cache.invalidate_metadata(coordinate.group, coordinate.name, remote)

        candidates = sorted(found)
        result = ResolvedVersionSet(
            coordinate,
            candidates=candidates,
            origins={str(v): found[v] for v in candidates},
        )
        if is_debug_enabled(logger):
            logger.debug("Version range resolved", extra=extra_context(
                event="version_range", component="version_resolver", target=str(coordinate),
                candidate_count=len(candidates), duration_ms=timer.duration_ms(),
            ))
        if not candidates:
            logger.info("No versions of %s:%s match %s", coordinate.group, coordinate.name, spec)
        return result

    def resolve_latest_release(self, coordinate: ArtifactCoordinate,
                               repositories: Sequence) -> Optional[MavenVersion]:
        """Highest non-snapshot version matching the range, or None."""
        result = self.resolve_version_range(coordinate, repositories)
        releases = [v for v in result.candidates if "snapshot" not in str(v).lower()]
        if not releases:
            return None
        return max(releases)

