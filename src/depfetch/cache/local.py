"""On-disk local repository holding installed artifacts and cached metadata.

Layout mirrors a Maven local repository::

    <root>/<group as dirs>/<name>/<version>/<name>-<version>[-<classifier>].<ext>
    <root>/<group as dirs>/<name>/maven-metadata-<repositoryId>.xml

Every write goes to a temporary file in the target directory and is moved
into place with ``os.replace`` so a concurrent reader never sees a partial
file.
"""
from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import xml.etree.ElementTree as ET
from typing import Iterable, List, Optional

from depfetch.constants import Constants
from depfetch.errors import CacheReadFailure, CacheWriteFailure
from depfetch.models import ArtifactCoordinate, CachedArtifact
from depfetch.common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)


def sha1_hex(payload: bytes) -> str:
    return hashlib.sha1(payload).hexdigest()


def parse_checksum(content: bytes) -> str:
    """Extract the hex digest from a sidecar (``<hex>`` or ``<hex>  <file>``)."""
    text = content.decode("ascii", errors="ignore").strip()
    return text.split()[0].lower() if text else ""


def artifact_relative_path(coordinate: ArtifactCoordinate) -> str:
    """Repository-relative, ``/``-separated path of an artifact."""
    file_name = f"{coordinate.name}-{coordinate.version}"
    if coordinate.classifier:
        file_name += f"-{coordinate.classifier}"
    file_name += f".{coordinate.extension}"
    return "/".join([*coordinate.group.split("."), coordinate.name, coordinate.version, file_name])


def metadata_relative_path(group: str, name: str, file_name: str = Constants.METADATA_FILE) -> str:
    return "/".join([*group.split("."), name, file_name])


def _atomic_write(path: str, payload: bytes) -> None:
    directory = os.path.dirname(path)
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
    except OSError as exc:
        raise CacheWriteFailure(f"Could not write {path}", cause=exc) from exc


class LocalCache:
    """Local repository rooted at a single directory."""

    def __init__(self, root: str):
        self.root = os.path.abspath(os.path.expanduser(root))

    def _resolve(self, relative_path: str) -> str:
        return os.path.join(self.root, *relative_path.split("/"))

    # ---- paths ----------------------------------------------------------

    def artifact_path(self, coordinate: ArtifactCoordinate) -> str:
        return self._resolve(artifact_relative_path(coordinate))

    def metadata_path(self, group: str, name: str, repository_id: str) -> str:
        """Local file caching ``repository_id``'s metadata for group/name."""
        file_name = f"maven-metadata-{repository_id}.xml"
        return self._resolve(metadata_relative_path(group, name, file_name))

    # ---- metadata -------------------------------------------------------

    def write_metadata(self, group: str, name: str, repository_id: str,
                       content: bytes, checksum: Optional[bytes] = None) -> str:
        """Cache a repository's metadata document and its checksum sidecar."""
        path = self.metadata_path(group, name, repository_id)
        _atomic_write(path, content)
        _atomic_write(path + Constants.CHECKSUM_EXTENSION, checksum or sha1_hex(content).encode("ascii"))
        return path

    def read_metadata(self, group: str, name: str, repository_id: str) -> Optional[bytes]:
        path = self.metadata_path(group, name, repository_id)
        try:
            with open(path, "rb") as handle:
                return handle.read()
        except FileNotFoundError:
            return None

    def invalidate_metadata(self, group: str, name: str, repositories: Iterable) -> int:
        """Delete cached metadata (and sidecar) of every given repository.

        Best effort: failures are logged, never raised. Returns how many
        metadata files were removed, so a repeated call returns 0.
        """
        removed = 0
        for repository in repositories:
            path = self.metadata_path(group, name, repository.id)
            if not os.path.exists(path):
                continue
            try:
                os.remove(path)
                removed += 1
            except OSError as exc:
                logger.debug("Error deleting file '%s': %s", path, exc)
                continue
            sidecar = path + Constants.CHECKSUM_EXTENSION
            try:
                os.remove(sidecar)
            except FileNotFoundError:
                logger.debug("No checksum sidecar for '%s'", path)
            except OSError as exc:
                logger.debug("Error deleting file '%s': %s", sidecar, exc)
        if removed and is_debug_enabled(logger):
            logger.debug("Metadata invalidated", extra=extra_context(
                event="cache_invalidate", component="local_cache", target=f"{group}:{name}", count=removed,
            ))
        return removed

    def installed_versions(self, group: str, name: str) -> List[str]:
        """Versions recorded in ``maven-metadata-local.xml``."""
        path = self._resolve(metadata_relative_path(group, name, Constants.LOCAL_METADATA_FILE))
        try:
            root = ET.parse(path).getroot()
        except (OSError, ET.ParseError):
            return []
        return [v.text.strip() for v in root.findall("versioning/versions/version") if v.text and v.text.strip()]

    def _record_local_version(self, coordinate: ArtifactCoordinate) -> None:
        versions = self.installed_versions(coordinate.group, coordinate.name)
        if coordinate.version in versions:
            return
        versions.append(coordinate.version)
        root = ET.Element("metadata")
        ET.SubElement(root, "groupId").text = coordinate.group
        ET.SubElement(root, "artifactId").text = coordinate.name
        versioning = ET.SubElement(root, "versioning")
        versions_elem = ET.SubElement(versioning, "versions")
        for version in versions:
            ET.SubElement(versions_elem, "version").text = version
        path = self._resolve(metadata_relative_path(coordinate.group, coordinate.name, Constants.LOCAL_METADATA_FILE))
        _atomic_write(path, ET.tostring(root, encoding="utf-8", xml_declaration=True))

    # ---- artifacts ------------------------------------------------------

    def store_artifact(self, coordinate: ArtifactCoordinate, payload: bytes,
                       checksum: Optional[bytes] = None) -> CachedArtifact:
        """Install ``payload`` for ``coordinate``, overwriting any previous copy.

        Raises:
            CacheWriteFailure: when the file or its sidecar cannot be written.
        """
        path = self.artifact_path(coordinate)
        checksum_path = path + Constants.CHECKSUM_EXTENSION
        _atomic_write(path, payload)
        _atomic_write(checksum_path, checksum or sha1_hex(payload).encode("ascii"))
        self._record_local_version(coordinate)
        logger.debug("Installed %s to %s", coordinate, path)
        return CachedArtifact(coordinate=coordinate, local_path=path, checksum_path=checksum_path)

    def find_artifact(self, coordinate: ArtifactCoordinate) -> Optional[CachedArtifact]:
        path = self.artifact_path(coordinate)
        if not os.path.isfile(path):
            return None
        return CachedArtifact(coordinate=coordinate, local_path=path,
                              checksum_path=path + Constants.CHECKSUM_EXTENSION)

    def read_artifact(self, coordinate: ArtifactCoordinate) -> Optional[bytes]:
        cached = self.find_artifact(coordinate)
        if cached is None:
            return None
        try:
            with open(cached.local_path, "rb") as handle:
                return handle.read()
        except OSError as exc:
            raise CacheReadFailure(f"Could not read {cached.local_path}", cause=exc) from exc

