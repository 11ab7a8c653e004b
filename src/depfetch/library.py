"""User library membership: jar/fxml files and marker files in a directory.

A library directory holds jar and fxml files directly, plus marker files
listing external entries one path per line:

* ``library.jars``    jar files kept elsewhere (e.g. in the local repository)
* ``library.fxmls``   fxml files kept elsewhere
* ``library.folders`` folders of classes
"""

from __future__ import annotations

import logging
import os
from typing import Callable, List

logger = logging.getLogger(__name__)

FOLDERS_LIBRARY_FILENAME = "library.folders"
FXMLS_LIBRARY_FILENAME = "library.fxmls"
JARS_LIBRARY_FILENAME = "library.jars"


def is_jar_path(path: str) -> bool:
    return path.lower().endswith(".jar")


def is_fxml_path(path: str) -> bool:
    return path.lower().endswith(".fxml")


def is_folder_marker_path(path: str) -> bool:
    return path.lower().endswith(".folders")


def is_fxml_marker_path(path: str) -> bool:
    return path.lower().endswith(".fxmls")


def is_jar_marker_path(path: str) -> bool:
    return path.lower().endswith(".jars")


def get_marker_file_paths(marker_file: str, path_filter: Callable[[str], bool]) -> List[str]:
    """Existing paths listed in ``marker_file`` that satisfy ``path_filter``."""
    with open(marker_file, "r", encoding="utf-8") as handle:
        lines = [line.strip() for line in handle]
    return [p for p in lines if p and os.path.exists(p) and path_filter(p)]


class UserLibrary:
    """Read and extend the membership of a library directory."""

    def __init__(self, path: str):
        self.path = os.path.abspath(os.path.expanduser(path))

    def entries(self) -> List[str]:
        """Every jar, fxml and folder currently part of the library."""
        if not os.path.isdir(self.path):
            return []
        found: List[str] = []
        for name in sorted(os.listdir(self.path)):
            entry = os.path.join(self.path, name)
            try:
                if is_jar_path(entry) or is_fxml_path(entry):
                    found.append(entry)
                elif is_folder_marker_path(entry):
                    found.extend(get_marker_file_paths(entry, os.path.isdir))
                elif is_fxml_marker_path(entry) or is_jar_marker_path(entry):
                    found.extend(get_marker_file_paths(entry, os.path.isfile))
            except OSError as exc:
                logger.warning("Could not read library marker %s: %s", entry, exc)
        return found

    def jar_paths(self) -> List[str]:
        return [p for p in self.entries() if is_jar_path(p)]

    def add_jar_paths(self, paths: List[str]) -> List[str]:
        """Append jar paths to ``library.jars``; returns the ones newly added."""
        marker = os.path.join(self.path, JARS_LIBRARY_FILENAME)
        existing: List[str] = []
        if os.path.isfile(marker):
            with open(marker, "r", encoding="utf-8") as handle:
                existing = [line.strip() for line in handle if line.strip()]
        added = [p for p in paths if p and p not in existing]
        if not added:
            return []
        os.makedirs(self.path, exist_ok=True)
        with open(marker, "w", encoding="utf-8") as handle:
            handle.write("\n".join(existing + added) + "\n")
        logger.info("Added %d jar(s) to %s", len(added), marker)
        return added
