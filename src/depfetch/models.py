"""Data models for coordinates, repositories and resolution results."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from depfetch.constants import Constants


class Scope(Enum):
    """Dependency scopes as declared in a POM."""
    COMPILE = "compile"
    RUNTIME = "runtime"
    TEST = "test"
    PROVIDED = "provided"
    SYSTEM = "system"
    IMPORT = "import"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Scope":
        """Map a POM scope string to a Scope; unknown or empty means compile."""
        if not value:
            return cls.COMPILE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.COMPILE


@dataclass(frozen=True)
class ArtifactCoordinate:
    """Identity of a single artifact: group, name, version, classifier, extension."""
    group: str
    name: str
    version: str
    classifier: Optional[str] = None
    extension: str = Constants.DEFAULT_EXTENSION

    @classmethod
    def parse(cls, text: str) -> "ArtifactCoordinate":
        """Parse ``group:name[:extension[:classifier]]:version``.

        Raises:
            ValueError: when the text does not have 3 to 5 non-empty parts.
        """
        parts = [p.strip() for p in text.strip().split(":")]
        if len(parts) < 3 or len(parts) > 5 or not all(parts):
            raise ValueError(
                f"Bad artifact coordinates {text!r}, expected format "
                "<groupId>:<artifactId>[:<extension>[:<classifier>]]:<version>"
            )
        group, name = parts[0], parts[1]
        version = parts[-1]
        extension = parts[2] if len(parts) >= 4 else Constants.DEFAULT_EXTENSION
        classifier = parts[3] if len(parts) == 5 else None
        return cls(group=group, name=name, version=version, classifier=classifier, extension=extension)

    @property
    def key(self) -> Tuple[str, str]:
        """(group, name) pair used for exclusions and conflict detection."""
        return self.group, self.name

    @property
    def conflict_key(self) -> Tuple[str, str, Optional[str], str]:
        """Versionless identity; two nodes with the same key never coexist in a graph."""
        return self.group, self.name, self.classifier, self.extension

    @property
    def is_snapshot(self) -> bool:
        return self.version.upper().endswith("-" + Constants.SNAPSHOT_MARKER)

    def with_version(self, version: str) -> "ArtifactCoordinate":
        return replace(self, version=version)

    def with_extension(self, extension: str, classifier: Optional[str] = None) -> "ArtifactCoordinate":
        return replace(self, extension=extension, classifier=classifier)

    def __str__(self) -> str:
        parts = [self.group, self.name]
        if self.classifier:
            parts += [self.extension, self.classifier]
        elif self.extension != Constants.DEFAULT_EXTENSION:
            parts.append(self.extension)
        parts.append(self.version)
        return ":".join(parts)


@dataclass(frozen=True)
class Credentials:
    """Username/password pair for a repository."""
    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class RepositoryDescriptor:
    """A configured remote repository."""
    id: str
    type: str
    url: str
    credentials: Optional[Credentials] = None

    @classmethod
    def create(
        cls,
        id: str,  # pylint: disable=redefined-builtin
        type: str,  # pylint: disable=redefined-builtin
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "RepositoryDescriptor":
        """Build a descriptor, attaching credentials only if both fields are non-empty."""
        credentials = None
        if username and password:
            credentials = Credentials(username=username, password=password)
        return cls(id=id, type=type or "default", url=url, credentials=credentials)


@dataclass
class ResolvedVersionSet:
    """Outcome of a version-range query.

    ``candidates`` is ascending in version order; ``origins`` maps each
    candidate's text to the id of the repository that supplied it.
    """
    coordinate: ArtifactCoordinate
    candidates: List = field(default_factory=list)
    origins: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return bool(self.candidates)

    def repository_for(self, version) -> Optional[str]:
        """Return the id of the repository that listed ``version``, if known."""
        if version is None:
            return None
        return self.origins.get(str(version))

    def versions(self) -> List[str]:
        return [str(v) for v in self.candidates]


@dataclass(frozen=True)
class CachedArtifact:
    """An artifact installed in the local cache."""
    coordinate: ArtifactCoordinate
    local_path: str
    checksum_path: str


@dataclass
class DependencyNode:
    """Node of a collected dependency graph."""
    coordinate: ArtifactCoordinate
    scope: Scope = Scope.COMPILE
    optional: bool = False
    exclusions: FrozenSet[Tuple[str, str]] = frozenset()
    children: List["DependencyNode"] = field(default_factory=list)
    repository_id: Optional[str] = None
    system_path: Optional[str] = None

    def walk(self):
        """Yield this node and its descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()
