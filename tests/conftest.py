"""Shared fixtures: on-disk fake Maven repositories served over file:// URLs."""

import hashlib
import os
from typing import Iterable, Optional

import pytest

from depfetch.config import EngineConfig
from depfetch.engine import RepositorySystem
from depfetch.models import ArtifactCoordinate, RepositoryDescriptor


def _pom(group, name, version, dependencies=(), parent=None, properties=None, managed=()):
    def dep_xml(dep):
        parts = [f"<groupId>{dep['group']}</groupId>", f"<artifactId>{dep['name']}</artifactId>"]
        if dep.get("version"):
            parts.append(f"<version>{dep['version']}</version>")
        for tag in ("type", "classifier", "scope", "systemPath"):
            if dep.get(tag):
                parts.append(f"<{tag}>{dep[tag]}</{tag}>")
        if dep.get("optional"):
            parts.append("<optional>true</optional>")
        if dep.get("exclusions"):
            parts.append("<exclusions>" + "".join(
                f"<exclusion><groupId>{g}</groupId><artifactId>{a}</artifactId></exclusion>"
                for g, a in dep["exclusions"]
            ) + "</exclusions>")
        return "<dependency>" + "".join(parts) + "</dependency>"

    body = ['<project xmlns="http://maven.apache.org/POM/4.0.0">', "<modelVersion>4.0.0</modelVersion>"]
    if parent:
        body.append(f"<parent><groupId>{parent[0]}</groupId><artifactId>{parent[1]}</artifactId>"
                    f"<version>{parent[2]}</version></parent>")
    if group:
        body.append(f"<groupId>{group}</groupId>")
    body.append(f"<artifactId>{name}</artifactId>")
    if version:
        body.append(f"<version>{version}</version>")
    if properties:
        body.append("<properties>" + "".join(f"<{k}>{v}</{k}>" for k, v in properties.items()) + "</properties>")
    if managed:
        body.append("<dependencyManagement><dependencies>" + "".join(dep_xml(d) for d in managed)
                    + "</dependencies></dependencyManagement>")
    if dependencies:
        body.append("<dependencies>" + "".join(dep_xml(d) for d in dependencies) + "</dependencies>")
    body.append("</project>")
    return "".join(body).encode("utf-8")


class FakeRepository:
    """Builds a Maven-layout directory that the engine reads via file://."""

    def __init__(self, root, repo_id):
        self.root = str(root)
        self.id = repo_id
        os.makedirs(self.root, exist_ok=True)

    @property
    def url(self):
        return "file://" + os.path.abspath(self.root)

    @property
    def descriptor(self):
        return RepositoryDescriptor(id=self.id, type="default", url=self.url)

    def write(self, relative, content: bytes, checksum: bool = True):
        path = os.path.join(self.root, *relative.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as handle:
            handle.write(content)
        if checksum:
            with open(path + ".sha1", "w", encoding="ascii") as handle:
                handle.write(hashlib.sha1(content).hexdigest())
        return path

    def add_versions(self, group, name, versions: Iterable[str]):
        listing = "".join(f"<version>{v}</version>" for v in versions)
        xml = (f"<metadata><groupId>{group}</groupId><artifactId>{name}</artifactId>"
               f"<versioning><versions>{listing}</versions></versioning></metadata>")
        return self.write("/".join([*group.split("."), name, "maven-metadata.xml"]), xml.encode("utf-8"))

    def add_artifact(self, coordinate: str, payload: Optional[bytes] = None, dependencies=(), **pom_kwargs):
        """Publish a jar (skipped when payload is False) and its POM."""
        c = ArtifactCoordinate.parse(coordinate)
        base = "/".join([*c.group.split("."), c.name, c.version, f"{c.name}-{c.version}"])
        if payload is not False:
            self.write(base + ".jar", payload or f"jar:{coordinate}".encode("utf-8"))
        self.write(base + ".pom", _pom(c.group, c.name, c.version, dependencies, **pom_kwargs))
        return c


@pytest.fixture
def fake_repo(tmp_path):
    return FakeRepository(tmp_path / "remote-a", "repo-a")


@pytest.fixture
def second_repo(tmp_path):
    return FakeRepository(tmp_path / "remote-b", "repo-b")


@pytest.fixture
def local_root(tmp_path):
    return str(tmp_path / "m2")


@pytest.fixture
def make_system(local_root):
    """Factory for a RepositorySystem over the given fake repositories only."""
    def _make(*repos, releases_only=False):
        config = EngineConfig(
            local_repository=local_root,
            releases_only=releases_only,
            repositories=[r.descriptor if isinstance(r, FakeRepository) else r for r in repos],
            presets=[],
        )
        return RepositorySystem(config)
    return _make
