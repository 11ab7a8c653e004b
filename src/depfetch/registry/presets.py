"""Built-in repositories, always listed ahead of user-configured ones."""

from typing import List

from depfetch.models import RepositoryDescriptor

MAVEN_CENTRAL = "Maven Central"
GLUON_NEXUS_RELEASES = "Gluon Nexus (Releases)"
GLUON_NEXUS_SNAPSHOTS = "Gluon Nexus (Snapshots)"
SONATYPE_SNAPSHOTS = "Sonatype (Snapshots)"

_PRESETS = (
    (MAVEN_CENTRAL, "https://repo1.maven.org/maven2/"),
    (GLUON_NEXUS_RELEASES, "https://nexus.gluonhq.com/nexus/content/repositories/releases/"),
    (GLUON_NEXUS_SNAPSHOTS, "https://nexus.gluonhq.com/nexus/content/repositories/snapshots/"),
    (SONATYPE_SNAPSHOTS, "https://oss.sonatype.org/content/repositories/snapshots/"),
)


def get_preset_repositories() -> List[RepositoryDescriptor]:
    """Return the preset descriptors in their declared order."""
    return [RepositoryDescriptor(id=repo_id, type="default", url=url) for repo_id, url in _PRESETS]
