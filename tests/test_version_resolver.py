"""Tests for version range resolution, origin tracking and metadata invalidation."""

import os
from unittest.mock import patch

import pytest

from depfetch.errors import TransportFailure
from depfetch.models import ArtifactCoordinate, RepositoryDescriptor
from depfetch.versioning.resolver import parse_metadata_versions
from depfetch.versioning.version import MavenVersion


@pytest.fixture
def published(fake_repo):
    """org.example:lib with 1.0, 1.2 and 2.0-SNAPSHOT."""
    fake_repo.add_versions("org.example", "lib", ["1.0", "1.2", "2.0-SNAPSHOT"])
    return fake_repo


class TestParseMetadata:
    """maven-metadata.xml parsing."""

    def test_versions_in_source_order(self):
        content = (b"<metadata><versioning><versions>"
                   b"<version>1.2</version><version> 1.0 </version><version></version>"
                   b"</versions></versioning></metadata>")
        assert parse_metadata_versions(content) == ["1.2", "1.0"]

    def test_single_version_fallback(self):
        assert parse_metadata_versions(b"<metadata><version>3.0</version></metadata>") == ["3.0"]


class TestResolveVersionRange:
    """resolve_version_range against file:// repositories."""

    def test_open_range_returns_all_versions(self, published, make_system):
        system = make_system(published)
        result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[1.0,)"))
        assert result.versions() == ["1.0", "1.2", "2.0-SNAPSHOT"]
        assert result.error is None

    def test_candidates_are_subset_matching_range(self, published, make_system):
        system = make_system(published)
        result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[1.1,1.5)"))
        assert result.versions() == ["1.2"]

    def test_latest_release_skips_snapshots(self, published, make_system):
        system = make_system(published)
        latest = system.find_latest_version(ArtifactCoordinate.parse("org.example:lib:[1.0,)"))
        assert latest == MavenVersion("1.2")

    def test_latest_release_none_when_nothing_matches(self, published, make_system):
        system = make_system(published)
        assert system.find_latest_version(ArtifactCoordinate.parse("org.example:lib:[5.0,)")) is None

    def test_latest_release_with_mixed_precision(self, fake_repo, make_system):
        """1.0-rc3 is newer than 1.0.0-rc2 although it has fewer numeric items."""
        fake_repo.add_versions("org.example", "lib", ["1.0.0-rc2", "1.0-rc3"])
        system = make_system(fake_repo)
        latest = system.find_latest_version(ArtifactCoordinate.parse("org.example:lib:[0.1,)"))
        assert str(latest) == "1.0-rc3"
        result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[0.1,)"))
        assert result.versions() == ["1.0.0-rc2", "1.0-rc3"]

    def test_releases_only_drops_snapshot_versions(self, published, make_system):
        system = make_system(published, releases_only=True)
        result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[1.0,)"))
        assert result.versions() == ["1.0", "1.2"]

    def test_plain_version_resolves_to_itself(self, make_system):
        system = make_system()
        with patch("depfetch.common.http_client.fetch") as mock_fetch:
            result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:1.4"))
        assert result.versions() == ["1.4"]
        mock_fetch.assert_not_called()

    def test_invalid_range_gives_empty_result(self, published, make_system):
        system = make_system(published)
        result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[2.0,1.0]"))
        assert not result
        assert result.error

    def test_unknown_artifact_is_empty_without_error(self, published, make_system):
        system = make_system(published)
        result = system.find_versions(ArtifactCoordinate.parse("org.example:missing:[1.0,)"))
        assert result.candidates == []
        assert result.error is None


class TestOriginTracking:
    """Each version remembers the first repository that listed it."""

    def test_first_repository_wins(self, fake_repo, second_repo, make_system):
        fake_repo.add_versions("org.example", "lib", ["1.0"])
        second_repo.add_versions("org.example", "lib", ["1.0", "1.1"])
        system = make_system(fake_repo, second_repo)

        result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[1.0,)"))

        assert result.repository_for("1.0") == "repo-a"
        assert result.repository_for(MavenVersion("1.1")) == "repo-b"
        assert system.get_remote_repository(result, MavenVersion("1.1")).id == "repo-b"

    def test_unknown_origin_falls_back_to_local(self, published, make_system):
        system = make_system(published)
        result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[1.0,)"))
        repository = system.get_remote_repository(result, MavenVersion("9.9"))
        assert repository.id == "local"
        assert repository.url.startswith("file:")

    def test_none_inputs_give_none(self, make_system):
        system = make_system()
        assert system.get_remote_repository(None, None) is None

    def test_locally_installed_versions_are_included(self, published, make_system):
        system = make_system(published)
        system.cache.store_artifact(ArtifactCoordinate.parse("org.example:lib:1.5"), b"local build")

        result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[1.0,)"))

        assert "1.5" in result.versions()
        assert result.repository_for("1.5") == "local"

    def test_results_are_independent(self, fake_repo, second_repo, make_system):
        """A second query does not disturb the origins of the first result."""
        fake_repo.add_versions("org.example", "lib", ["1.0"])
        second_repo.add_versions("org.example", "other", ["3.0"])
        system = make_system(fake_repo, second_repo)

        first = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[1.0,)"))
        system.find_versions(ArtifactCoordinate.parse("org.example:other:[1.0,)"))

        assert first.repository_for("1.0") == "repo-a"


class TestMetadataInvalidation:
    """Cached metadata is dropped after every successful query."""

    def test_metadata_removed_after_success(self, published, make_system):
        system = make_system(published)
        system.find_versions(ArtifactCoordinate.parse("org.example:lib:[1.0,)"))

        path = system.cache.metadata_path("org.example", "lib", "repo-a")
        assert not os.path.exists(path)
        assert not os.path.exists(path + ".sha1")

    def test_transport_failure_uses_cached_metadata(self, published, second_repo, make_system):
        second_repo.add_versions("org.example", "lib", ["0.9"])
        system = make_system(published, second_repo)
        system.cache.write_metadata(
            "org.example", "lib", "repo-b",
            b"<metadata><versioning><versions><version>0.8</version></versions></versioning></metadata>",
        )
        real_get = type(system.get_repositories()[1]).get

        def flaky_get(repository, relative):
            if repository.id == "repo-b":
                raise TransportFailure("repo-b: connection error")
            return real_get(repository, relative)

        with patch("depfetch.registry.repositories.RemoteRepository.get", new=flaky_get):
            result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[0.1,)"))

        assert "0.8" in result.versions()
        assert result.repository_for("0.8") == "repo-b"
        assert not os.path.exists(system.cache.metadata_path("org.example", "lib", "repo-b"))

    def test_all_repositories_failing_gives_empty_set(self, make_system):
        system = make_system(RepositoryDescriptor(id="down", type="default", url="https://repo.invalid/maven2"))
        system.cache.store_artifact(ArtifactCoordinate.parse("org.example:lib:1.0"), b"x")

        with patch("depfetch.common.http_client.fetch",
                   side_effect=TransportFailure("down: connection error")):
            result = system.find_versions(ArtifactCoordinate.parse("org.example:lib:[1.0,)"))

        assert result.candidates == []
        assert result.error
