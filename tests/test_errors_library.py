"""Tests for error chaining, coordinates and user library markers."""

import pytest

from depfetch.errors import ArtifactNotFound, ResolutionError, TransportFailure, root_cause
from depfetch.library import JARS_LIBRARY_FILENAME, UserLibrary, get_marker_file_paths, is_jar_path
from depfetch.models import ArtifactCoordinate


class TestRootCause:
    """root_cause follows explicit causes and exception chaining."""

    def test_explicit_cause_chain(self):
        deepest = OSError("connection reset")
        middle = TransportFailure("central: connection error", cause=deepest)
        top = ResolutionError("could not resolve", cause=middle)
        assert root_cause(top) is deepest

    def test_python_exception_chaining(self):
        try:
            try:
                raise KeyError("inner")
            except KeyError as exc:
                raise ArtifactNotFound("outer") from exc
        except ArtifactNotFound as exc:
            assert isinstance(root_cause(exc), KeyError)

    def test_self_reference_stops(self):
        error = ResolutionError("loop")
        error.cause = error
        assert root_cause(error) is error

    def test_cycle_stops(self):
        first = ResolutionError("first")
        second = ResolutionError("second", cause=first)
        first.cause = second
        assert root_cause(first) is second

    def test_str_includes_kind(self):
        assert str(TransportFailure("down")) == "TransportFailure: down"


class TestArtifactCoordinate:
    """Coordinate parsing and printing."""

    @pytest.mark.parametrize("text,expected", [
        ("g:a:1.0", ("g", "a", "1.0", None, "jar")),
        ("g:a:pom:1.0", ("g", "a", "1.0", None, "pom")),
        ("g:a:jar:sources:1.0", ("g", "a", "1.0", "sources", "jar")),
    ])
    def test_parse(self, text, expected):
        c = ArtifactCoordinate.parse(text)
        assert (c.group, c.name, c.version, c.classifier, c.extension) == expected
        assert str(c) == text.replace(":jar:1.0", ":1.0")

    @pytest.mark.parametrize("text", ["g:a", "g::1.0", "a:b:c:d:e:f"])
    def test_parse_rejects(self, text):
        with pytest.raises(ValueError):
            ArtifactCoordinate.parse(text)

    def test_snapshot_detection(self):
        assert ArtifactCoordinate.parse("g:a:1.0-SNAPSHOT").is_snapshot
        assert not ArtifactCoordinate.parse("g:a:1.0").is_snapshot


class TestUserLibrary:
    """Library directories and marker files."""

    def test_entries_include_marker_paths(self, tmp_path):
        library = tmp_path / "lib"
        library.mkdir()
        (library / "direct.jar").write_bytes(b"")
        external = tmp_path / "external.jar"
        external.write_bytes(b"")
        classes = tmp_path / "classes"
        classes.mkdir()
        (library / JARS_LIBRARY_FILENAME).write_text(f"{external}\n{tmp_path / 'gone.jar'}\n")
        (library / "library.folders").write_text(f"{classes}\n")

        entries = UserLibrary(str(library)).entries()

        assert str(library / "direct.jar") in entries
        assert str(external) in entries
        assert str(classes) in entries
        assert str(tmp_path / "gone.jar") not in entries

    def test_add_jar_paths_is_idempotent(self, tmp_path):
        jar = tmp_path / "x.jar"
        jar.write_bytes(b"")
        library = UserLibrary(str(tmp_path / "lib"))

        assert library.add_jar_paths([str(jar)]) == [str(jar)]
        assert library.add_jar_paths([str(jar)]) == []
        assert library.jar_paths() == [str(jar)]

    def test_marker_filter(self, tmp_path):
        jar = tmp_path / "x.jar"
        jar.write_bytes(b"")
        marker = tmp_path / "m.jars"
        marker.write_text(f"{jar}\n{tmp_path}\n\n")
        assert get_marker_file_paths(str(marker), is_jar_path) == [str(jar)]

    def test_missing_directory_is_empty(self, tmp_path):
        assert UserLibrary(str(tmp_path / "none")).entries() == []
