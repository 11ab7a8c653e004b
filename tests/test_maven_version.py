"""Tests for Maven version ordering and range parsing."""

import pytest

from depfetch.versioning.ranges import VersionRange, is_range
from depfetch.versioning.version import MavenVersion


class TestMavenVersionOrdering:
    """Ordering of numeric and qualifier items."""

    def test_numeric_items_compare_numerically(self):
        """1.10 sorts after 1.9."""
        assert MavenVersion("1.9") < MavenVersion("1.10")

    def test_trailing_zeros_are_insignificant(self):
        assert MavenVersion("1") == MavenVersion("1.0")
        assert MavenVersion("1.0.0") == MavenVersion("1")
        assert hash(MavenVersion("1.0")) == hash(MavenVersion("1"))

    def test_release_aliases_equal_plain_release(self):
        assert MavenVersion("1.0-final") == MavenVersion("1.0")
        assert MavenVersion("1.0.GA") == MavenVersion("1.0")

    def test_trailing_zeros_before_qualifier_are_insignificant(self):
        """Mixed precision: 1-alpha equals 1.0-alpha and 1.0.0-rc2 sorts before 1.0-rc3."""
        assert MavenVersion("1-alpha") == MavenVersion("1.0-alpha")
        assert hash(MavenVersion("1-alpha")) == hash(MavenVersion("1.0.0-alpha"))
        assert MavenVersion("1.0.0-rc2") < MavenVersion("1.0-rc3")
        assert MavenVersion("1.0-rc3") < MavenVersion("1.0.0")

    def test_mixed_precision_sort(self):
        texts = ["1.0.0-rc2", "1.0-SNAPSHOT", "1-beta-1", "1.0.1", "1.0-rc3", "1"]
        assert [str(v) for v in sorted(MavenVersion(t) for t in texts)] == [
            "1-beta-1", "1.0.0-rc2", "1.0-rc3", "1.0-SNAPSHOT", "1", "1.0.1",
        ]

    def test_qualifier_after_dot(self):
        assert MavenVersion("1.0.RC1") == MavenVersion("1.0-rc-1")
        assert MavenVersion("2.0.0.Final") == MavenVersion("2")

    def test_qualifier_ranks(self):
        """alpha < beta < milestone < rc < snapshot < release < sp."""
        ordered = ["1.0-alpha-1", "1.0-beta-1", "1.0-milestone-1", "1.0-rc-1",
                   "1.0-SNAPSHOT", "1.0", "1.0-sp-1"]
        versions = [MavenVersion(v) for v in ordered]
        assert sorted(reversed(versions)) == versions

    def test_short_aliases_only_before_digits(self):
        assert MavenVersion("1.0-a1") == MavenVersion("1.0-alpha-1")
        assert MavenVersion("1.0-cr1") == MavenVersion("1.0-rc-1")

    def test_snapshot_sorts_before_its_release(self):
        assert MavenVersion("2.0-SNAPSHOT") < MavenVersion("2.0")
        assert MavenVersion("1.2") < MavenVersion("2.0-SNAPSHOT")

    def test_unknown_qualifier_after_sp(self):
        assert MavenVersion("1.0-sp") < MavenVersion("1.0-zeta")
        assert MavenVersion("1.0-foo") < MavenVersion("1.0-zeta")

    def test_string_comparison_and_text_round_trip(self):
        version = MavenVersion("3.12.0")
        assert version == "3.12"
        assert version > "3.9"
        assert str(version) == "3.12.0"
        assert version.is_snapshot is False
        assert MavenVersion("1.0-SNAPSHOT").is_snapshot is True

    def test_empty_text_rejected(self):
        with pytest.raises(ValueError):
            MavenVersion("  ")


class TestVersionRange:
    """Bracket range notation."""

    def test_is_range(self):
        assert is_range("[1.0,)")
        assert is_range("(,2.0]")
        assert not is_range("1.0")
        assert not is_range("")

    def test_half_open_range(self):
        spec = VersionRange.parse("[1.0,2.0)")
        assert spec.contains("1.0")
        assert spec.contains("1.9.9")
        assert not spec.contains("2.0")
        assert not spec.contains("0.9")

    def test_exclusive_lower_and_open_upper(self):
        spec = VersionRange.parse("(1.0,]")
        assert not spec.contains("1.0")
        assert spec.contains("99")

    def test_exact_pin(self):
        spec = VersionRange.parse("[1.2]")
        assert spec.contains("1.2.0")
        assert not spec.contains("1.2.1")

    def test_union_of_restrictions(self):
        spec = VersionRange.parse("[1.0,1.5),[2.0,)")
        assert spec.filter(["0.5", "1.0", "1.6", "2.0", "3.1"]) == [
            MavenVersion("1.0"), MavenVersion("2.0"), MavenVersion("3.1"),
        ]

    def test_filter_returns_ascending(self):
        spec = VersionRange.parse("[1.0,)")
        assert [str(v) for v in spec.filter(["1.2", "1.0", "1.10", "1.9"])] == ["1.0", "1.2", "1.9", "1.10"]

    @pytest.mark.parametrize("spec", ["1.0", "[1.0", "[1.0,2.0", "[2.0,1.0]", "(1.2)", "[1.0,2.0]x", "[,1,2]"])
    def test_invalid_ranges(self, spec):
        with pytest.raises(ValueError):
            VersionRange.parse(spec)
