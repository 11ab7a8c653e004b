"""Maven version range parsing and matching."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from depfetch.versioning.version import MavenVersion


def is_range(spec: str) -> bool:
    """True when ``spec`` uses bracket range notation."""
    spec = (spec or "").strip()
    return spec[:1] in ("[", "(")


@dataclass(frozen=True)
class Restriction:
    """A single bounded interval; ``None`` bounds are open-ended."""
    lower: Optional[MavenVersion]
    lower_inclusive: bool
    upper: Optional[MavenVersion]
    upper_inclusive: bool

    def contains(self, version: MavenVersion) -> bool:
        if self.lower is not None:
            if version < self.lower or (version == self.lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            if version > self.upper or (version == self.upper and not self.upper_inclusive):
                return False
        return True


class VersionRange:
    """Union of restrictions such as ``[1.0,2.0),[3.0,)``."""

    def __init__(self, spec: str, restrictions: List[Restriction]):
        self.spec = spec
        self.restrictions = restrictions

    @classmethod
    def parse(cls, spec: str) -> "VersionRange":
        """Parse range notation.

        Raises:
            ValueError: on unbalanced brackets, empty or inverted bounds.
        """
        text = (spec or "").strip()
        if not is_range(text):
            raise ValueError(f"Not a version range: {spec!r}")
        restrictions = [cls._parse_restriction(chunk) for chunk in cls._split(text)]
        if not restrictions:
            raise ValueError(f"Empty version range: {spec!r}")
        return cls(text, restrictions)

    @staticmethod
    def _split(text: str) -> List[str]:
        """Split ``[a,b),[c,d]`` into its bracketed chunks."""
        chunks: List[str] = []
        current = ""
        depth = 0
        for char in text:
            if char in "[(":
                if depth:
                    raise ValueError(f"Nested brackets in range {text!r}")
                depth = 1
                current = char
            elif char in "])":
                if not depth:
                    raise ValueError(f"Unbalanced brackets in range {text!r}")
                depth = 0
                chunks.append(current + char)
                current = ""
            elif depth:
                current += char
            elif char not in ", ":
                raise ValueError(f"Unexpected {char!r} between ranges in {text!r}")
        if depth:
            raise ValueError(f"Unbalanced brackets in range {text!r}")
        return chunks

    @staticmethod
    def _parse_restriction(chunk: str) -> Restriction:
        lower_inclusive = chunk.startswith("[")
        upper_inclusive = chunk.endswith("]")
        inner = chunk[1:-1].strip()

        if "," not in inner:
            # [1.2] pins an exact version
            if not inner or not (lower_inclusive and upper_inclusive):
                raise ValueError(f"Single version must be surrounded by []: {chunk!r}")
            pinned = MavenVersion(inner)
            return Restriction(pinned, True, pinned, True)

        lower_text, upper_text = (part.strip() for part in inner.split(",", 1))
        if "," in upper_text:
            raise ValueError(f"Too many bounds in {chunk!r}")
        lower = MavenVersion(lower_text) if lower_text else None
        upper = MavenVersion(upper_text) if upper_text else None
        if lower is not None and upper is not None and upper < lower:
            raise ValueError(f"Range defies version ordering: {chunk!r}")
        return Restriction(lower, lower_inclusive, upper, upper_inclusive)

    def contains(self, version) -> bool:
        if not isinstance(version, MavenVersion):
            version = MavenVersion(version)
        return any(r.contains(version) for r in self.restrictions)

    def filter(self, versions: Iterable) -> List[MavenVersion]:
        """Return matching versions, ascending."""
        parsed = [v if isinstance(v, MavenVersion) else MavenVersion(v) for v in versions]
        return sorted(v for v in parsed if self.contains(v))

    def __str__(self) -> str:
        return self.spec
