"""Maven version ordering, ranges and range resolution."""

from .version import MavenVersion
from .ranges import VersionRange, is_range
from .resolver import VersionResolver

__all__ = [
    "MavenVersion",
    "VersionRange",
    "is_range",
    "VersionResolver",
]
