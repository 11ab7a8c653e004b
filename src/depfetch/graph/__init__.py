"""Dependency graph collection and classpath flattening."""

from .resolver import DependencyGraphResolver
from .selectors import default_selector

__all__ = ["DependencyGraphResolver", "default_selector"]
