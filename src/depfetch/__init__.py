"""depfetch - resolve, fetch and cache Maven artifacts for runtime use."""

from .config import EngineConfig, load_config
from .engine import RepositorySystem
from .models import ArtifactCoordinate, RepositoryDescriptor, ResolvedVersionSet

__all__ = [
    "ArtifactCoordinate",
    "EngineConfig",
    "RepositoryDescriptor",
    "RepositorySystem",
    "ResolvedVersionSet",
    "load_config",
]
