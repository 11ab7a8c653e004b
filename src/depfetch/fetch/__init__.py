"""Artifact download and installation."""

from .fetcher import ArtifactFetcher, ResolvedArtifact

__all__ = ["ArtifactFetcher", "ResolvedArtifact"]
