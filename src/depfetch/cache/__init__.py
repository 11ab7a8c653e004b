"""Local on-disk repository."""

from .local import LocalCache, artifact_relative_path, metadata_relative_path

__all__ = ["LocalCache", "artifact_relative_path", "metadata_relative_path"]
