"""Error kinds raised inside the resolution engine.

Every error may wrap an underlying ``cause`` so diagnostics can be reduced to
the deepest failure with :func:`root_cause`. Only :class:`ConfigurationFailure`
is allowed to escape the public operations; the rest are logged and turned
into empty results at each component boundary.
"""
from __future__ import annotations

from typing import Optional


class ResolutionError(Exception):
    """Base class for all engine errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return f"{type(self).__name__}: {self.message}"


class TransportFailure(ResolutionError):
    """A repository could not be reached or answered with an error."""


class AuthenticationFailure(TransportFailure):
    """The repository rejected the supplied credentials (401/403)."""


class NotFound(ResolutionError):
    """The requested coordinate or version does not exist in a repository."""


class ArtifactNotFound(NotFound):
    """No repository holds the requested artifact."""


class RangeUnsatisfiable(ResolutionError):
    """No available version matches a requested range."""


class CacheWriteFailure(ResolutionError):
    """The local cache could not be written or cleaned."""


class CacheReadFailure(ResolutionError):
    """An installed artifact exists but could not be read."""


class ConfigurationFailure(ResolutionError):
    """The engine cannot be constructed from the given configuration."""


class DuplicateRepositoryError(ConfigurationFailure):
    """Two repositories share the same id."""


def _next_cause(error: BaseException) -> Optional[BaseException]:
    if isinstance(error, ResolutionError) and error.cause is not None:
        return error.cause
    return error.__cause__


def root_cause(error: BaseException) -> BaseException:
    """Return the deepest cause of ``error``.

    Stops on a self-referential link or on a cycle in the chain.
    """
    current = error
    seen = {id(current)}
    while True:
        cause = _next_cause(current)
        if cause is None or cause is current or id(cause) in seen:
            return current
        seen.add(id(cause))
        current = cause
