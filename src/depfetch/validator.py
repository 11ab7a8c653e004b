"""Reachability and credential check for a candidate repository."""

from __future__ import annotations

import logging

from depfetch.constants import Constants
from depfetch.errors import NotFound, ResolutionError, root_cause
from depfetch.fetch.fetcher import ArtifactFetcher
from depfetch.models import ArtifactCoordinate, RepositoryDescriptor
from depfetch.registry.repositories import RepositoryRegistry

logger = logging.getLogger(__name__)


class RepositoryValidator:
    """Probes a repository with a coordinate that is never expected to exist.

    A "not found" answer proves the repository is reachable and accepts the
    credentials; anything else is reported as the root-cause message.
    """

    def __init__(self, registry: RepositoryRegistry, fetcher: ArtifactFetcher):
        self.registry = registry
        self.fetcher = fetcher
        self.probe = ArtifactCoordinate.parse(Constants.PROBE_COORDINATE)

    def validate(self, descriptor: RepositoryDescriptor) -> str:
        """Return an empty string when the repository answers, else a diagnostic."""
        repository = self.registry.build_repository(descriptor)
        try:
            self.fetcher.fetch(self.probe, [repository], use_cache=False)
        except ResolutionError as exc:
            cause = root_cause(exc)
            if isinstance(cause, NotFound):
                logger.debug("Repository %s is reachable", descriptor.id)
                return ""
            message = str(cause) or type(cause).__name__
            logger.info("Repository %s failed validation: %s", descriptor.id, message)
            return message
        return ""
