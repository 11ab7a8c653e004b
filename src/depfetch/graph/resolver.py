"""Transitive dependency collection and classpath flattening."""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from collections import deque
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from depfetch.errors import ArtifactNotFound, RangeUnsatisfiable, ResolutionError
from depfetch.fetch.fetcher import ArtifactFetcher
from depfetch.models import ArtifactCoordinate, DependencyNode, Scope
from depfetch.registry.repositories import RemoteRepository
from depfetch.common.logging_utils import extra_context, is_debug_enabled, Timer
from depfetch.graph.pom import PomModel, parse_pom
from depfetch.graph.selectors import default_selector
from depfetch.versioning.ranges import is_range
from depfetch.versioning.resolver import VersionResolver

logger = logging.getLogger(__name__)


class DependencyGraphResolver:
    """Builds filtered dependency graphs and resolves them to local paths.

    Conflicts follow "nearest wins": the graph is expanded breadth-first and
    the first occurrence of a versionless coordinate is kept. A coordinate
    that has been seen is never expanded again, which also makes cycles
    terminate.
    """

    def __init__(self, fetcher: ArtifactFetcher, version_resolver: VersionResolver):
        self.fetcher = fetcher
        self.version_resolver = version_resolver

    def _repositories(self, preferred_repository: Optional[RemoteRepository]) -> List[RemoteRepository]:
        if preferred_repository is not None:
            return [preferred_repository]
        return self.fetcher.registry.repositories()

    def _node_repositories(self, node: DependencyNode,
                           repositories: Sequence[RemoteRepository]) -> List[RemoteRepository]:
        """Search order for a node: the repository its version was pinned from comes first."""
        origin = self.fetcher.registry.find_repository(node.repository_id)
        if origin is None:
            return list(repositories)
        return [origin] + [r for r in repositories if r.id != origin.id]

    def _load_model(self, coordinate: ArtifactCoordinate, repositories: Sequence[RemoteRepository],
                    models: Dict[ArtifactCoordinate, Optional[PomModel]], depth: int = 0,
                    search_order: Optional[Sequence[RemoteRepository]] = None) -> Optional[PomModel]:
        """Fetch, install and parse a POM; results are memoized per collection.

        ``search_order`` applies to this POM only; parents and imported BOMs
        are looked up in ``repositories``.
        """
        pom = coordinate.with_extension("pom")
        if pom in models:
            return models[pom]
        models[pom] = None  # guards against parent cycles
        try:
            resolved = self.fetcher.fetch(pom, search_order or repositories)
            self.fetcher.install(resolved)
            payload = self.fetcher.payload_of(resolved)
        except ResolutionError as exc:
            logger.warning("Could not load POM for %s: %s", coordinate, exc.message)
            return None
        try:
            model = parse_pom(
                payload,
                lambda c, d: self._load_model(c, repositories, models, d),
                depth,
            )
        except ET.ParseError as exc:
            logger.warning("Invalid POM for %s: %s", coordinate, exc)
            return None
        models[pom] = model
        return model

    def _pin_version(self, node: DependencyNode, repositories: Sequence[RemoteRepository]) -> DependencyNode:
        """Replace a version range with its highest available match."""
        if not is_range(node.coordinate.version):
            return node
        result = self.version_resolver.resolve_version_range(node.coordinate, repositories)
        if not result.candidates:
            raise RangeUnsatisfiable(f"No version of {node.coordinate} satisfies {node.coordinate.version}")
        highest = result.candidates[-1]
        return replace(node, coordinate=node.coordinate.with_version(str(highest)),
                       repository_id=result.repository_for(highest))

    def collect(self, root: ArtifactCoordinate, preferred_repository: Optional[RemoteRepository] = None,
                exclusions: Iterable[Tuple[str, str]] = ()) -> DependencyNode:
        """Build the filtered dependency graph rooted at ``root``.

        Raises:
            ResolutionError: when a version range cannot be satisfied.
        """
        repositories = self._repositories(preferred_repository)
        models: Dict[ArtifactCoordinate, Optional[PomModel]] = {}
        root_node = self._pin_version(DependencyNode(coordinate=root, scope=Scope.COMPILE), repositories)

        visited: Set[Tuple] = {root_node.coordinate.conflict_key}
        queue = deque([(root_node, default_selector(exclusions))])
        while queue:
            node, selector = queue.popleft()
            if node.scope == Scope.SYSTEM:
                continue
            model = self._load_model(node.coordinate, repositories, models,
                                     search_order=self._node_repositories(node, repositories))
            if model is None:
                continue
            for declared in model.dependencies:
                if not selector.select(declared):
                    logger.debug("Filtered %s (%s) below %s", declared.coordinate,
                                 declared.scope.value, node.coordinate)
                    continue
                key = declared.coordinate.conflict_key
                if key in visited:
                    continue
                visited.add(key)
                child = self._pin_version(replace(declared, children=[]), repositories)
                node.children.append(child)
                queue.append((child, selector.derive_child(child)))
        return root_node

    def _artifact_path(self, node: DependencyNode, repositories: Sequence[RemoteRepository]) -> str:
        if node.scope == Scope.SYSTEM:
            if node.system_path and os.path.isfile(node.system_path):
                return os.path.abspath(node.system_path)
            raise ArtifactNotFound(f"System dependency {node.coordinate} not found at {node.system_path}")
        resolved = self.fetcher.fetch(node.coordinate, self._node_repositories(node, repositories))
        cached = self.fetcher.install(resolved)
        if cached is None:
            raise ArtifactNotFound(f"Could not install {node.coordinate}")
        return os.path.abspath(cached.local_path)

    def resolve_classpath(self, root: ArtifactCoordinate, preferred_repository: Optional[RemoteRepository] = None,
                          exclusions: Iterable[Tuple[str, str]] = (), raise_errors: bool = False) -> List[str]:
        """Absolute paths of every dependency of ``root`` (root excluded).

        Any unresolvable node fails the whole graph. Failures are logged and
        yield an empty list, or propagate when ``raise_errors`` is set.
        """
        with Timer() as timer:
            try:
                root_node = self.collect(root, preferred_repository, exclusions)
                repositories = self._repositories(preferred_repository)
                paths = []
                for node in root_node.walk():
                    path = self._artifact_path(node, repositories)
                    if node is root_node or node.coordinate == root_node.coordinate:
                        continue
                    if node.coordinate.extension == "pom":
                        continue
                    paths.append(path)
            except ResolutionError as exc:
                logger.info("Dependency resolution failed for %s: %s", root, exc.message)
                if raise_errors:
                    raise
                return []
        if is_debug_enabled(logger):
            logger.debug("Classpath resolved", extra=extra_context(
                event="classpath", component="graph_resolver", target=str(root),
                count=len(paths), duration_ms=timer.duration_ms(),
            ))
        return paths

    def classpath_string(self, root: ArtifactCoordinate, preferred_repository: Optional[RemoteRepository] = None,
                         exclusions: Iterable[Tuple[str, str]] = ()) -> str:
        """Classpath joined with the platform path separator."""
        return os.pathsep.join(self.resolve_classpath(root, preferred_repository, exclusions))
