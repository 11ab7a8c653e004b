"""Dependency selectors deciding which edges enter the collected graph.

Selectors are immutable; ``derive_child`` returns the selector to apply to
the dependencies of a selected dependency, which is how exclusions declared
on a dependency propagate to everything below it.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, Tuple

from depfetch.models import Scope

WILDCARD = "*"


def exclusion_matches(exclusion: Tuple[str, str], key: Tuple[str, str]) -> bool:
    group, name = exclusion
    return group in (WILDCARD, key[0]) and name in (WILDCARD, key[1])


class DependencySelector:
    """Accepts every dependency."""

    def select(self, dependency) -> bool:  # pylint: disable=unused-argument
        return True

    def derive_child(self, dependency) -> "DependencySelector":  # pylint: disable=unused-argument
        return self


class ScopeDependencySelector(DependencySelector):
    """Drops dependencies whose scope is in ``excluded``."""

    def __init__(self, excluded: Iterable[Scope] = (Scope.TEST, Scope.PROVIDED)):
        self.excluded = frozenset(excluded)

    def select(self, dependency) -> bool:
        return dependency.scope not in self.excluded


class OptionalDependencySelector(DependencySelector):
    """Drops dependencies marked optional."""

    def select(self, dependency) -> bool:
        return not dependency.optional


class ExclusionDependencySelector(DependencySelector):
    """Drops dependencies matching an accumulated exclusion set."""

    def __init__(self, exclusions: Iterable[Tuple[str, str]] = ()):
        self.exclusions: FrozenSet[Tuple[str, str]] = frozenset(exclusions)

    def select(self, dependency) -> bool:
        key = dependency.coordinate.key
        return not any(exclusion_matches(e, key) for e in self.exclusions)

    def derive_child(self, dependency) -> DependencySelector:
        if not dependency.exclusions:
            return self
        return ExclusionDependencySelector(self.exclusions | frozenset(dependency.exclusions))


class AndDependencySelector(DependencySelector):
    """Selects a dependency only if every child selector does."""

    def __init__(self, *selectors: DependencySelector):
        self.selectors = tuple(selectors)

    def select(self, dependency) -> bool:
        return all(s.select(dependency) for s in self.selectors)

    def derive_child(self, dependency) -> DependencySelector:
        derived = tuple(s.derive_child(dependency) for s in self.selectors)
        if all(a is b for a, b in zip(derived, self.selectors)):
            return self
        return AndDependencySelector(*derived)


def default_selector(exclusions: Iterable[Tuple[str, str]] = ()) -> DependencySelector:
    """test/provided scopes, optional edges and ``exclusions`` are dropped."""
    return AndDependencySelector(
        ScopeDependencySelector((Scope.TEST, Scope.PROVIDED)),
        OptionalDependencySelector(),
        ExclusionDependencySelector(exclusions),
    )
