"""Cascade strategies: candidate resource names from a base name and profiles.

Purpose
-------
Decide which resources make up one logical configuration. Given the base name
``application`` and the active profiles ``("local", "test")`` the default
strategy yields, most specific first::

    application-local-test
    application-test
    application-local
    application

Every strategy here is a pure function of its inputs; the loader performs all
I/O.
"""

from __future__ import annotations

from itertools import combinations
from typing import Sequence


class DefaultCascadeStrategy:
    """Profile combinations, longest first, then the bare base name.

    Combinations of equal length are ordered so that those containing later
    profiles come first: the last profile in the active list has the highest
    precedence. Blank and repeated profile names are ignored.

    Examples
    --------
    >>> DefaultCascadeStrategy().generate("application", ["local"])
    ['application-local', 'application']
    >>> DefaultCascadeStrategy().generate("application", ["local", "test"])
    ['application-local-test', 'application-test', 'application-local', 'application']
    >>> DefaultCascadeStrategy(separator="_").generate("app", [])
    ['app']
    """

    def __init__(self, *, separator: str = "-") -> None:
        self.separator = separator

    def generate(self, base_name: str, profiles: Sequence[str]) -> list[str]:
        active = _normalise_profiles(profiles)
        candidates: list[str] = []
        for size in range(len(active), 0, -1):
            for combo in reversed(list(combinations(active, size))):
                candidates.append(self.separator.join((base_name, *combo)))
        candidates.append(base_name)
        return candidates


class NoCascadeStrategy:
    """Ignore profiles; only the base name is a candidate.

    Examples
    --------
    >>> NoCascadeStrategy().generate("application", ["local"])
    ['application']
    """

    def generate(self, base_name: str, profiles: Sequence[str]) -> list[str]:
        return [base_name]


def parse_profiles(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated profile list as supplied on a command line.

    Examples
    --------
    >>> parse_profiles("local, test,,local")
    ('local', 'test')
    >>> parse_profiles(None)
    ()
    """

    if not value:
        return ()
    return _normalise_profiles(value.split(","))


def _normalise_profiles(profiles: Sequence[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for profile in profiles:
        name = profile.strip()
        if name:
            seen.setdefault(name, None)
    return tuple(seen)
