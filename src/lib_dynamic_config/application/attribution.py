"""Source attribution: which layers define a key, and with what raw value.

Purpose
-------
Answer "why does this key have this value" by walking the composite tree in
precedence order and reporting every leaf that defines the key, not only the
winner. Values of sensitive keys are replaced with a mask before they leave
this module.

Contents
--------
* :class:`SourceEntry` – ``(path, value)`` pair.
* :class:`SourceAttributor` – read-only tree walker.
* :func:`mask_patterns` – sensitivity predicate built from glob patterns.
* :data:`DEFAULT_SENSITIVE_PATTERNS` / :data:`MASK`.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Callable, NamedTuple

from ..domain.composite import PATH_SEPARATOR, CompositeConfig
from ..domain.nodes import ConfigNode

SensitivityPredicate = Callable[[str], bool]

MASK = "****"
DEFAULT_SENSITIVE_PATTERNS: tuple[str, ...] = ("*password*", "*secret*", "*token*", "*credential*")


class SourceEntry(NamedTuple):
    path: str
    value: str


def never_sensitive(key: str) -> bool:
    return False


def mask_patterns(*patterns: str) -> SensitivityPredicate:
    """Return a predicate matching keys against shell-style ``patterns``, ignoring case.

    Examples
    --------
    >>> is_sensitive = mask_patterns("*.password", "api.key")
    >>> is_sensitive("db.Password"), is_sensitive("API.KEY"), is_sensitive("db.host")
    (True, True, False)
    """

    lowered = tuple(pattern.lower() for pattern in patterns)

    def _matches(key: str) -> bool:
        candidate = key.lower()
        return any(fnmatchcase(candidate, pattern) for pattern in lowered)

    return _matches


class SourceAttributor:
    """Report every contributing layer of a key, masking sensitive values.

    Examples
    --------
    >>> from lib_dynamic_config.domain.nodes import MapConfigNode
    >>> application = CompositeConfig([("loaded", MapConfigNode({"db.password": "s3cret", "port": "80"}))])
    >>> root = CompositeConfig([
    ...     ("RUNTIME", MapConfigNode({"port": "8080"})),
    ...     ("APPLICATION", application),
    ... ])
    >>> attributor = SourceAttributor(root, is_sensitive=mask_patterns("*.password"))
    >>> attributor.find_sources("port")
    [SourceEntry(path='RUNTIME', value='8080'), SourceEntry(path='APPLICATION/loaded', value='80')]
    >>> attributor.find_sources("db.password")
    [SourceEntry(path='APPLICATION/loaded', value='****')]
    """

    def __init__(
        self,
        root: CompositeConfig,
        *,
        is_sensitive: SensitivityPredicate = never_sensitive,
        mask: str = MASK,
    ) -> None:
        self.root = root
        self.is_sensitive = is_sensitive
        self.mask = mask

    def find_sources(self, key: str) -> list[SourceEntry]:
        """Return ``(path, raw value)`` for every leaf defining ``key``, highest precedence first."""

        masked = self.is_sensitive(key)
        found: list[SourceEntry] = []
        for path, node in _walk(self.root, ""):
            value = node.get(key)
            if value is not None:
                found.append(SourceEntry(path, self.mask if masked else value))
        return found

    def mask_value(self, key: str, value: str) -> str:
        """Return ``value`` or the mask, depending on the sensitivity of ``key``."""

        return self.mask if self.is_sensitive(key) else value


def _walk(composite: CompositeConfig, prefix: str):
    """Yield ``(path, leaf)`` depth-first in precedence order."""

    for name, node in composite.children():
        path = f"{prefix}{PATH_SEPARATOR}{name}" if prefix else name
        if isinstance(node, CompositeConfig):
            yield from _walk(node, path)
        else:
            yield path, node


def leaf_paths(root: CompositeConfig) -> list[tuple[str, ConfigNode]]:
    """Flatten ``root`` into ``(path, leaf)`` pairs in precedence order."""

    return list(_walk(root, ""))
