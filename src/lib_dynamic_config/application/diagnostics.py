"""Diagnostic read API for admin surfaces and the CLI.

Purpose
-------
List resolved configuration, filter it by prefix, and explain where a key's
value comes from. Sensitive values are masked and keys that fail to resolve
are reported with a reason rather than raising, so a single bad placeholder
never takes down a diagnostics page.
"""

from __future__ import annotations

from typing import TypedDict

from ..domain.composite import CompositeConfig
from ..domain.errors import InterpolationError
from .attribution import SourceAttributor


class PropertyReport(TypedDict):
    """One row of a diagnostic listing.

    Attributes
    ----------
    value:
        Resolved (or masked) value; ``""`` when resolution failed.
    source:
        Path of the layer whose raw value won, e.g. ``"APPLICATION/loaded"``.
    error:
        Reason resolution failed, otherwise ``None``.
    """

    value: str
    source: str | None
    error: str | None


class ConfigInspector:
    """Read-only diagnostic view over a composite tree.

    Examples
    --------
    >>> from lib_dynamic_config.domain.nodes import MapConfigNode
    >>> from lib_dynamic_config.application.attribution import mask_patterns
    >>> root = CompositeConfig([("APPLICATION", MapConfigNode({
    ...     "db.url": "${db.host}:5432", "db.host": "svc1", "db.password": "x", "loop": "${loop}",
    ...     "db.dsn": "app:${db.password}@svc1",
    ... }))])
    >>> inspector = ConfigInspector(SourceAttributor(root, is_sensitive=mask_patterns("*.password")))
    >>> inspector.find("db")["db.url"]
    {'value': 'svc1:5432', 'source': 'APPLICATION', 'error': None}
    >>> inspector.list()["db.password"]["value"]
    '****'
    >>> inspector.list()["db.dsn"]["value"]
    '****'
    >>> inspector.list()["loop"]["error"]
    'Circular reference: loop -> loop'
    """

    def __init__(self, attributor: SourceAttributor) -> None:
        self.attributor = attributor

    @property
    def root(self) -> CompositeConfig:
        return self.attributor.root

    def list(self) -> dict[str, PropertyReport]:
        """Return every visible key with its resolved value, sorted by key."""

        return {key: self._report(key) for key in sorted(self.root.get_keys())}

    def find(self, prefix: str) -> dict[str, PropertyReport]:
        """Return keys equal to ``prefix`` or nested below ``prefix.``."""

        nested = prefix + "."
        return {
            key: self._report(key)
            for key in sorted(self.root.get_keys())
            if key == prefix or key.startswith(nested)
        }

    def find_sources(self, key: str) -> dict[str, str]:
        """Return layer path → raw (masked) value for every layer defining ``key``."""

        return {entry.path: entry.value for entry in self.attributor.find_sources(key)}

    def resolve(self, key: str) -> str | None:
        """Return the interpolated value of ``key``, masked when it or any key it references is sensitive.

        Raises
        ------
        InterpolationError
            When a placeholder is circular, or undefined under a strict
            interpolator.
        """

        hit = self.root.lookup(key)
        if hit is None:
            return None
        return self._resolve_masked(key, hit.value)

    def _report(self, key: str) -> PropertyReport:
        hit = self.root.lookup(key)
        if hit is None:
            return PropertyReport(value="", source=None, error="not defined")
        try:
            value = self._resolve_masked(key, hit.value)
        except InterpolationError as exc:
            return PropertyReport(value="", source=hit.source, error=str(exc))
        return PropertyReport(value=value, source=hit.source, error=None)

    def _resolve_masked(self, key: str, raw: str) -> str:
        consulted = {key}

        def lookup(name: str) -> str | None:
            consulted.add(name)
            return self.root.get(name)

        value = self.root.interpolator.resolve(raw, lookup, key=key)
        if any(self.attributor.is_sensitive(name) for name in consulted):
            return self.attributor.mask
        return value
