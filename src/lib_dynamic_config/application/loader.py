"""Cascade-driven loading of one named configuration.

Purpose
-------
Turn a base name into a single merged node: ask the cascade strategy for
candidate names, ask each registered reader for each candidate, and merge
whatever was found so that more specific candidates win.

Contents
--------
* :class:`LoadResult` – outcome of one load call; ``found`` is ``False`` when
  no candidate existed.
* :class:`ConfigLoader` – the loader.

System Role
-----------
The loader never touches the configuration tree. Callers insert
``LoadResult.node`` themselves once the load has completed, so a load that
fails or is cancelled leaves every existing layer untouched. ``load`` may block
on reader I/O; callers that must not block run it on a background thread and
publish the result through the ordinary tree mutation APIs.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..domain.errors import LoadCancelledError, ParseError
from ..domain.interpolate import Interpolator, Lookup
from ..domain.nodes import MapConfigNode
from ..observability import log_debug, log_error, log_info, make_event
from .cascade import DefaultCascadeStrategy
from .merge import merge_resources
from .ports import CascadeStrategy, ConfigReader, LoadedResource


@dataclass(frozen=True)
class LoadResult:
    """Merged node produced by :meth:`ConfigLoader.load`.

    Attributes
    ----------
    name:
        Base name that was loaded.
    node:
        Merged node; empty when nothing was found.
    resources:
        ``(candidate, location)`` pairs that contributed, most specific first.
    """

    name: str
    node: MapConfigNode
    resources: tuple[tuple[str, str], ...] = field(default=())

    @property
    def found(self) -> bool:
        """``True`` when at least one candidate resource was loaded."""

        return bool(self.resources)


class ConfigLoader:
    """Load and merge every cascade candidate of a base name.

    Parameters
    ----------
    readers:
        Readers tried in order for each candidate; the first that returns a
        resource wins for that candidate.
    cascade:
        Strategy generating candidate names. Defaults to
        :class:`DefaultCascadeStrategy`.
    profiles:
        Active profiles used when ``load`` is not given its own.
    lookup:
        Optional raw lookup (usually the root config's ``get``) used to expand
        placeholders in candidate names such as ``application-${env}``.
    interpolator:
        Interpolator applied to candidate names; lenient by default.

    Examples
    --------
    >>> from lib_dynamic_config.adapters.readers.memory import MemoryReader
    >>> reader = MemoryReader({
    ...     "application": {"port": "80", "host": "base"},
    ...     "application-local": {"port": "8080"},
    ... })
    >>> result = ConfigLoader([reader], profiles=["local"]).load("application")
    >>> result.node.get("port"), result.node.get("host")
    ('8080', 'base')
    >>> ConfigLoader([reader]).load("missing").found
    False
    """

    def __init__(
        self,
        readers: Iterable[ConfigReader],
        *,
        cascade: CascadeStrategy | None = None,
        profiles: Sequence[str] = (),
        lookup: Lookup | None = None,
        interpolator: Interpolator | None = None,
    ) -> None:
        self.readers = tuple(readers)
        self.cascade = cascade or DefaultCascadeStrategy()
        self.profiles = tuple(profiles)
        self._lookup = lookup
        self._interpolator = interpolator or Interpolator()

    def candidates(self, base_name: str, profiles: Sequence[str] | None = None) -> list[str]:
        """Return the candidate names ``load`` would try, most specific first."""

        names = self.cascade.generate(base_name, self.profiles if profiles is None else tuple(profiles))
        if self._lookup is None:
            return names
        return [self._interpolator.resolve(name, self._lookup) for name in names]

    def load(
        self,
        base_name: str,
        *,
        profiles: Sequence[str] | None = None,
        cancel: threading.Event | None = None,
    ) -> LoadResult:
        """Load every candidate of ``base_name`` and merge them.

        Raises
        ------
        ParseError
            When a reader recognised a candidate but could not parse it.
        LoadCancelledError
            When ``cancel`` was set before the load finished.
        """

        found: list[tuple[str, LoadedResource]] = []
        for candidate in self.candidates(base_name, profiles):
            if cancel is not None and cancel.is_set():
                log_info("load_cancelled", **make_event(base_name, candidate))
                raise LoadCancelledError(f"Load of {base_name!r} cancelled")
            resource = self._read(candidate)
            if resource is not None:
                log_debug("candidate_loaded", **make_event(base_name, resource.location, {"keys": len(resource.entries)}))
                found.append((candidate, resource))

        if not found:
            log_debug("config_not_found", **make_event(base_name, None))
            return LoadResult(base_name, MapConfigNode())

        entries, origins = merge_resources(reversed(found))
        log_info("config_loaded", **make_event(base_name, None, {"resources": len(found), "keys": len(entries)}))
        return LoadResult(
            base_name,
            MapConfigNode(entries, origins),
            tuple((candidate, resource.location) for candidate, resource in found),
        )

    def _read(self, candidate: str) -> LoadedResource | None:
        for reader in self.readers:
            try:
                resource = reader.try_load(candidate)
            except ParseError as exc:
                log_error("resource_invalid", **make_event(candidate, type(reader).__name__, {"error": str(exc)}))
                raise
            if resource is not None:
                return resource
        return None
