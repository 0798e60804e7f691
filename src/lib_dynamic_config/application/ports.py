"""Application-layer ports describing pluggable collaborators.

Purpose
-------
Define the structural contracts the loader and the property layer depend on so
concrete readers, cascade strategies, and decoders can be swapped without
touching orchestration code.

Contents
--------
* :class:`LoadedResource` – what a reader hands back for a resource it found.
* :class:`ConfigReader` – resolves one resource name to flat entries.
* :class:`CascadeStrategy` – turns a base name plus profiles into candidates.
* :data:`Decoder` – converts a resolved string into a typed value.

System Role
-----------
Adapters under :mod:`lib_dynamic_config.adapters.readers` implement
:class:`ConfigReader`; :mod:`lib_dynamic_config.application.cascade` ships the
default :class:`CascadeStrategy`.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, NamedTuple, Protocol, Sequence, runtime_checkable


class LoadedResource(NamedTuple):
    """A resource a reader recognised and parsed.

    Attributes
    ----------
    location:
        Human-readable origin (file path or ``memory:<name>``).
    entries:
        Flat mapping of dotted keys to raw string values.
    """

    location: str
    entries: Mapping[str, str]


@runtime_checkable
class ConfigReader(Protocol):
    """Load a named resource, reporting absence separately from corruption.

    ``try_load`` returns ``None`` when the reader has no resource of that name
    and raises :class:`~lib_dynamic_config.domain.errors.ParseError` when it
    found one it cannot parse.
    """

    def try_load(self, resource_name: str) -> LoadedResource | None:
        """Return the parsed resource called *resource_name* or ``None``."""


@runtime_checkable
class CascadeStrategy(Protocol):
    """Pure function from ``(base_name, profiles)`` to candidate names, most specific first."""

    def generate(self, base_name: str, profiles: Sequence[str]) -> list[str]:
        """Return candidate resource names for *base_name* under *profiles*."""


Decoder = Callable[[str], Any]
"""Callable turning a resolved string into a typed value, raising ``ValueError`` on bad input."""
