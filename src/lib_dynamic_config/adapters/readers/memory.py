"""In-memory reader serving resources from a mapping.

Useful for embedded defaults shipped in code and for tests; it never raises
:class:`~lib_dynamic_config.domain.errors.ParseError` because its resources
are already parsed.
"""

from __future__ import annotations

from typing import Mapping

from ...application.ports import LoadedResource
from ...domain.nodes import as_text


class MemoryReader:
    """Serve ``resources[name]`` as the resource called ``name``.

    Examples
    --------
    >>> reader = MemoryReader({"application": {"debug": True}})
    >>> reader.try_load("application")
    LoadedResource(location='memory:application', entries={'debug': 'true'})
    >>> reader.try_load("other") is None
    True
    """

    def __init__(self, resources: Mapping[str, Mapping[str, object]]) -> None:
        self._resources = {name: dict(entries) for name, entries in resources.items()}

    def try_load(self, resource_name: str) -> LoadedResource | None:
        entries = self._resources.get(resource_name)
        if entries is None:
            return None
        return LoadedResource(f"memory:{resource_name}", {key: as_text(value) for key, value in entries.items()})
