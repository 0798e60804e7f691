"""Merge policy for the resources of one cascade.

Purpose
-------
Combine the resources found for the candidates of a single load call into one
flat mapping while tracking which resource supplied each key. Free of I/O so
it can be exercised on its own.

Contents
    - ``merge_resources``: public entry point driven by a simple loop.
    - ``_merge_resource``: applies one resource on top of the accumulated
      result and updates provenance.

System Role
-----------
Called by :class:`lib_dynamic_config.application.loader.ConfigLoader`. Its
output becomes a :class:`~lib_dynamic_config.domain.nodes.MapConfigNode`.
"""

from __future__ import annotations

from typing import Iterable

from ..domain.nodes import SourceInfo
from .ports import LoadedResource


def merge_resources(
    resources: Iterable[tuple[str, LoadedResource]],
) -> tuple[dict[str, str], dict[str, SourceInfo]]:
    """Merge ``(candidate, resource)`` pairs ordered from lowest to highest precedence.

    Later resources override earlier ones key by key; keys that only an
    earlier resource defines survive. The first resource to introduce a key
    fixes its position in the result.

    Returns
    -------
    tuple[dict[str, str], dict[str, SourceInfo]]
        ``(entries, provenance)``.

    Examples
    --------
    >>> merged, meta = merge_resources([
    ...     ("application", LoadedResource("a.toml", {"port": "80", "host": "base"})),
    ...     ("application-local", LoadedResource("a-local.toml", {"port": "8080"})),
    ... ])
    >>> merged
    {'port': '8080', 'host': 'base'}
    >>> meta["port"]["resource"], meta["host"]["resource"]
    ('application-local', 'application')
    """

    merged: dict[str, str] = {}
    meta: dict[str, SourceInfo] = {}
    for candidate, resource in resources:
        _merge_resource(merged, meta, candidate, resource)
    return merged, meta


def _merge_resource(
    target: dict[str, str],
    meta: dict[str, SourceInfo],
    candidate: str,
    resource: LoadedResource,
) -> None:
    """Apply ``resource`` on top of ``target`` and record provenance for each key."""

    for key, value in resource.entries.items():
        target[key] = value
        meta[key] = SourceInfo(resource=candidate, location=resource.location, key=key)
