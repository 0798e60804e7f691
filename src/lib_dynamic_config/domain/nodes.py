"""Leaf configuration nodes.

Purpose
-------
Provide the atomic key → string lookups that the composite tree is built from.
Nodes hold raw, uninterpolated strings; interpolation and typing happen further
up.

Contents
--------
* :class:`SourceInfo` – provenance of a key inside a loaded node.
* :class:`ConfigNode` – abstract ``Mapping[str, str]`` with change
  subscription.
* :class:`MapConfigNode` – immutable node, replaced wholesale on reload.
* :class:`SettableConfigNode` – mutable node with ``set``/``clear``/``set_all``.

System Role
-----------
Mutable nodes publish the exact set of keys that were added, removed, or
changed so dependents can invalidate selectively. Entries are kept in a
copy-on-write ``dict``: writers build a new snapshot under a per-node lock and
swap it in with a single assignment, so readers never lock and never see a
partial write.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Callable, Iterator, TypedDict

from .listeners import ListenerRegistry, Subscription

ChangeListener = Callable[[frozenset[str]], None]
"""Callback receiving the set of keys whose value may have changed."""


class SourceInfo(TypedDict):
    """Where a key inside a loaded node came from.

    Attributes
    ----------
    resource:
        Cascade candidate name that supplied the value (``"application-local"``).
    location:
        Concrete location reported by the reader (file path, ``memory:...``).
    key:
        The key itself.
    """

    resource: str
    location: str
    key: str


class ConfigNode(Mapping[str, str]):
    """Abstract key → raw string lookup with ordered enumeration.

    Subclasses implement :meth:`_snapshot`; everything else is derived from it.
    ``get`` returns ``None`` for an absent key, which is never confused with a
    key whose value is the empty string.
    """

    def __init__(self) -> None:
        self._listeners: ListenerRegistry[ChangeListener] = ListenerRegistry()

    def _snapshot(self) -> Mapping[str, str]:
        raise NotImplementedError

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        return self._snapshot().get(key, default)

    def get_keys(self) -> tuple[str, ...]:
        """Return all keys in insertion order."""

        return tuple(self._snapshot())

    def subscribe(self, listener: ChangeListener) -> Subscription:
        """Register ``listener`` for change notifications from this node."""

        return self._listeners.subscribe(listener)

    def _notify(self, keys: frozenset[str]) -> None:
        if keys:
            self._listeners.publish(keys)

    def __getitem__(self, key: str) -> str:
        return self._snapshot()[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._snapshot())

    def __len__(self) -> int:
        return len(self._snapshot())

    def __contains__(self, key: object) -> bool:
        return key in self._snapshot()


class MapConfigNode(ConfigNode):
    """Immutable node, typically the merged result of one load call.

    Examples
    --------
    >>> node = MapConfigNode({"port": 8080, "host": "svc1"})
    >>> node.get("port")
    '8080'
    >>> node.get_keys()
    ('port', 'host')
    >>> node.get("missing") is None
    True
    """

    def __init__(self, entries: Mapping[str, object] | None = None, origins: Mapping[str, SourceInfo] | None = None) -> None:
        super().__init__()
        self._entries: Mapping[str, str] = MappingProxyType({key: as_text(value) for key, value in (entries or {}).items()})
        self._origins: Mapping[str, SourceInfo] = MappingProxyType(dict(origins or {}))

    def _snapshot(self) -> Mapping[str, str]:
        return self._entries

    def origin(self, key: str) -> SourceInfo | None:
        """Return provenance for ``key`` when the loader recorded it."""

        return self._origins.get(key)

    def __repr__(self) -> str:
        return f"MapConfigNode({len(self._entries)} keys)"


class SettableConfigNode(ConfigNode):
    """Mutable node for values set from code (runtime overrides, system properties).

    Writes are serialized per node and notify listeners synchronously, in the
    order the writes happened, after the new snapshot is visible. Listeners
    run while the write lock is held, so a slow listener delays other writers
    to this node (readers are never blocked).

    Examples
    --------
    >>> node = SettableConfigNode()
    >>> changes = []
    >>> _ = node.subscribe(changes.append)
    >>> node.set("a", "1")
    >>> node.set("a", "1")
    >>> node.set_all({"a": "2", "b": "3"})
    >>> [sorted(c) for c in changes]
    [['a'], ['a', 'b']]
    """

    def __init__(self, entries: Mapping[str, object] | None = None) -> None:
        super().__init__()
        self._write_lock = threading.RLock()
        self._entries: dict[str, str] = {key: as_text(value) for key, value in (entries or {}).items()}

    def _snapshot(self) -> Mapping[str, str]:
        return self._entries

    def set(self, key: str, value: object) -> None:
        """Set ``key`` to ``value`` (converted to ``str``)."""

        self.set_all({key: value})

    def set_all(self, entries: Mapping[str, object]) -> None:
        """Apply every entry of ``entries`` as one atomic write."""

        with self._write_lock:
            updated = dict(self._entries)
            changed: set[str] = set()
            for key, value in entries.items():
                text = as_text(value)
                if updated.get(key) != text:
                    updated[key] = text
                    changed.add(key)
            if changed:
                self._entries = updated
                self._notify(frozenset(changed))

    def clear(self, key: str) -> None:
        """Remove ``key``; removing an absent key does nothing."""

        with self._write_lock:
            if key not in self._entries:
                return
            updated = dict(self._entries)
            del updated[key]
            self._entries = updated
            self._notify(frozenset({key}))

    def clear_all(self) -> None:
        """Remove every key."""

        with self._write_lock:
            removed = frozenset(self._entries)
            if removed:
                self._entries = {}
                self._notify(removed)

    def __repr__(self) -> str:
        return f"SettableConfigNode({len(self._entries)} keys)"


def as_text(value: object) -> str:
    """Normalise a value to the raw string form stored in nodes.

    Examples
    --------
    >>> as_text(True), as_text(None), as_text(3)
    ('true', '', '3')
    """

    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)
