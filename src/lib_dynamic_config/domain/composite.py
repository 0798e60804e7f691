"""Ordered composition of named configuration nodes.

Purpose
-------
Aggregate layers into one logical view. Children are scanned in order and the
first child that defines a key wins, so the order of children *is* the
precedence. A child may itself be a :class:`CompositeConfig`, giving a tree
whose leaves are addressed by slash-separated paths (``APPLICATION/loaded``).

Contents
--------
* :class:`Lookup` – raw value plus the path of the leaf that supplied it.
* :class:`Resolution` – outcome of a resolved read that never raises for
  interpolation failures.
* :class:`CompositeConfig` – the composite node.

Concurrency
-----------
The child list is an immutable tuple replaced under a lock on every structural
change (copy-on-write). Reads iterate whatever tuple they picked up and never
lock, so a reader sees either the old or the new child list, never a
half-inserted child. Structural changes are serialized per composite and
publish the affected key set to listeners while the lock is held, which keeps
notifications in mutation order.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Iterable, Iterator, NamedTuple

from ..observability import log_debug, make_event
from .errors import ChildNotFoundError, DuplicateNameError, InterpolationError
from .interpolate import Interpolator
from .listeners import Subscription
from .nodes import ConfigNode

PATH_SEPARATOR = "/"


class Lookup(NamedTuple):
    """Raw value of a key and the qualified path of the child that supplied it."""

    value: str
    source: str


class Resolution(NamedTuple):
    """Result of :meth:`CompositeConfig.try_resolve`.

    ``value`` and ``error`` are both ``None`` when the key is not defined.
    """

    value: str | None
    source: str | None
    error: InterpolationError | None

    @property
    def found(self) -> bool:
        return self.source is not None


class _Child(NamedTuple):
    name: str
    node: ConfigNode
    subscription: Subscription


class CompositeConfig(ConfigNode):
    """Prioritised list of named children with cross-layer interpolation.

    Parameters
    ----------
    children:
        Initial ``(name, node)`` pairs, highest precedence first.
    interpolator:
        Interpolator used by resolved reads. Defaults to a lenient one.

    Examples
    --------
    >>> from lib_dynamic_config.domain.nodes import MapConfigNode, SettableConfigNode
    >>> runtime = SettableConfigNode({"a": "1"})
    >>> root = CompositeConfig([("RUNTIME", runtime), ("APPLICATION", MapConfigNode({"a": "2", "b": "${a}!"}))])
    >>> root.lookup("a")
    Lookup(value='1', source='RUNTIME')
    >>> root.get_string("b")
    '1!'
    >>> sorted(root.get_keys())
    ['a', 'b']
    """

    def __init__(
        self,
        children: Iterable[tuple[str, ConfigNode]] = (),
        *,
        interpolator: Interpolator | None = None,
    ) -> None:
        super().__init__()
        self._lock = threading.RLock()
        self._children: tuple[_Child, ...] = ()
        self.interpolator = interpolator or Interpolator()
        for name, node in children:
            self.add_child(name, node)

    # ------------------------------------------------------------------ reads

    def lookup(self, key: str) -> Lookup | None:
        """Return the winning raw value for ``key`` and its source path, or ``None``."""

        for child in self._children:
            node = child.node
            if isinstance(node, CompositeConfig):
                hit = node.lookup(key)
                if hit is not None:
                    return Lookup(hit.value, child.name + PATH_SEPARATOR + hit.source)
                continue
            value = node.get(key)
            if value is not None:
                return Lookup(value, child.name)
        return None

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        hit = self.lookup(key)
        return default if hit is None else hit.value

    def get_keys(self) -> tuple[str, ...]:
        """Union of every child's keys, without duplicates."""

        keys: dict[str, None] = {}
        for child in self._children:
            keys.update(dict.fromkeys(child.node.get_keys()))
        return tuple(keys)

    def get_string(self, key: str, default: str | None = None) -> str | None:
        """Return the interpolated value of ``key`` or ``default`` when absent.

        Placeholders are looked up through this composite's raw ``get``, so a
        value in one layer may reference a key defined only in another.

        Raises
        ------
        InterpolationError
            When a placeholder is circular, or undefined under a strict
            interpolator.
        """

        raw = self.get(key)
        if raw is None:
            return default
        return self.interpolator.resolve(raw, self.get, key=key)

    def try_resolve(self, key: str) -> Resolution:
        """Like :meth:`get_string` but reports interpolation failures in the result."""

        hit = self.lookup(key)
        if hit is None:
            return Resolution(None, None, None)
        try:
            return Resolution(self.interpolator.resolve(hit.value, self.get, key=key), hit.source, None)
        except InterpolationError as exc:
            log_debug("interpolation_failed", **make_event(hit.source, key, {"error": str(exc)}))
            return Resolution(None, hit.source, exc)

    def children(self) -> tuple[tuple[str, ConfigNode], ...]:
        """Snapshot of ``(name, node)`` pairs in precedence order."""

        return tuple((child.name, child.node) for child in self._children)

    def child(self, name: str) -> ConfigNode:
        for child in self._children:
            if child.name == name:
                return child.node
        raise ChildNotFoundError(name)

    def _snapshot(self) -> Mapping[str, str]:
        merged: dict[str, str] = {}
        for child in self._children:
            for key in child.node.get_keys():
                if key not in merged:
                    value = child.node.get(key)
                    if value is not None:
                        merged[key] = value
        return merged

    def __getitem__(self, key: str) -> str:
        hit = self.lookup(key)
        if hit is None:
            raise KeyError(key)
        return hit.value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.lookup(key) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self.get_keys())

    def __len__(self) -> int:
        return len(self.get_keys())

    # -------------------------------------------------------------- mutations

    def add_child(self, name: str, node: ConfigNode, *, index: int | None = None, before: str | None = None) -> None:
        """Attach ``node`` under ``name``.

        The attach point is explicit: by default the child is appended (lowest
        precedence among its siblings); ``index`` inserts at a position and
        ``before`` inserts directly above the named sibling.

        Raises
        ------
        DuplicateNameError
            When ``name`` is already attached here.
        ChildNotFoundError
            When ``before`` names a sibling that does not exist.
        """

        with self._lock:
            if any(child.name == name for child in self._children):
                raise DuplicateNameError(name)
            position = self._attach_position(index, before)
            subscription = node.subscribe(self._notify)
            children = list(self._children)
            children.insert(position, _Child(name, node, subscription))
            self._children = tuple(children)
            log_debug("child_added", **make_event(name, None, {"position": position}))
            self._notify(frozenset(node.get_keys()))

    def replace_child(self, name: str, node: ConfigNode) -> ConfigNode:
        """Swap the child called ``name`` for ``node`` at the same position.

        Returns the node that was replaced.
        """

        with self._lock:
            position = self._index_of(name)
            previous = self._children[position]
            subscription = node.subscribe(self._notify)
            children = list(self._children)
            children[position] = _Child(name, node, subscription)
            self._children = tuple(children)
            previous.subscription.cancel()
            log_debug("child_replaced", **make_event(name, None, {"position": position}))
            self._notify(frozenset(previous.node.get_keys()) | frozenset(node.get_keys()))
            return previous.node

    def remove_child(self, name: str) -> ConfigNode:
        """Detach and return the child called ``name``.

        Raises
        ------
        ChildNotFoundError
            When no such child is attached.
        """

        with self._lock:
            position = self._index_of(name)
            removed = self._children[position]
            self._children = self._children[:position] + self._children[position + 1 :]
            removed.subscription.cancel()
            log_debug("child_removed", **make_event(name, None, {"position": position}))
            self._notify(frozenset(removed.node.get_keys()))
            return removed.node

    def put_child(self, name: str, node: ConfigNode, *, index: int | None = None) -> ConfigNode | None:
        """Replace the child called ``name`` in place, or attach it at ``index`` when absent.

        The check and the mutation happen under one lock acquisition, so
        concurrent writers of the same name never collide. Returns the
        replaced node, or ``None`` when ``name`` was newly attached.

        Examples
        --------
        >>> from lib_dynamic_config.domain.nodes import MapConfigNode
        >>> root = CompositeConfig([("loaded", MapConfigNode({"a": "1"}))])
        >>> root.put_child("overrides", MapConfigNode({"a": "2"}), index=0) is None
        True
        >>> _ = root.put_child("overrides", MapConfigNode({"a": "3"}))
        >>> [name for name, _ in root.children()], root.get("a")
        (['overrides', 'loaded'], '3')
        """

        with self._lock:
            if any(child.name == name for child in self._children):
                return self.replace_child(name, node)
            self.add_child(name, node, index=index)
            return None

    def _index_of(self, name: str) -> int:
        for position, child in enumerate(self._children):
            if child.name == name:
                return position
        raise ChildNotFoundError(name)

    def _attach_position(self, index: int | None, before: str | None) -> int:
        if before is not None:
            return self._index_of(before)
        if index is None:
            return len(self._children)
        return max(0, min(index, len(self._children)))

    def __repr__(self) -> str:
        names = ", ".join(child.name for child in self._children)
        return f"CompositeConfig([{names}])"
