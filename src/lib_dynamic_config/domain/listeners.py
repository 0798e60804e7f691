"""Publish/subscribe registry with explicit cancellation tokens.

Purpose
-------
Every node in the configuration tree and every dynamic property needs to fan
change notifications out to an open set of listeners. Listeners are held
strongly and released only through the :class:`Subscription` returned on
registration, so a forgotten listener shows up as a leak you can find rather
than one that silently disappears under garbage collection.

Contents
--------
* :class:`Subscription` – cancellation token, also usable as a context manager.
* :class:`ListenerRegistry` – ordered, thread-safe listener set.

Notes
-----
``publish`` runs listeners synchronously on the caller's thread. A slow
listener therefore slows the write that triggered it.
"""

from __future__ import annotations

import itertools
import threading
from typing import Any, Callable, Generic, TypeVar

from ..observability import log_error

L = TypeVar("L", bound=Callable[..., Any])


class Subscription:
    """Handle returned by :meth:`ListenerRegistry.subscribe`.

    Examples
    --------
    >>> registry = ListenerRegistry()
    >>> seen = []
    >>> sub = registry.subscribe(seen.append)
    >>> registry.publish("a")
    >>> sub.cancel()
    >>> registry.publish("b")
    >>> seen
    ['a']
    """

    __slots__ = ("_registry", "_token")

    def __init__(self, registry: ListenerRegistry[Any] | None, token: int) -> None:
        self._registry = registry
        self._token = token

    @property
    def active(self) -> bool:
        """``True`` until :meth:`cancel` has been called."""

        return self._registry is not None

    def cancel(self) -> None:
        """Unregister the listener. Calling it twice is harmless."""

        registry, self._registry = self._registry, None
        if registry is not None:
            registry._discard(self._token)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


class ListenerRegistry(Generic[L]):
    """Ordered set of listeners safe to mutate while another thread publishes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count()
        self._listeners: dict[int, L] = {}

    def subscribe(self, listener: L) -> Subscription:
        with self._lock:
            token = next(self._counter)
            self._listeners[token] = listener
        return Subscription(self, token)

    def publish(self, *args: Any) -> None:
        """Call every listener registered at the time of the call, in order.

        A listener that raises is logged and skipped; the remaining listeners
        still run.
        """

        with self._lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(*args)
            except Exception as exc:  # noqa: BLE001 - one listener must not starve the others
                log_error("listener_failed", exc_info=True, listener=repr(listener), error=str(exc))

    def __len__(self) -> int:
        return len(self._listeners)

    def _discard(self, token: int) -> None:
        with self._lock:
            self._listeners.pop(token, None)
