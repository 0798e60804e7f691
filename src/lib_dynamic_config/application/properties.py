"""Live, typed property handles over the configuration tree.

Purpose
-------
Give consumers a value that follows the configuration: a
:class:`DynamicProperty` is bound to one key and one decoder and recomputes
itself whenever a change reaching the root touches that key or any key its
interpolation consulted.

Contents
--------
* :class:`DynamicProperty` – the live handle.
* :class:`PropertySubscription` – cancels a change listener and its error
  listener together.
* :class:`PropertyFactory` – hands out properties and typed accessors.
* :class:`Field` / :class:`BoundAccessor` – explicit typed accessor over a key
  prefix, declared by the caller instead of discovered by introspection.

Threading
---------
Recomputation and subscriber callbacks run synchronously on the thread that
performed the underlying write, while that write still holds its node's lock.
Subscribers must return quickly: a slow callback throttles every writer of the
layer that triggered it.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Generic, Mapping, NamedTuple, TypeVar

from ..domain.composite import CompositeConfig
from ..domain.errors import ConfigError
from ..domain.listeners import ListenerRegistry, Subscription
from ..observability import log_warning
from .decoders import decode, resolve_decoder
from .ports import Decoder

T = TypeVar("T")

ChangeCallback = Callable[[Any, Any], None]
"""Called with ``(new_value, old_value)``."""

ErrorCallback = Callable[[ConfigError], None]
"""Called with the :class:`DecodeError` or :class:`InterpolationError` that was kept out of the value."""


class PropertySubscription:
    """Cancellation token covering the change and error listeners of one ``subscribe`` call."""

    def __init__(self, *subscriptions: Subscription) -> None:
        self._subscriptions = subscriptions

    @property
    def active(self) -> bool:
        return any(subscription.active for subscription in self._subscriptions)

    def cancel(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()

    def __enter__(self) -> PropertySubscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


class DynamicProperty(Generic[T]):
    """Live handle on one key: raw lookup → interpolation → decode.

    A failed recomputation keeps the last good value, stores the failure in
    :attr:`last_error`, and reports it to error subscribers. Change
    subscribers are called once per actual value change.

    Examples
    --------
    >>> from lib_dynamic_config.domain.nodes import SettableConfigNode
    >>> runtime = SettableConfigNode({"port": "80"})
    >>> prop = PropertyFactory(CompositeConfig([("RUNTIME", runtime)])).get_property("port", int)
    >>> seen = []
    >>> _ = prop.subscribe(lambda new, old: seen.append((old, new)))
    >>> runtime.set("port", "8080")
    >>> prop.current_value(), seen
    (8080, [(80, 8080)])
    >>> runtime.set("port", "eighty")
    >>> prop.current_value(), type(prop.last_error).__name__
    (8080, 'DecodeError')
    """

    def __init__(self, root: CompositeConfig, key: str, decoder: Decoder, default: T | None = None) -> None:
        self.key = key
        self._root = root
        self._decoder = decoder
        self._default = default
        self._lock = threading.RLock()
        self._changes: ListenerRegistry[ChangeCallback] = ListenerRegistry()
        self._errors: ListenerRegistry[ErrorCallback] = ListenerRegistry()
        self._dependencies: frozenset[str] = frozenset({key})
        self._generation = 0
        self._value: T | None = default
        self.last_error: ConfigError | None = None
        with self._lock:
            self._root_subscription: Subscription | None = root.subscribe(self._on_root_change)
            try:
                self._value = self._compute()
            except ConfigError as exc:
                self._record_failure(exc)

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def generation(self) -> int:
        """Number of underlying changes this property has reacted to."""

        return self._generation

    @property
    def dependencies(self) -> frozenset[str]:
        """Keys consulted by the most recent computation."""

        return self._dependencies

    @property
    def closed(self) -> bool:
        return self._root_subscription is None

    def current_value(self) -> T | None:
        """Return the latest successfully decoded value (or the default)."""

        return self._value

    def subscribe(self, on_change: ChangeCallback, on_error: ErrorCallback | None = None) -> PropertySubscription:
        """Register callbacks for value changes and, optionally, recomputation failures."""

        subscriptions = [self._changes.subscribe(on_change)]
        if on_error is not None:
            subscriptions.append(self._errors.subscribe(on_error))
        return PropertySubscription(*subscriptions)

    def close(self) -> None:
        """Stop following the configuration; the last value stays readable."""

        with self._lock:
            subscription, self._root_subscription = self._root_subscription, None
        if subscription is not None:
            subscription.cancel()

    def _on_root_change(self, keys: frozenset[str]) -> None:
        if keys.isdisjoint(self._dependencies):
            return
        with self._lock:
            if self._root_subscription is None:
                return
            self._generation += 1
            previous = self._value
            try:
                current = self._compute()
            except ConfigError as exc:
                self._record_failure(exc)
                self._errors.publish(exc)
                return
            self.last_error = None
            if current != previous:
                self._value = current
                self._changes.publish(current, previous)

    def _compute(self) -> T | None:
        consulted = {self.key}

        def lookup(name: str) -> str | None:
            consulted.add(name)
            return self._root.get(name)

        try:
            raw = self._root.get(self.key)
            if raw is None:
                return self._default
            resolved = self._root.interpolator.resolve(raw, lookup, key=self.key)
            return decode(self._decoder, resolved, key=self.key)
        finally:
            self._dependencies = frozenset(consulted)

    def _record_failure(self, exc: ConfigError) -> None:
        self.last_error = exc
        log_warning("property_decode_failed", layer="properties", source=self.key, error=str(exc))

    def __repr__(self) -> str:
        return f"DynamicProperty({self.key!r}, value={self._value!r})"


class Field(NamedTuple):
    """Declared attribute of a :class:`BoundAccessor`.

    ``key`` defaults to the attribute name and is relative to the accessor's
    prefix.
    """

    decoder: type | Decoder = str
    default: Any = None
    key: str | None = None


class BoundAccessor:
    """Attribute-style view of several dynamic properties under one prefix.

    Examples
    --------
    >>> from lib_dynamic_config.domain.nodes import MapConfigNode
    >>> root = CompositeConfig([("APPLICATION", MapConfigNode({"db.host": "svc1", "db.port": "5432"}))])
    >>> db = PropertyFactory(root).bind("db", {"host": Field(), "port": Field(int), "pool": Field(int, 4)})
    >>> db.host, db.port, db.pool
    ('svc1', 5432, 4)
    >>> db.close()
    """

    def __init__(self, prefix: str, properties: Mapping[str, DynamicProperty[Any]]) -> None:
        self._prefix = prefix
        self._properties = dict(properties)

    def __getattr__(self, name: str) -> Any:
        properties = self.__dict__.get("_properties", {})
        if name in properties:
            return properties[name].current_value()
        raise AttributeError(f"{type(self).__name__} for {self.__dict__.get('_prefix')!r} has no field {name!r}")

    def property_for(self, name: str) -> DynamicProperty[Any]:
        """Return the underlying live property for field ``name``."""

        return self._properties[name]

    def as_dict(self) -> dict[str, Any]:
        return {name: prop.current_value() for name, prop in self._properties.items()}

    def close(self) -> None:
        for prop in self._properties.values():
            prop.close()

    def __repr__(self) -> str:
        return f"BoundAccessor({self._prefix!r}, {self.as_dict()!r})"


class PropertyFactory:
    """Create dynamic properties and typed accessors over a root composite.

    Every call returns a fresh handle owned by the caller, who releases it with
    ``close()``.
    """

    def __init__(self, root: CompositeConfig) -> None:
        self.root = root

    def get_property(self, key: str, decoder: type | Decoder = str, default: Any = None) -> DynamicProperty[Any]:
        return DynamicProperty(self.root, key, resolve_decoder(decoder), default)

    def bind(self, prefix: str, fields: Mapping[str, Field]) -> BoundAccessor:
        """Bind the declared ``fields`` under ``prefix`` (``"db"`` → ``db.<field>``)."""

        base = f"{prefix}." if prefix else ""
        properties = {
            name: self.get_property(base + (field.key or name), field.decoder, field.default)
            for name, field in fields.items()
        }
        return BoundAccessor(prefix, properties)
