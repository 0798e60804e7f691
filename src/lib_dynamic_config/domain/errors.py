"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by the composite tree, the interpolator, the
loader, and the property layer. The hierarchy lives in the domain layer so
adapters and the composition root can raise and catch the same types without
depending on each other.

Contents
--------
* :class:`ConfigError` – umbrella base class.
* :class:`DuplicateNameError` / :class:`ChildNotFoundError` – structural
  errors raised while mutating a :class:`~lib_dynamic_config.domain.composite.CompositeConfig`.
* :class:`ParseError` – a reader recognised a resource but could not parse it.
* :class:`InterpolationError` and its subclasses
  :class:`UnresolvedPlaceholderError` / :class:`CircularReferenceError`.
* :class:`DecodeError` – a typed property could not convert a resolved string.
* :class:`MissingRemoteBindingError` – a caller demanded a remote layer that
  was never bound.
* :class:`LoadCancelledError` – a load was abandoned before completion.

System Role
-----------
Key absence is *not* an error anywhere in the library: lookups return ``None``.
Everything else funnels through :class:`ConfigError` so callers can catch one
family.
"""

from __future__ import annotations

from typing import Sequence


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_dynamic_config``."""


class DuplicateNameError(ConfigError):
    """Raised when a child is attached under a name that already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Child named {name!r} already exists")
        self.name = name


class ChildNotFoundError(ConfigError):
    """Raised when a named child is requested or removed but is not attached."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No child named {name!r}")
        self.name = name


class ParseError(ConfigError):
    """Raised when a reader found a resource but its content is malformed.

    Why
    ----
    A missing optional resource is normal; garbage configuration is not. Keeping
    the two apart lets the loader skip the former and abort on the latter.
    """


class InterpolationError(ConfigError):
    """Raised when a ``${...}`` placeholder cannot be resolved."""


class UnresolvedPlaceholderError(InterpolationError):
    """Strict-mode failure for a placeholder whose key is not defined."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Unresolved placeholder ${{{key}}}")
        self.key = key


class CircularReferenceError(InterpolationError):
    """Raised when a placeholder re-enters its own resolution chain.

    Attributes
    ----------
    chain:
        Identifiers in the order they were entered, ending with the identifier
        that closed the cycle (``("a", "b", "a")``).
    """

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = tuple(chain)
        super().__init__("Circular reference: " + " -> ".join(self.chain))


class DecodeError(ConfigError):
    """Raised when a resolved string cannot be converted to the requested type."""

    def __init__(self, key: str | None, value: str, reason: str) -> None:
        target = f" for {key!r}" if key else ""
        super().__init__(f"Cannot decode {value!r}{target}: {reason}")
        self.key = key
        self.value = value
        self.reason = reason


class MissingRemoteBindingError(ConfigError):
    """Raised when the remote layer is requested but nothing was bound to it."""


class LoadCancelledError(ConfigError):
    """Raised when a load is abandoned because its cancel event was set."""
