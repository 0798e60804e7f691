"""Structured logging helpers shared by every layer of the resolver.

Purpose
    Emit configuration lifecycle events (children attached, resources loaded,
    decode failures) through one logger with a stable field layout, leaving
    handler and formatter choices to the host application.

Contents
    - ``TRACE_ID``: context variable holding the active trace identifier.
    - ``get_logger``: returns the package logger (silent until configured).
    - ``bind_trace_id``: binds or clears the trace identifier.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit
      structured entries through a single private emitter.
    - ``make_event``: builds the ``layer``/``source`` payload used by most
      events.

System Integration
    The domain tree, the loader, and the CLI all log through these helpers so
    every record carries ``extra={"context": {...}}`` with the trace id first.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Final, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("lib_dynamic_config_trace_id", default=None)
"""Trace identifier attached to every structured record emitted here."""

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_dynamic_config")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the package logger so applications may attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind ``trace_id`` to the current context; ``None`` clears it.

    Examples
    --------
    >>> bind_trace_id('boot-1')
    >>> TRACE_ID.get()
    'boot-1'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


def log_debug(message: str, **fields: Any) -> None:
    """Emit a structured debug entry."""

    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    """Emit a structured info entry."""

    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Emit a structured warning entry."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, *, exc_info: bool = False, **fields: Any) -> None:
    """Emit a structured error entry, optionally with the active exception."""

    _emit(logging.ERROR, message, fields, exc_info=exc_info)


def make_event(
    layer: str,
    source: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the payload for an event concerning ``layer`` and ``source``.

    Inputs
        layer: Qualified layer path (``"APPLICATION/loaded"``) or a logical name.
        source: Resource location or child name involved, if any.
        payload: Optional extra fields merged last.

    Examples
    --------
    >>> make_event('LIBRARIES', 'cache', {'keys': 3})
    {'layer': 'LIBRARIES', 'source': 'cache', 'keys': 3}
    """

    event: dict[str, Any] = {"layer": layer, "source": source}
    if payload:
        event |= dict(payload)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any], *, exc_info: bool = False) -> None:
    """Send one record through the package logger with the trace context."""

    context = {"trace_id": TRACE_ID.get()}
    context.update(fields)
    _LOGGER.log(level, message, extra={"context": context}, exc_info=exc_info)
