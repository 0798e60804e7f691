"""Built-in decoders from resolved strings to typed values.

Every decoder takes the interpolated string and either returns a value or
raises :class:`~lib_dynamic_config.domain.errors.DecodeError`. Dynamic
properties catch that error and keep their last good value.
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any, Callable

from ..domain.errors import DecodeError
from .ports import Decoder

_TRUE = frozenset({"true", "yes", "on", "1"})
_FALSE = frozenset({"false", "no", "off", "0"})
_DURATION = re.compile(r"^\s*(?P<amount>\d+(?:\.\d+)?)\s*(?P<unit>ms|s|m|h|d)?\s*$", re.IGNORECASE)
_DURATION_UNITS = {"ms": "milliseconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def decode_str(value: str) -> str:
    return value


def decode_int(value: str) -> int:
    """Parse a base-10 integer, ignoring surrounding whitespace.

    Examples
    --------
    >>> decode_int(" 42 ")
    42
    """

    try:
        return int(value.strip())
    except ValueError as exc:
        raise DecodeError(None, value, "not an integer") from exc


def decode_float(value: str) -> float:
    try:
        return float(value.strip())
    except ValueError as exc:
        raise DecodeError(None, value, "not a number") from exc


def decode_bool(value: str) -> bool:
    """Accept ``true/false``, ``yes/no``, ``on/off`` and ``1/0`` in any case.

    Examples
    --------
    >>> decode_bool("Yes"), decode_bool("off")
    (True, False)
    """

    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise DecodeError(None, value, "not a boolean")


def decode_duration(value: str) -> timedelta:
    """Parse ``100ms``, ``30s``, ``5m``, ``2h``, ``1d`` or bare seconds.

    Examples
    --------
    >>> decode_duration("5m")
    datetime.timedelta(seconds=300)
    >>> decode_duration("1.5")
    datetime.timedelta(seconds=1, microseconds=500000)
    """

    match = _DURATION.match(value)
    if match is None:
        raise DecodeError(None, value, "not a duration")
    unit = (match.group("unit") or "s").lower()
    try:
        return timedelta(**{_DURATION_UNITS[unit]: float(match.group("amount"))})
    except OverflowError as exc:
        raise DecodeError(None, value, "duration out of range") from exc


def decode_list(item_decoder: Decoder = decode_str, *, separator: str = ",") -> Callable[[str], list[Any]]:
    """Return a decoder splitting on ``separator`` and decoding each non-blank item.

    Examples
    --------
    >>> decode_list(decode_int)("1, 2,,3")
    [1, 2, 3]
    """

    def _decode(value: str) -> list[Any]:
        return [item_decoder(item.strip()) for item in value.split(separator) if item.strip()]

    return _decode


_BY_TYPE: dict[type, Decoder] = {
    str: decode_str,
    int: decode_int,
    float: decode_float,
    bool: decode_bool,
    list: decode_list(),
    timedelta: decode_duration,
}


def resolve_decoder(target: type | Decoder) -> Decoder:
    """Map a builtin type to its decoder; any other callable is used as-is.

    Examples
    --------
    >>> resolve_decoder(bool) is decode_bool
    True
    >>> resolve_decoder(str.upper)("abc")
    'ABC'
    """

    if isinstance(target, type) and target in _BY_TYPE:
        return _BY_TYPE[target]
    return target


def decode(decoder: Decoder, value: str, *, key: str | None = None) -> Any:
    """Run ``decoder`` and normalise every failure to :class:`DecodeError` carrying ``key``."""

    try:
        return decoder(value)
    except DecodeError as exc:
        raise DecodeError(key, exc.value, exc.reason) from exc
    except Exception as exc:
        raise DecodeError(key, value, str(exc) or type(exc).__name__) from exc
