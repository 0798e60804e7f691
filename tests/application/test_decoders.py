from __future__ import annotations

from datetime import timedelta

import pytest

from lib_dynamic_config.application.decoders import (
    decode,
    decode_bool,
    decode_duration,
    decode_float,
    decode_int,
    decode_list,
    resolve_decoder,
)
from lib_dynamic_config.domain.errors import DecodeError


@pytest.mark.parametrize(
    ("decoder", "raw", "expected"),
    [
        (decode_int, "42", 42),
        (decode_int, "-7 ", -7),
        (decode_float, "2.5", 2.5),
        (decode_bool, "TRUE", True),
        (decode_bool, "0", False),
        (decode_duration, "100ms", timedelta(milliseconds=100)),
        (decode_duration, "2h", timedelta(hours=2)),
        (decode_duration, "45", timedelta(seconds=45)),
        (decode_list(), "a, b ,c", ["a", "b", "c"]),
        (decode_list(decode_bool, separator=";"), "yes;no", [True, False]),
    ],
)
def test_builtin_decoders(decoder, raw, expected) -> None:
    assert decoder(raw) == expected


@pytest.mark.parametrize(("decoder", "raw"), [(decode_int, "4.2"), (decode_bool, "maybe"), (decode_duration, "5 weeks"), (decode_float, "")])
def test_invalid_input_raises_decode_error(decoder, raw) -> None:
    with pytest.raises(DecodeError):
        decoder(raw)


def test_decode_attaches_key_to_any_failure() -> None:
    with pytest.raises(DecodeError) as info:
        decode(decode_int, "eighty", key="server.port")
    assert info.value.key == "server.port"
    assert info.value.reason == "not an integer"

    def picky(value: str) -> str:
        raise ValueError("nope")

    with pytest.raises(DecodeError) as info:
        decode(picky, "x", key="k")
    assert (info.value.key, info.value.reason) == ("k", "nope")


def test_decode_wraps_unexpected_decoder_exceptions() -> None:
    levels = {"low": 1, "high": 2}

    with pytest.raises(DecodeError) as info:
        decode(levels.__getitem__, "medium", key="log.level")
    assert info.value.key == "log.level"
    assert isinstance(info.value.__cause__, KeyError)


def test_out_of_range_duration_is_a_decode_error() -> None:
    with pytest.raises(DecodeError) as info:
        decode(decode_duration, "99999999999d", key="cache.ttl")
    assert (info.value.key, info.value.reason) == ("cache.ttl", "duration out of range")


def test_resolve_decoder_maps_types() -> None:
    assert resolve_decoder(int) is decode_int
    assert resolve_decoder(timedelta) is decode_duration
    assert resolve_decoder(list)("a,b") == ["a", "b"]
