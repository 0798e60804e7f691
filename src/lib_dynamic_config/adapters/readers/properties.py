"""``.properties`` reader.

Purpose
-------
Read flat ``key=value`` files, the historical default format for layered
application configuration, following the ``java.util.Properties`` text
format.

Format
------
* ``#`` and ``!`` start comment lines.
* The key ends at the first unescaped ``=``, ``:`` or whitespace. Whitespace
  around the separator is skipped, so ``key = value``, ``key: value`` and
  ``key value`` are equivalent. A line holding only a key maps it to ``""``.
* ``\\t``, ``\\n``, ``\\r``, ``\\f`` and ``\\uXXXX`` are decoded; any other
  escaped character stands for itself (``\\=``, ``\\:``, ``\\ ``, ``\\\\``).
* An odd number of trailing backslashes continues the logical line on the
  next physical line, whose leading whitespace is dropped.
"""

from __future__ import annotations

import string
from pathlib import Path
from typing import Iterator

from ...domain.errors import ParseError
from ...observability import log_error
from .structured import BaseFileReader

_COMMENT_PREFIXES = ("#", "!")
_SEPARATORS = "=:"
_WHITESPACE = " \t\f"
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


class PropertiesReader(BaseFileReader):
    """Read ``<name>.properties`` documents."""

    suffixes = (".properties",)
    format_name = "properties"

    def _parse(self, payload: bytes, path: Path) -> dict[str, str]:
        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self._invalid(path, exc) from exc
        return parse_properties(text, path=path)


def parse_properties(text: str, *, path: Path | None = None) -> dict[str, str]:
    """Parse properties ``text`` into an ordered mapping.

    Examples
    --------
    >>> parse_properties("# comment\\nhost = svc1\\nurl: http://${host}\\nlist=a,\\\\\\n  b\\n")
    {'host': 'svc1', 'url': 'http://${host}', 'list': 'a,b'}
    >>> parse_properties("greeting hello world\\npath\\\\=dir=C\\\\:\\\\\\\\tmp\\nsnow=\\\\u2603\\nflag\\n")
    {'greeting': 'hello world', 'path=dir': 'C:\\\\tmp', 'snow': '☃', 'flag': ''}
    >>> parse_properties("ok=1\\nbad=\\\\u12zz")
    Traceback (most recent call last):
    ...
    lib_dynamic_config.domain.errors.ParseError: Malformed \\uXXXX escape on line 2 in document
    """

    entries: dict[str, str] = {}
    for line_number, line in _logical_lines(text):
        key, value = _split_entry(line)
        entries[_unescape(key, line_number, path)] = _unescape(value, line_number, path)
    return entries


def _logical_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(first_line_number, logical_line)`` with continuations joined."""

    pending: list[str] = []
    start = 0
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.lstrip(_WHITESPACE)
        if not pending:
            if not line or line.startswith(_COMMENT_PREFIXES):
                continue
            start = line_number
        if _continues(line):
            pending.append(line[:-1])
            continue
        pending.append(line)
        yield start, "".join(pending)
        pending = []
    if pending:
        yield start, "".join(pending)


def _continues(line: str) -> bool:
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _split_entry(line: str) -> tuple[str, str]:
    """Split a logical line at the first unescaped separator or whitespace."""

    index = 0
    while index < len(line):
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in _SEPARATORS or char in _WHITESPACE:
            break
        index += 1
    key = line[:index]
    rest = line[index:].lstrip(_WHITESPACE)
    if rest[:1] and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def _unescape(text: str, line_number: int, path: Path | None) -> str:
    if "\\" not in text:
        return text
    decoded: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        index += 1
        if char != "\\":
            decoded.append(char)
            continue
        if index == len(text):
            break
        escaped = text[index]
        index += 1
        if escaped == "u":
            digits = text[index : index + 4]
            if len(digits) != 4 or not all(digit in string.hexdigits for digit in digits):
                log_error("properties_invalid_escape", layer="file", source=str(path) if path else None, line=line_number)
                raise ParseError(f"Malformed \\uXXXX escape on line {line_number} in {path or 'document'}")
            decoded.append(chr(int(digits, 16)))
            index += 4
            continue
        decoded.append(_ESCAPES.get(escaped, escaped))
    return "".join(decoded)
