"""``${key}`` placeholder resolution.

Purpose
-------
Expand placeholders inside raw configuration strings against an injected lookup
function. The interpolator never holds a reference to the configuration tree;
the tree passes ``lookup`` in on every call, which keeps the dependency one-way.

Syntax
------
* ``${name}`` is replaced by the (recursively interpolated) value of ``name``.
* Placeholders nest and resolve innermost first: ``${db.${env}.host}``.
* ``$${`` yields a literal ``${``.
* An unterminated ``${`` is kept verbatim.

Missing keys
------------
With ``strict=False`` (the default) an undefined placeholder becomes the empty
string. With ``strict=True`` it raises :class:`UnresolvedPlaceholderError`.
Cycles always raise :class:`CircularReferenceError` regardless of mode.
"""

from __future__ import annotations

from typing import Callable, Optional

from .errors import CircularReferenceError, InterpolationError, UnresolvedPlaceholderError

Lookup = Callable[[str], Optional[str]]
"""Function returning the raw value of a key or ``None`` when it is absent."""

_OPEN = "${"
_ESCAPED_OPEN = "$${"
_CLOSE = "}"


class Interpolator:
    """Resolve placeholders with explicit strictness and cycle detection.

    Parameters
    ----------
    strict:
        Raise on undefined placeholders instead of substituting ``""``.
    max_depth:
        Longest chain of nested lookups tolerated before giving up.

    Examples
    --------
    >>> values = {"host": "svc1", "port": "8080", "url": "${host}:${port}"}
    >>> Interpolator().resolve("http://${url}", values.get)
    'http://svc1:8080'
    >>> cyclic = {"a": "${b}", "b": "${a}"}
    >>> Interpolator().resolve(cyclic["a"], cyclic.get, key="a")
    Traceback (most recent call last):
    ...
    lib_dynamic_config.domain.errors.CircularReferenceError: Circular reference: a -> b -> a
    """

    def __init__(self, *, strict: bool = False, max_depth: int = 64) -> None:
        self.strict = strict
        self.max_depth = max_depth

    def resolve(self, raw: str, lookup: Lookup, *, key: str | None = None) -> str:
        """Return ``raw`` with every placeholder expanded.

        ``key`` names the entry ``raw`` was read from, so a value that refers
        back to itself is reported as a cycle starting at that key.
        """

        chain = [key] if key is not None else []
        return self._expand(raw, lookup, chain)

    def _expand(self, text: str, lookup: Lookup, chain: list[str]) -> str:
        if "$" not in text:
            return text
        parts: list[str] = []
        index = 0
        while True:
            start = text.find("$", index)
            if start < 0:
                parts.append(text[index:])
                break
            parts.append(text[index:start])
            if text.startswith(_ESCAPED_OPEN, start):
                parts.append(_OPEN)
                index = start + len(_ESCAPED_OPEN)
                continue
            if not text.startswith(_OPEN, start):
                parts.append("$")
                index = start + 1
                continue
            end = _closing_brace(text, start + len(_OPEN))
            if end < 0:
                parts.append(text[start:])
                break
            identifier = self._expand(text[start + len(_OPEN) : end], lookup, chain)
            parts.append(self._substitute(identifier, lookup, chain))
            index = end + len(_CLOSE)
        return "".join(parts)

    def _substitute(self, identifier: str, lookup: Lookup, chain: list[str]) -> str:
        if identifier in chain:
            raise CircularReferenceError([*chain, identifier])
        if len(chain) >= self.max_depth:
            raise InterpolationError(f"Placeholder nesting deeper than {self.max_depth} at ${{{identifier}}}")
        value = lookup(identifier)
        if value is None:
            if self.strict:
                raise UnresolvedPlaceholderError(identifier)
            return ""
        chain.append(identifier)
        try:
            return self._expand(value, lookup, chain)
        finally:
            chain.pop()


def _closing_brace(text: str, position: int) -> int:
    """Return the index of the ``}`` closing a placeholder opened before ``position``.

    Examples
    --------
    >>> _closing_brace("${a.${b}}", 2)
    8
    >>> _closing_brace("${open", 2)
    -1
    """

    depth = 1
    while position < len(text):
        if text.startswith(_OPEN, position):
            depth += 1
            position += len(_OPEN)
            continue
        if text[position] == _CLOSE:
            depth -= 1
            if depth == 0:
                return position
        position += 1
    return -1
