"""Directory-backed readers for structured configuration files.

Purpose
-------
Resolve a cascade candidate name such as ``application-local`` to a file in one
of a list of search directories and parse it into flat dotted keys. Adapters
are thin wrappers around ``tomllib``/``json``/``yaml.safe_load`` so error
handling and observability live in one place.

Contents
--------
* :class:`BaseFileReader` – search, read, and flatten helpers.
* :class:`TOMLReader` – ``<name>.toml``.
* :class:`JSONReader` – ``<name>.json``.
* :class:`YAMLReader` – ``<name>.yaml`` / ``<name>.yml``.
* :func:`flatten_mapping` – nested mapping → ``{"a.b": "value"}``.

System Role
-----------
Registered with :class:`lib_dynamic_config.application.loader.ConfigLoader`.
A missing file yields ``None``; a file that exists but does not parse raises
:class:`~lib_dynamic_config.domain.errors.ParseError`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

import yaml

from ...application.ports import LoadedResource
from ...domain.errors import ParseError
from ...domain.nodes import as_text
from ...observability import log_debug, log_error


class BaseFileReader:
    """Search directories for ``<name><suffix>`` and parse the first hit.

    Parameters
    ----------
    search_paths:
        Directories searched in order; the first directory holding a matching
        file wins for a given candidate name.
    """

    suffixes: tuple[str, ...] = ()
    format_name = "file"

    def __init__(self, search_paths: Iterable[str | Path]) -> None:
        self.search_paths = tuple(Path(path) for path in search_paths)

    def try_load(self, resource_name: str) -> LoadedResource | None:
        path = self._locate(resource_name)
        if path is None:
            return None
        try:
            payload = path.read_bytes()
        except OSError as exc:
            raise self._invalid(path, exc) from exc
        log_debug("config_file_read", layer="file", source=str(path), size=len(payload))
        entries = self._parse(payload, path)
        log_debug("config_file_loaded", layer="file", source=str(path), format=self.format_name, keys=len(entries))
        return LoadedResource(str(path), entries)

    def _locate(self, resource_name: str) -> Path | None:
        for directory in self.search_paths:
            for suffix in self.suffixes:
                candidate = directory / f"{resource_name}{suffix}"
                if candidate.is_file():
                    return candidate
        return None

    def _parse(self, payload: bytes, path: Path) -> dict[str, str]:
        raise NotImplementedError

    def _invalid(self, path: Path, exc: Exception) -> ParseError:
        log_error("config_file_invalid", layer="file", source=str(path), format=self.format_name, error=str(exc))
        return ParseError(f"Invalid {self.format_name.upper()} in {path}: {exc}")

    @staticmethod
    def _ensure_mapping(data: object, *, path: Path) -> Mapping[str, object]:
        """Reject documents whose top level is not a mapping.

        Examples
        --------
        >>> BaseFileReader._ensure_mapping({"key": 1}, path=Path("demo"))
        {'key': 1}
        >>> BaseFileReader._ensure_mapping([1], path=Path("demo"))
        Traceback (most recent call last):
        ...
        lib_dynamic_config.domain.errors.ParseError: File demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise ParseError(f"File {path} did not produce a mapping")
        return data


class TOMLReader(BaseFileReader):
    """Read ``<name>.toml`` documents."""

    suffixes = (".toml",)
    format_name = "toml"

    def _parse(self, payload: bytes, path: Path) -> dict[str, str]:
        try:
            data = tomllib.loads(payload.decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc) from exc
        return flatten_mapping(self._ensure_mapping(data, path=path), path=path)


class JSONReader(BaseFileReader):
    """Read ``<name>.json`` documents."""

    suffixes = (".json",)
    format_name = "json"

    def _parse(self, payload: bytes, path: Path) -> dict[str, str]:
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(path, exc) from exc
        return flatten_mapping(self._ensure_mapping(data, path=path), path=path)


class YAMLReader(BaseFileReader):
    """Read ``<name>.yaml`` or ``<name>.yml`` documents; an empty document is empty config."""

    suffixes = (".yaml", ".yml")
    format_name = "yaml"

    def _parse(self, payload: bytes, path: Path) -> dict[str, str]:
        try:
            data = yaml.safe_load(payload)
        except yaml.YAMLError as exc:
            raise self._invalid(path, exc) from exc
        if data is None:
            data = {}
        return flatten_mapping(self._ensure_mapping(data, path=path), path=path)


def flatten_mapping(data: Mapping[str, object], *, path: Path | None = None, prefix: str = "") -> dict[str, str]:
    """Flatten nested mappings into dotted keys with raw string values.

    Lists become comma-separated strings. Lists of tables have no flat
    representation and raise :class:`ParseError`.

    Examples
    --------
    >>> flatten_mapping({"db": {"host": "h", "ports": [1, 2]}, "debug": False})
    {'db.host': 'h', 'db.ports': '1,2', 'debug': 'false'}
    """

    flat: dict[str, str] = {}
    for key, value in data.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_mapping(value, path=path, prefix=dotted))
        elif isinstance(value, (list, tuple)):
            if any(isinstance(item, (Mapping, list, tuple)) for item in value):
                raise ParseError(f"Nested list under {dotted!r} in {path or 'document'} cannot be flattened")
            flat[dotted] = ",".join(as_text(item) for item in value)
        else:
            flat[dotted] = as_text(value)
    return flat


def default_readers(search_paths: Iterable[str | Path]) -> list[BaseFileReader]:
    """Return the standard reader set for ``search_paths`` in registration order."""

    from .properties import PropertiesReader

    paths = tuple(search_paths)
    return [PropertiesReader(paths), TOMLReader(paths), YAMLReader(paths), JSONReader(paths)]
