"""Shared fixtures-as-functions for the test suite.

Tests build small layer trees and on-disk configuration directories over and
over; these helpers keep that setup declarative so each test reads as the
scenario it checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from lib_dynamic_config import LayeredConfig, MemoryReader


@dataclass
class ConfigDir:
    """Directory of configuration resources written by a test."""

    root: Path
    written: list[Path] = field(default_factory=list)

    def write(self, filename: str, content: str) -> Path:
        path = self.root / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        self.written.append(path)
        return path


def create_config_dir(tmp_path: Path, name: str = "conf") -> ConfigDir:
    """Return an empty :class:`ConfigDir` below ``tmp_path``."""

    root = tmp_path / name
    root.mkdir(parents=True, exist_ok=True)
    return ConfigDir(root)


def memory_config(resources: Mapping[str, Mapping[str, Any]], **kwargs: Any) -> LayeredConfig:
    """Return a :class:`LayeredConfig` reading ``resources`` from memory with an empty environment."""

    kwargs.setdefault("environ", {})
    return LayeredConfig(readers=[MemoryReader(resources)], **kwargs)


class Recorder:
    """Callable collecting every call's arguments, usable as any listener."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def __call__(self, *args: Any) -> None:
        self.calls.append(args)

    @property
    def keys(self) -> list[set[str]]:
        """Key sets received, for node change listeners."""

        return [set(call[0]) for call in self.calls]
