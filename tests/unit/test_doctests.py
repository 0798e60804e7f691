"""Run the usage examples embedded in module docstrings."""

from __future__ import annotations

import doctest
import importlib

import pytest

MODULES = [
    "lib_dynamic_config.observability",
    "lib_dynamic_config.domain.listeners",
    "lib_dynamic_config.domain.nodes",
    "lib_dynamic_config.domain.interpolate",
    "lib_dynamic_config.domain.composite",
    "lib_dynamic_config.application.cascade",
    "lib_dynamic_config.application.merge",
    "lib_dynamic_config.application.loader",
    "lib_dynamic_config.application.decoders",
    "lib_dynamic_config.application.properties",
    "lib_dynamic_config.application.attribution",
    "lib_dynamic_config.application.diagnostics",
    "lib_dynamic_config.adapters.readers.memory",
    "lib_dynamic_config.adapters.readers.properties",
    "lib_dynamic_config.adapters.readers.structured",
    "lib_dynamic_config.adapters.env.default",
    "lib_dynamic_config.core",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_docstring_examples(name: str) -> None:
    result = doctest.testmod(importlib.import_module(name), optionflags=doctest.ELLIPSIS)
    assert result.failed == 0
