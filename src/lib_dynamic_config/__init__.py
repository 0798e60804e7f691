"""Public package surface for the layered, dynamically-mutable configuration resolver.

``lib_dynamic_config`` merges prioritized layers into one view, resolves
``${key}`` placeholders across layers, attributes every key to the layers that
define it, and hands out live typed properties. Import from here; the module
layout below the package is not a stable API.
"""

from __future__ import annotations

from .adapters.env.default import EnvironmentConfigNode
from .adapters.readers.memory import MemoryReader
from .adapters.readers.properties import PropertiesReader
from .adapters.readers.structured import JSONReader, TOMLReader, YAMLReader, default_readers
from .application.attribution import DEFAULT_SENSITIVE_PATTERNS, MASK, SourceAttributor, SourceEntry, mask_patterns
from .application.cascade import DefaultCascadeStrategy, NoCascadeStrategy, parse_profiles
from .application.decoders import (
    decode_bool,
    decode_duration,
    decode_float,
    decode_int,
    decode_list,
    decode_str,
)
from .application.diagnostics import ConfigInspector, PropertyReport
from .application.loader import ConfigLoader, LoadResult
from .application.ports import CascadeStrategy, ConfigReader, Decoder, LoadedResource
from .application.properties import BoundAccessor, DynamicProperty, Field, PropertyFactory, PropertySubscription
from .core import DEFAULT_CONFIG_NAME, Layer, LayeredConfig, LayerLoadError, bootstrap
from .domain.composite import CompositeConfig, Lookup, Resolution
from .domain.errors import (
    ChildNotFoundError,
    CircularReferenceError,
    ConfigError,
    DecodeError,
    DuplicateNameError,
    InterpolationError,
    LoadCancelledError,
    MissingRemoteBindingError,
    ParseError,
    UnresolvedPlaceholderError,
)
from .domain.interpolate import Interpolator
from .domain.listeners import ListenerRegistry, Subscription
from .domain.nodes import ConfigNode, MapConfigNode, SettableConfigNode, SourceInfo
from .observability import bind_trace_id, get_logger

__all__ = [
    "BoundAccessor",
    "CascadeStrategy",
    "ChildNotFoundError",
    "CircularReferenceError",
    "CompositeConfig",
    "ConfigError",
    "ConfigInspector",
    "ConfigLoader",
    "ConfigNode",
    "ConfigReader",
    "DEFAULT_CONFIG_NAME",
    "DEFAULT_SENSITIVE_PATTERNS",
    "DecodeError",
    "Decoder",
    "DefaultCascadeStrategy",
    "DuplicateNameError",
    "DynamicProperty",
    "EnvironmentConfigNode",
    "Field",
    "InterpolationError",
    "Interpolator",
    "JSONReader",
    "Layer",
    "LayerLoadError",
    "LayeredConfig",
    "ListenerRegistry",
    "LoadCancelledError",
    "LoadResult",
    "LoadedResource",
    "Lookup",
    "MASK",
    "MapConfigNode",
    "MemoryReader",
    "MissingRemoteBindingError",
    "NoCascadeStrategy",
    "ParseError",
    "PropertiesReader",
    "PropertyFactory",
    "PropertyReport",
    "PropertySubscription",
    "Resolution",
    "SettableConfigNode",
    "SourceAttributor",
    "SourceEntry",
    "SourceInfo",
    "Subscription",
    "TOMLReader",
    "UnresolvedPlaceholderError",
    "YAMLReader",
    "bind_trace_id",
    "bootstrap",
    "decode_bool",
    "decode_duration",
    "decode_float",
    "decode_int",
    "decode_list",
    "decode_str",
    "default_readers",
    "get_logger",
    "mask_patterns",
    "parse_profiles",
]
