"""Composition root for ``lib_dynamic_config``.

Purpose
-------
Build the fixed top-level layer tree once, wire readers and the cascade
strategy into a loader, and offer the operations an application bootstrap
needs: load libraries and the application configuration, apply overrides, bind
a remote source, and hand out dynamic properties and diagnostics.

Contents
--------
* :class:`Layer` – the six top-level layers in precedence order.
* :class:`LayerLoadError` – a load failed; earlier layers are untouched.
* :class:`LayeredConfig` – owns the tree and every bootstrap operation.
* :func:`bootstrap` – builds a :class:`LayeredConfig` and loads it in the
  standard order.

Layer order (highest precedence first)
--------------------------------------
``RUNTIME`` values set from code, ``REMOTE`` a bound remote source, ``SYSTEM``
explicit system properties, ``ENVIRONMENT`` process environment,
``APPLICATION`` the application's own configuration, ``LIBRARIES`` defaults
shipped by libraries.

System Role
-----------
Nothing here is process-wide state: every input (config name, profiles,
readers, system properties, environment) is a constructor argument supplied by
the entry point.
"""

from __future__ import annotations

import threading
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Mapping, Sequence, Union

from .adapters.env.default import EnvironmentConfigNode
from .adapters.readers.structured import default_readers
from .application.attribution import SensitivityPredicate, SourceAttributor, mask_patterns, DEFAULT_SENSITIVE_PATTERNS
from .application.cascade import DefaultCascadeStrategy
from .application.diagnostics import ConfigInspector
from .application.loader import ConfigLoader, LoadResult
from .application.ports import CascadeStrategy, ConfigReader
from .application.properties import PropertyFactory
from .domain.composite import CompositeConfig
from .domain.errors import ConfigError, MissingRemoteBindingError, ParseError
from .domain.interpolate import Interpolator
from .domain.nodes import ConfigNode, MapConfigNode, SettableConfigNode
from .observability import bind_trace_id, log_error, log_info, make_event

DEFAULT_CONFIG_NAME = "application"
LOADED_CHILD = "loaded"
OVERRIDES_CHILD = "overrides"
REMOTE_CHILD = "remote"

RemoteSource = Union[ConfigNode, Callable[[CompositeConfig], ConfigNode]]
"""A remote node, or a provider receiving the root config and returning one."""


class Layer(str, Enum):
    """Top-level layers in precedence order (first wins)."""

    RUNTIME = "RUNTIME"
    REMOTE = "REMOTE"
    SYSTEM = "SYSTEM"
    ENVIRONMENT = "ENVIRONMENT"
    APPLICATION = "APPLICATION"
    LIBRARIES = "LIBRARIES"


class LayerLoadError(ConfigError):
    """Raised when one or more loads failed.

    Attributes
    ----------
    failures:
        Mapping of ``"<LAYER>/<child>"`` to the underlying exception.
    """

    def __init__(self, message: str, failures: Mapping[str, Exception]) -> None:
        super().__init__(message)
        self.failures = dict(failures)


class LayeredConfig:
    """Own the layer tree and perform bootstrap operations against it.

    Parameters
    ----------
    config_name:
        Base name of the application configuration (``"application"``).
    profiles:
        Active profiles, least to most specific.
    readers:
        Readers tried in order for each cascade candidate.
    search_paths:
        Convenience: the standard properties/TOML/YAML/JSON readers over
        these directories. Used only when ``readers`` is empty; passing both
        raises :class:`ValueError`.
    cascade:
        Cascade strategy; defaults to :class:`DefaultCascadeStrategy`.
    system_properties:
        Seed of the ``SYSTEM`` layer.
    environ:
        Environment mapping snapshotted into the ``ENVIRONMENT`` layer;
        defaults to :data:`os.environ`.
    strict:
        Raise on undefined placeholders instead of substituting ``""``.
    is_sensitive:
        Key predicate deciding which values diagnostics mask; defaults to
        :data:`DEFAULT_SENSITIVE_PATTERNS`.

    Examples
    --------
    >>> from lib_dynamic_config.adapters.readers.memory import MemoryReader
    >>> config = LayeredConfig(
    ...     profiles=["local"],
    ...     readers=[MemoryReader({"application": {"port": "80"}, "application-local": {"host": "dev"}})],
    ...     environ={},
    ... )
    >>> config.load_application().found
    True
    >>> config.runtime.set("port", "8080")
    >>> config.root.lookup("port")
    Lookup(value='8080', source='RUNTIME')
    >>> config.root.get_string("host")
    'dev'
    """

    def __init__(
        self,
        *,
        config_name: str = DEFAULT_CONFIG_NAME,
        profiles: Sequence[str] = (),
        readers: Iterable[ConfigReader] = (),
        search_paths: Iterable[str | Path] = (),
        cascade: CascadeStrategy | None = None,
        system_properties: Mapping[str, object] | None = None,
        environ: Mapping[str, str] | None = None,
        strict: bool = False,
        is_sensitive: SensitivityPredicate | None = None,
    ) -> None:
        self.config_name = config_name
        self.profiles = tuple(profiles)
        self.runtime = SettableConfigNode()
        self.remote_layer = CompositeConfig()
        self.system = SettableConfigNode(system_properties)
        self.environment = EnvironmentConfigNode(environ)
        self.application = CompositeConfig()
        self.libraries = CompositeConfig()
        self.root = CompositeConfig(
            [
                (Layer.RUNTIME.value, self.runtime),
                (Layer.REMOTE.value, self.remote_layer),
                (Layer.SYSTEM.value, self.system),
                (Layer.ENVIRONMENT.value, self.environment),
                (Layer.APPLICATION.value, self.application),
                (Layer.LIBRARIES.value, self.libraries),
            ],
            interpolator=Interpolator(strict=strict),
        )
        reader_list = list(readers)
        path_list = list(search_paths)
        if reader_list and path_list:
            raise ValueError("Pass either readers or search_paths, not both")
        self.loader = ConfigLoader(
            reader_list or default_readers(path_list),
            cascade=cascade or DefaultCascadeStrategy(),
            profiles=self.profiles,
            lookup=self.root.get,
        )
        self._remote: ConfigNode | None = None
        self._remote_lock = threading.Lock()
        self.properties = PropertyFactory(self.root)
        self.attributor = SourceAttributor(
            self.root,
            is_sensitive=is_sensitive or mask_patterns(*DEFAULT_SENSITIVE_PATTERNS),
        )
        self.inspector = ConfigInspector(self.attributor)

    def layer(self, layer: Layer | str) -> ConfigNode:
        """Return the top-level node for ``layer``."""

        return self.root.child(Layer(layer).value)

    # --------------------------------------------------------------- loading

    def load_library(self, name: str, resource: str | None = None, *, cancel: threading.Event | None = None) -> LoadResult:
        """Load ``resource`` (default ``name``) into the ``LIBRARIES`` layer as child ``name``.

        Libraries added earlier take precedence over libraries added later. A
        library with no resources still gets an (empty) child so its name is
        reserved and reloads replace it in place.
        """

        result = self._load(Layer.LIBRARIES, name, resource or name, cancel)
        self.libraries.put_child(name, result.node)
        return result

    def load_libraries(self, names: Iterable[str], *, cancel: threading.Event | None = None) -> dict[str, LoadResult]:
        """Load each library independently; one failure does not stop the rest.

        Raises
        ------
        LayerLoadError
            After every library was attempted, if any of them failed.
        """

        results: dict[str, LoadResult] = {}
        failures: dict[str, Exception] = {}
        for name in names:
            try:
                results[name] = self.load_library(name, cancel=cancel)
            except LayerLoadError as exc:
                failures.update(exc.failures)
        if failures:
            raise LayerLoadError(f"Failed to load libraries: {', '.join(sorted(failures))}", failures)
        return results

    def load_application(self, *, cancel: threading.Event | None = None) -> LoadResult:
        """Load :attr:`config_name` into the ``APPLICATION`` layer as child ``loaded``."""

        result = self._load(Layer.APPLICATION, LOADED_CHILD, self.config_name, cancel)
        self.application.put_child(LOADED_CHILD, result.node)
        return result

    def reload_application(self, *, cancel: threading.Event | None = None) -> LoadResult:
        """Reload the application configuration, replacing ``loaded`` in place."""

        return self.load_application(cancel=cancel)

    def reload_library(self, name: str, resource: str | None = None, *, cancel: threading.Event | None = None) -> LoadResult:
        return self.load_library(name, resource, cancel=cancel)

    def _load(self, layer: Layer, child: str, resource: str, cancel: threading.Event | None) -> LoadResult:
        try:
            return self.loader.load(resource, cancel=cancel)
        except ParseError as exc:
            path = f"{layer.value}/{child}"
            log_error("layer_error", **make_event(path, resource, {"error": str(exc)}))
            raise LayerLoadError(f"Failed to load {path} from {resource!r}: {exc}", {path: exc}) from exc

    # ------------------------------------------------------------- overrides

    def add_runtime_overrides(self, overrides: Mapping[str, object]) -> None:
        self.runtime.set_all(overrides)

    def add_application_overrides(self, overrides: Mapping[str, object]) -> None:
        """Attach ``overrides`` to the ``APPLICATION`` layer above the loaded configuration."""

        self.application.put_child(OVERRIDES_CHILD, MapConfigNode(overrides), index=0)

    def add_library_overrides(self, name: str, overrides: Mapping[str, object]) -> None:
        """Attach ``overrides`` for library ``name`` ahead of every loaded library.

        The child is called ``<name>-overrides`` so loading library ``name``
        afterwards keeps both. Calling it again for the same library replaces
        the previous overrides in place.
        """

        self.libraries.put_child(f"{name}-overrides", MapConfigNode(overrides), index=0)

    # ---------------------------------------------------------------- remote

    def bind_remote(self, source: RemoteSource) -> ConfigNode:
        """Attach a remote node to the ``REMOTE`` layer; allowed once per instance.

        ``source`` may be a node or a provider called with the root config (so
        it can read system, environment, and application values while it is
        being constructed). The remote node takes the ``REMOTE`` layer's
        precedence position directly under ``RUNTIME``.
        """

        with self._remote_lock:
            if self._remote is not None:
                raise ConfigError("A remote source is already bound")
            node = source if isinstance(source, ConfigNode) else source(self.root)
            self.remote_layer.add_child(REMOTE_CHILD, node)
            self._remote = node
        log_info("remote_bound", **make_event(Layer.REMOTE.value, REMOTE_CHILD, {"keys": len(node.get_keys())}))
        return node

    @property
    def remote(self) -> ConfigNode:
        """The bound remote node.

        Raises
        ------
        MissingRemoteBindingError
            When :meth:`bind_remote` was never called.
        """

        if self._remote is None:
            raise MissingRemoteBindingError("No remote configuration source was bound")
        return self._remote

    @property
    def has_remote(self) -> bool:
        return self._remote is not None


def bootstrap(
    *,
    config_name: str = DEFAULT_CONFIG_NAME,
    profiles: Sequence[str] = (),
    readers: Iterable[ConfigReader] = (),
    search_paths: Iterable[str | Path] = (),
    libraries: Sequence[str] = (),
    runtime_overrides: Mapping[str, object] | None = None,
    application_overrides: Mapping[str, object] | None = None,
    library_overrides: Mapping[str, Mapping[str, object]] | None = None,
    remote: RemoteSource | None = None,
    system_properties: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
    cascade: CascadeStrategy | None = None,
    strict: bool = False,
    is_sensitive: SensitivityPredicate | None = None,
    trace_id: str | None = None,
) -> LayeredConfig:
    """Build a :class:`LayeredConfig` and load it in the standard order.

    Order: runtime overrides, application overrides, library overrides,
    libraries (each isolated), the application configuration, then the remote
    binding (which may read everything loaded before it).

    Raises
    ------
    LayerLoadError
        When a library or the application configuration is malformed. Layers
        loaded before the failure stay attached.
    """

    bind_trace_id(trace_id)
    config = LayeredConfig(
        config_name=config_name,
        profiles=profiles,
        readers=readers,
        search_paths=search_paths,
        cascade=cascade,
        system_properties=system_properties,
        environ=environ,
        strict=strict,
        is_sensitive=is_sensitive,
    )
    if runtime_overrides:
        config.add_runtime_overrides(runtime_overrides)
    if application_overrides:
        config.add_application_overrides(application_overrides)
    for name, overrides in (library_overrides or {}).items():
        config.add_library_overrides(name, overrides)
    if libraries:
        config.load_libraries(libraries)
    config.load_application()
    if remote is not None:
        config.bind_remote(remote)
    log_info(
        "configuration_ready",
        **make_event("root", config_name, {"profiles": list(config.profiles), "keys": len(config.root.get_keys())}),
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "Layer",
    "LayerLoadError",
    "LayeredConfig",
    "RemoteSource",
    "bootstrap",
]
