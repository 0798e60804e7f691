"""Process environment adapter.

Purpose
-------
Expose environment variables as the ``ENVIRONMENT`` layer of the tree. The
node holds a snapshot taken from an explicitly supplied mapping (defaulting to
:data:`os.environ`) and only changes when :meth:`EnvironmentConfigNode.refresh`
is called, so tests and embedded callers control exactly what it sees.

Key behaviours
--------------
* Variable names are kept verbatim; no prefix filtering or case folding.
* An optional ``prefix`` restricts the snapshot to matching variables and
  strips the prefix, e.g. ``APP_DB__HOST`` → ``db.host`` with
  ``nested_delimiter="__"``.
* ``refresh`` publishes the set of keys that changed, like any mutable node.
"""

from __future__ import annotations

import os
import threading
from typing import Mapping

from ...domain.nodes import ConfigNode
from ...observability import log_debug


class EnvironmentConfigNode(ConfigNode):
    """Snapshot of environment variables usable as a configuration layer.

    Parameters
    ----------
    environ:
        Mapping to read from. Defaults to :data:`os.environ`.
    prefix:
        Only variables starting with ``prefix`` are kept, with the prefix
        removed and the remainder lower-cased.
    nested_delimiter:
        Delimiter in prefixed names converted to ``.`` in keys.

    Examples
    --------
    >>> node = EnvironmentConfigNode({"HOME": "/root", "APP_DB__HOST": "db"})
    >>> node.get("HOME")
    '/root'
    >>> EnvironmentConfigNode({"HOME": "/root", "APP_DB__HOST": "db"}, prefix="APP_").get_keys()
    ('db.host',)
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        *,
        prefix: str | None = None,
        nested_delimiter: str = "__",
    ) -> None:
        super().__init__()
        self._environ = os.environ if environ is None else environ
        self._prefix = prefix
        self._nested_delimiter = nested_delimiter
        self._refresh_lock = threading.Lock()
        self._entries: dict[str, str] = self._capture()

    def _snapshot(self) -> Mapping[str, str]:
        return self._entries

    def refresh(self) -> frozenset[str]:
        """Re-read the environment and publish the keys that changed."""

        with self._refresh_lock:
            previous = self._entries
            current = self._capture()
            changed = frozenset(
                key for key in previous.keys() | current.keys() if previous.get(key) != current.get(key)
            )
            self._entries = current
            log_debug("env_refreshed", layer="ENVIRONMENT", source=None, changed=len(changed))
            self._notify(changed)
            return changed

    def _capture(self) -> dict[str, str]:
        if not self._prefix:
            return dict(self._environ)
        captured: dict[str, str] = {}
        for name, value in self._environ.items():
            if not name.startswith(self._prefix):
                continue
            stripped = name[len(self._prefix) :]
            if stripped:
                captured[stripped.lower().replace(self._nested_delimiter.lower(), ".")] = value
        return captured
