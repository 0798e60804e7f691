"""Source attribution and diagnostics over a multi-layer tree."""

from __future__ import annotations

from lib_dynamic_config.application.attribution import MASK, SourceAttributor, SourceEntry, leaf_paths, mask_patterns
from lib_dynamic_config.application.diagnostics import ConfigInspector
from lib_dynamic_config.domain.composite import CompositeConfig
from lib_dynamic_config.domain.nodes import MapConfigNode, SettableConfigNode


def _root() -> CompositeConfig:
    application = CompositeConfig(
        [
            ("overrides", MapConfigNode({"db.password": "override-pw"})),
            ("loaded", MapConfigNode({"db.password": "file-pw", "db.host": "svc1", "db.url": "${db.host}:5432"})),
        ]
    )
    libraries = CompositeConfig([("dblib", MapConfigNode({"db.host": "localhost", "db.pool": "4"}))])
    return CompositeConfig(
        [
            ("RUNTIME", SettableConfigNode({"db.password": "runtime-pw"})),
            ("APPLICATION", application),
            ("LIBRARIES", libraries),
        ]
    )


def test_every_contributing_layer_is_listed_in_precedence_order() -> None:
    attributor = SourceAttributor(_root())
    assert attributor.find_sources("db.host") == [
        SourceEntry("APPLICATION/loaded", "svc1"),
        SourceEntry("LIBRARIES/dblib", "localhost"),
    ]
    assert attributor.find_sources("missing") == []


def test_sensitive_values_are_masked_in_every_layer() -> None:
    attributor = SourceAttributor(_root(), is_sensitive=mask_patterns("*password*"))
    sources = attributor.find_sources("db.password")
    assert [entry.path for entry in sources] == ["RUNTIME", "APPLICATION/overrides", "APPLICATION/loaded"]
    assert {entry.value for entry in sources} == {MASK}
    assert attributor.mask_value("db.host", "svc1") == "svc1"


def test_raw_values_are_reported_uninterpolated() -> None:
    attributor = SourceAttributor(_root())
    assert attributor.find_sources("db.url") == [SourceEntry("APPLICATION/loaded", "${db.host}:5432")]


def test_mask_patterns_ignore_case() -> None:
    is_sensitive = mask_patterns("*TOKEN*", "db.user")
    assert is_sensitive("api.token") and is_sensitive("DB.USER")
    assert not is_sensitive("db.host")


def test_leaf_paths() -> None:
    assert [path for path, _ in leaf_paths(_root())] == [
        "RUNTIME",
        "APPLICATION/overrides",
        "APPLICATION/loaded",
        "LIBRARIES/dblib",
    ]


def test_inspector_list_and_find() -> None:
    inspector = ConfigInspector(SourceAttributor(_root(), is_sensitive=mask_patterns("*password*")))
    listing = inspector.list()
    assert list(listing) == sorted(listing)
    assert listing["db.password"] == {"value": MASK, "source": "RUNTIME", "error": None}
    assert listing["db.url"]["value"] == "svc1:5432"
    assert set(inspector.find("db")) == {"db.password", "db.host", "db.url", "db.pool"}
    assert inspector.find("db.host") == {"db.host": {"value": "svc1", "source": "APPLICATION/loaded", "error": None}}
    assert inspector.find("d") == {}


def test_inspector_reports_unresolvable_keys() -> None:
    root = CompositeConfig([("APP", MapConfigNode({"loop": "${loop}", "ok": "1"}))])
    report = ConfigInspector(SourceAttributor(root)).list()
    assert report["loop"]["value"] == ""
    assert report["loop"]["error"].startswith("Circular reference")
    assert report["ok"]["error"] is None


def test_inspector_find_sources_masks() -> None:
    inspector = ConfigInspector(SourceAttributor(_root(), is_sensitive=mask_patterns("*password*")))
    assert inspector.find_sources("db.password") == {
        "RUNTIME": MASK,
        "APPLICATION/overrides": MASK,
        "APPLICATION/loaded": MASK,
    }


def test_values_referencing_sensitive_keys_are_masked() -> None:
    root = CompositeConfig(
        [("APPLICATION", MapConfigNode({"db.password": "hunter2", "db.url": "jdbc://u:${db.password}@h", "db.host": "h"}))]
    )
    inspector = ConfigInspector(SourceAttributor(root, is_sensitive=mask_patterns("*.password")))
    assert inspector.list()["db.url"] == {"value": MASK, "source": "APPLICATION", "error": None}
    assert inspector.find("db.url")["db.url"]["value"] == MASK
    assert inspector.resolve("db.url") == MASK
    assert inspector.resolve("db.host") == "h"
    assert inspector.resolve("db.missing") is None
