"""File-backed readers: formats, search order, flattening, and parse failures."""

from __future__ import annotations

from pathlib import Path

import pytest

from lib_dynamic_config.adapters.readers.memory import MemoryReader
from lib_dynamic_config.adapters.readers.properties import PropertiesReader, parse_properties
from lib_dynamic_config.adapters.readers.structured import (
    JSONReader,
    TOMLReader,
    YAMLReader,
    default_readers,
    flatten_mapping,
)
from lib_dynamic_config.application.loader import ConfigLoader
from lib_dynamic_config.application.ports import ConfigReader
from lib_dynamic_config.domain.errors import ParseError
from tests.support import create_config_dir


def test_toml_reader_flattens_tables(tmp_path: Path) -> None:
    conf = create_config_dir(tmp_path)
    path = conf.write("application.toml", '[db]\nhost = "svc1"\nport = 5432\n[feature]\nenabled = true\nflags = ["a", "b"]\n')
    resource = TOMLReader([conf.root]).try_load("application")
    assert resource is not None
    assert resource.location == str(path)
    assert resource.entries == {"db.host": "svc1", "db.port": "5432", "feature.enabled": "true", "feature.flags": "a,b"}


def test_json_reader(tmp_path: Path) -> None:
    conf = create_config_dir(tmp_path)
    conf.write("application.json", '{"service": {"timeout": 15, "name": null}}')
    resource = JSONReader([conf.root]).try_load("application")
    assert resource.entries == {"service.timeout": "15", "service.name": ""}


def test_yaml_reader_accepts_both_suffixes_and_empty_documents(tmp_path: Path) -> None:
    conf = create_config_dir(tmp_path)
    conf.write("application.yml", "logging:\n  level: debug\n")
    conf.write("empty.yaml", "")
    reader = YAMLReader([conf.root])
    assert reader.try_load("application").entries == {"logging.level": "debug"}
    assert reader.try_load("empty").entries == {}


def test_properties_reader(tmp_path: Path) -> None:
    conf = create_config_dir(tmp_path)
    conf.write("application.properties", "# comment\n! also comment\n\nhost=svc1\nurl : http://${host}\nempty=\n")
    resource = PropertiesReader([conf.root]).try_load("application")
    assert resource.entries == {"host": "svc1", "url": "http://${host}", "empty": ""}


def test_missing_file_is_none(tmp_path: Path) -> None:
    assert TOMLReader([tmp_path]).try_load("application") is None


def test_unreadable_file_raises_parse_error(tmp_path: Path, monkeypatch) -> None:
    conf = create_config_dir(tmp_path)
    conf.write("application.json", "{}")

    def _deny(self: Path) -> bytes:
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "read_bytes", _deny)
    with pytest.raises(ParseError, match="Permission denied") as info:
        JSONReader([conf.root]).try_load("application")
    assert isinstance(info.value.__cause__, PermissionError)


def test_first_search_path_wins(tmp_path: Path) -> None:
    first = create_config_dir(tmp_path, "first")
    second = create_config_dir(tmp_path, "second")
    first.write("application.toml", 'source = "first"\n')
    second.write("application.toml", 'source = "second"\n')
    assert TOMLReader([first.root, second.root]).try_load("application").entries == {"source": "first"}


@pytest.mark.parametrize(
    ("reader_type", "filename", "content"),
    [
        (TOMLReader, "application.toml", "[broken"),
        (JSONReader, "application.json", "{not json"),
        (JSONReader, "application.json", "[1, 2]"),
        (YAMLReader, "application.yaml", "key: [unclosed"),
        (PropertiesReader, "application.properties", "host=svc1\nbad=\\uXYZ\n"),
        (TOMLReader, "application.toml", "items = [[1], [2]]\n"),
    ],
)
def test_malformed_files_raise_parse_error(tmp_path: Path, reader_type, filename: str, content: str) -> None:
    conf = create_config_dir(tmp_path)
    conf.write(filename, content)
    with pytest.raises(ParseError):
        reader_type([conf.root]).try_load("application")


def test_properties_line_numbers_in_errors() -> None:
    with pytest.raises(ParseError, match="line 3"):
        parse_properties("a=1\n# note\nb=\\u00zz\n")


def test_properties_whitespace_separator_and_bare_keys() -> None:
    assert parse_properties("key value\nspaced   =   x\ncolon:y\n  indented\tvalue\nflag\n") == {
        "key": "value",
        "spaced": "x",
        "colon": "y",
        "indented": "value",
        "flag": "",
    }


def test_properties_escapes() -> None:
    text = "a\\=b=c\\:d\nwin=C:\\\\temp\\\\app\nspace\\ key=tab\\there\nsnow=\\u2603\n"
    assert parse_properties(text) == {"a=b": "c:d", "win": "C:\\temp\\app", "space key": "tab\there", "snow": "\u2603"}


def test_properties_escaped_trailing_backslash_does_not_continue() -> None:
    assert parse_properties("dir=C:\\\\\nnext=1\n") == {"dir": "C:\\", "next": "1"}


def test_properties_continuation_and_first_separator() -> None:
    assert parse_properties("list = a,\\\n   b,\\\n   c\nratio=1:2\n") == {"list": "a,b,c", "ratio": "1:2"}


def test_flatten_mapping_nested_prefix() -> None:
    assert flatten_mapping({"a": {"b": {"c": 1}}}) == {"a.b.c": "1"}


def test_default_readers_cascade_across_formats(tmp_path: Path) -> None:
    conf = create_config_dir(tmp_path)
    conf.write("application.properties", "port=80\nhost=base\n")
    conf.write("application-local.yaml", "port: 8080\n")
    loader = ConfigLoader(default_readers([conf.root]), profiles=["local"])
    node = loader.load("application").node
    assert (node.get("port"), node.get("host")) == ("8080", "base")


def test_readers_satisfy_port(tmp_path: Path) -> None:
    for reader in (*default_readers([tmp_path]), MemoryReader({})):
        assert isinstance(reader, ConfigReader)
