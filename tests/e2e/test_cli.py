"""End-to-end CLI coverage for the inspection commands.

Each test writes a small configuration directory, runs a command through
Click's runner, and checks the JSON or text the operator would see.
"""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

import lib_cli_exit_tools

from lib_dynamic_config import LayerLoadError, cli
from tests.support import ConfigDir, create_config_dir


def _runner() -> CliRunner:
    """Return a fresh CLI runner so each test starts from a clean state."""

    return CliRunner()


def _sandbox(tmp_path: Path) -> ConfigDir:
    conf = create_config_dir(tmp_path)
    conf.write(
        "application.toml",
        '[service]\nhost = "svc1"\nport = 80\nurl = "http://${service.host}:${service.port}"\n[db]\npassword = "hunter2"\n',
    )
    conf.write("application-local.properties", "service.host=localhost\n")
    conf.write("cachelib.yaml", "cache:\n  size: 100\nservice:\n  port: 1\n")
    return conf


def test_cli_get_resolves_interpolated_value(tmp_path: Path) -> None:
    conf = _sandbox(tmp_path)
    result = _runner().invoke(cli.cli, ["get", "service.url", "--search-path", str(conf.root)])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "http://svc1:80"


def test_cli_get_raw_and_runtime_override(tmp_path: Path) -> None:
    conf = _sandbox(tmp_path)
    args = ["--search-path", str(conf.root), "--set", "service.port=8080"]
    resolved = _runner().invoke(cli.cli, ["get", "service.url", *args])
    raw = _runner().invoke(cli.cli, ["get", "service.url", "--raw", *args])
    assert resolved.output.strip() == "http://svc1:8080"
    assert raw.output.strip() == "http://${service.host}:${service.port}"


def test_cli_profile_from_option_and_envvar(tmp_path: Path) -> None:
    conf = _sandbox(tmp_path)
    by_option = _runner().invoke(cli.cli, ["get", "service.host", "--search-path", str(conf.root), "--profile", "local"])
    by_env = _runner().invoke(
        cli.cli,
        ["get", "service.host", "--search-path", str(conf.root)],
        env={cli.PROFILES_ENVVAR: "local"},
    )
    assert by_option.output.strip() == "localhost"
    assert by_env.output.strip() == "localhost"


def test_cli_get_missing_key_fails(tmp_path: Path) -> None:
    conf = _sandbox(tmp_path)
    result = _runner().invoke(cli.cli, ["get", "no.such.key", "--search-path", str(conf.root)])
    assert result.exit_code == 1
    assert "Key not defined: no.such.key" in result.output


def test_cli_list_masks_sensitive_values(tmp_path: Path) -> None:
    conf = _sandbox(tmp_path)
    result = _runner().invoke(cli.cli, ["list", "--search-path", str(conf.root), "--indent", "2"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["db.password"]["value"] == "****"
    assert payload["service.url"] == {"value": "http://svc1:80", "source": "APPLICATION/loaded", "error": None}


def test_cli_find_with_library_and_system_property(tmp_path: Path) -> None:
    conf = _sandbox(tmp_path)
    result = _runner().invoke(
        cli.cli,
        ["find", "cache", "--search-path", str(conf.root), "--library", "cachelib", "-D", "cache.ttl=5s"],
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["cache.size"]["source"] == "LIBRARIES/cachelib"
    assert payload["cache.ttl"] == {"value": "5s", "source": "SYSTEM", "error": None}


def test_cli_sources_lists_every_layer(tmp_path: Path) -> None:
    conf = _sandbox(tmp_path)
    result = _runner().invoke(
        cli.cli,
        ["sources", "service.port", "--search-path", str(conf.root), "--library", "cachelib", "--set", "service.port=9"],
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"RUNTIME": "9", "APPLICATION/loaded": "80", "LIBRARIES/cachelib": "1"}


def test_cli_extra_mask_pattern(tmp_path: Path) -> None:
    conf = _sandbox(tmp_path)
    result = _runner().invoke(cli.cli, ["sources", "service.host", "--search-path", str(conf.root), "--mask", "service.*"])
    assert json.loads(result.output) == {"APPLICATION/loaded": "****"}


def test_cli_layers(tmp_path: Path) -> None:
    conf = _sandbox(tmp_path)
    result = _runner().invoke(cli.cli, ["layers", "--search-path", str(conf.root), "--library", "cachelib"])
    paths = [entry["path"] for entry in json.loads(result.output)]
    assert paths == ["RUNTIME", "SYSTEM", "ENVIRONMENT", "APPLICATION/loaded", "LIBRARIES/cachelib"]


def test_cli_candidates() -> None:
    result = _runner().invoke(cli.cli, ["candidates", "application", "--profile", "local", "--profile", "test"])
    assert result.exit_code == 0
    assert result.output.split() == ["application-local-test", "application-test", "application-local", "application"]


def test_cli_rejects_malformed_assignment(tmp_path: Path) -> None:
    result = _runner().invoke(cli.cli, ["list", "--search-path", str(tmp_path), "--set", "novalue"])
    assert result.exit_code == 2
    assert "KEY=VALUE" in result.output


def test_cli_malformed_file_surfaces_layer_error(tmp_path: Path) -> None:
    conf = create_config_dir(tmp_path)
    conf.write("application.json", "{broken")
    result = _runner().invoke(cli.cli, ["list", "--search-path", str(conf.root)])
    assert result.exit_code != 0
    assert isinstance(result.exception, LayerLoadError)


def test_cli_info_handles_missing_metadata(monkeypatch) -> None:
    """`cli info` must degrade gracefully when package metadata is unavailable."""

    def _raise_pkg_not_found(*_args, **_kwargs):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "metadata", _raise_pkg_not_found)
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "metadata unavailable" in result.output


def test_cli_main_restores_traceback_flag(tmp_path: Path) -> None:
    """`cli main` should restore lib_cli_exit_tools tracebacks after execution."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    conf = _sandbox(tmp_path)
    exit_code = cli.main(["--traceback", "get", "service.port", "--search-path", str(conf.root)], restore_traceback=True)
    assert exit_code == 0
    assert getattr(lib_cli_exit_tools.config, "traceback", False) == previous_traceback


def test_cli_get_masks_values_built_from_secrets(tmp_path: Path) -> None:
    conf = create_config_dir(tmp_path)
    conf.write("application.properties", "db.password=hunter2\ndb.url=jdbc://u:${db.password}@h\n")
    result = _runner().invoke(cli.cli, ["get", "db.url", "--search-path", str(conf.root)])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "****"
    assert "hunter2" not in result.output
