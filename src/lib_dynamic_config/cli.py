"""CLI adapter for ``lib_dynamic_config`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators answer "what value does this key have and why" without writing
Python: build the layered configuration from the command line, then list,
filter, resolve, or attribute keys.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command wiring traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – distribution metadata.
* :func:`cli_candidates` – cascade candidates for a base name.
* :func:`cli_get` / :func:`cli_list` / :func:`cli_find` – resolved values.
* :func:`cli_sources` – every layer defining a key.
* :func:`cli_layers` – leaf layers in precedence order.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
Outermost layer: every command builds a :class:`~lib_dynamic_config.core.LayeredConfig`
through :func:`~lib_dynamic_config.core.bootstrap` and reads it through the
diagnostic API. Output is JSON so it composes with ``jq``.
"""

from __future__ import annotations

import functools
import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .application.attribution import DEFAULT_SENSITIVE_PATTERNS, leaf_paths, mask_patterns
from .application.cascade import parse_profiles
from .core import DEFAULT_CONFIG_NAME, LayeredConfig, bootstrap

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000

DIST_NAME: Final[str] = "lib_dynamic_config"
PROFILES_ENVVAR: Final[str] = "LIB_DYNAMIC_CONFIG_PROFILES"


def _resolve_version() -> str:
    """Return the installed package version, ``"0.0.0"`` when not installed."""

    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Layered, dynamically mutable configuration resolver",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=DIST_NAME,
    message="lib_dynamic_config version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command configuring traceback handling for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


def _profile_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--profile",
        "profiles",
        multiple=True,
        envvar=PROFILES_ENVVAR,
        help=f"Active profile, least specific first (repeatable, or comma separated in {PROFILES_ENVVAR})",
    )(func)


def _layer_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options every configuration-building command shares."""

    options = [
        click.option(
            "--search-path",
            "search_paths",
            multiple=True,
            type=click.Path(path_type=Path, file_okay=False, dir_okay=True),
            help="Directory searched for configuration resources (repeatable, first wins)",
        ),
        click.option("--config-name", default=DEFAULT_CONFIG_NAME, show_default=True, help="Application resource base name"),
        _profile_option,
        click.option("--library", "libraries", multiple=True, help="Library resource to load (repeatable, first wins)"),
        click.option("--set", "runtime", multiple=True, metavar="KEY=VALUE", help="Runtime override (repeatable)"),
        click.option("-D", "system", multiple=True, metavar="KEY=VALUE", help="System property (repeatable)"),
        click.option("--mask", "masks", multiple=True, metavar="PATTERN", help="Extra glob of keys whose values are masked"),
        click.option("--strict/--lenient", default=False, help="Fail on undefined placeholders instead of using ''"),
    ]
    for option in reversed(options):
        func = option(func)

    @functools.wraps(func)
    def wrapper(**kwargs: Any) -> Any:
        kwargs["config"] = _build_config(
            search_paths=kwargs.pop("search_paths"),
            config_name=kwargs.pop("config_name"),
            profiles=kwargs.pop("profiles"),
            libraries=kwargs.pop("libraries"),
            runtime=kwargs.pop("runtime"),
            system=kwargs.pop("system"),
            masks=kwargs.pop("masks"),
            strict=kwargs.pop("strict"),
        )
        return func(**kwargs)

    return wrapper


def _indent_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--indent",
        type=int,
        default=None,
        help="Pretty-print JSON output with the provided indent size",
    )(func)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(DIST_NAME)
    except metadata.PackageNotFoundError:
        click.echo(f"{DIST_NAME} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', DIST_NAME)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("candidates", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("name", default=DEFAULT_CONFIG_NAME)
@_profile_option
def cli_candidates(name: str, profiles: Sequence[str]) -> None:
    """Print the cascade candidates for NAME, most specific first.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["candidates", "app", "--profile", "local,test"])
    >>> result.output.split()
    ['app-local-test', 'app-test', 'app-local', 'app']
    """

    config = LayeredConfig(profiles=_normalize_profiles(profiles), environ={})
    for candidate in config.loader.candidates(name):
        click.echo(candidate)


@cli.command("get", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@click.option("--raw", is_flag=True, default=False, help="Print the value without resolving placeholders")
@_layer_options
def cli_get(key: str, raw: bool, config: LayeredConfig) -> None:
    """Print the resolved value of KEY (exit code 1 when undefined)."""

    value = config.root.get(key) if raw else config.inspector.resolve(key)
    if value is None:
        raise click.ClickException(f"Key not defined: {key}")
    click.echo(config.attributor.mask_value(key, value))


@cli.command("list", context_settings=CLICK_CONTEXT_SETTINGS)
@_indent_option
@_layer_options
def cli_list(indent: Optional[int], config: LayeredConfig) -> None:
    """Print every key with its resolved value, winning layer, and error."""

    click.echo(json.dumps(config.inspector.list(), indent=indent))


@cli.command("find", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("prefix")
@_indent_option
@_layer_options
def cli_find(prefix: str, indent: Optional[int], config: LayeredConfig) -> None:
    """Print keys equal to PREFIX or nested below ``PREFIX.``."""

    click.echo(json.dumps(config.inspector.find(prefix), indent=indent))


@cli.command("sources", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("key")
@_indent_option
@_layer_options
def cli_sources(key: str, indent: Optional[int], config: LayeredConfig) -> None:
    """Print every layer defining KEY with its raw value, highest precedence first."""

    click.echo(json.dumps(config.inspector.find_sources(key), indent=indent))


@cli.command("layers", context_settings=CLICK_CONTEXT_SETTINGS)
@_indent_option
@_layer_options
def cli_layers(indent: Optional[int], config: LayeredConfig) -> None:
    """Print the leaf layers in precedence order with their key counts."""

    payload = [{"path": path, "keys": len(node.get_keys())} for path, node in leaf_paths(config.root)]
    click.echo(json.dumps(payload, indent=indent))


def _build_config(
    *,
    search_paths: Sequence[Path],
    config_name: str,
    profiles: Sequence[str],
    libraries: Sequence[str],
    runtime: Sequence[str],
    system: Sequence[str],
    masks: Sequence[str],
    strict: bool,
) -> LayeredConfig:
    return bootstrap(
        config_name=config_name,
        profiles=_normalize_profiles(profiles),
        search_paths=search_paths or (Path.cwd(),),
        libraries=libraries,
        runtime_overrides=_parse_assignments(runtime, "--set"),
        system_properties=_parse_assignments(system, "-D"),
        strict=strict,
        is_sensitive=mask_patterns(*DEFAULT_SENSITIVE_PATTERNS, *masks),
    )


def _normalize_profiles(values: Sequence[str]) -> tuple[str, ...]:
    """Flatten repeated and comma separated ``--profile`` values, keeping first occurrences."""

    return parse_profiles(",".join(values))


def _parse_assignments(values: Sequence[str], param_hint: str) -> dict[str, str]:
    """Turn ``KEY=VALUE`` strings into a mapping; the last assignment of a key wins."""

    assignments: dict[str, str] = {}
    for item in values:
        key, separator, value = item.partition("=")
        if not separator or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got {item!r}", param_hint=param_hint)
        assignments[key.strip()] = value
    return assignments


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=DIST_NAME,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
