"""CLI adapter for ``lib_config_resolver`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators inspect how documents, environment variables, and overrides
merge without writing Python. The CLI has no schema, so it stops after the
merge stage and prints the tree (optionally with provenance).

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command wiring traceback handling into
  ``lib_cli_exit_tools``.
* :func:`cli_info` – prints distribution metadata.
* :func:`cli_env_prefix` – exposes :func:`default_env_prefix`.
* :func:`cli_resolve` – merges the requested providers and prints JSON.
* :func:`main` – entry point used by ``console_scripts`` registration.

System Role
-----------
Outermost layer: builds providers and calls the merge engine; failures are
funnelled through ``lib_cli_exit_tools`` so exit codes stay consistent.
"""

from __future__ import annotations

import json
import sys
from importlib import metadata
from pathlib import Path
from typing import Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from .adapters.parsers.structured import PARSERS
from .adapters.providers.document import DocumentProvider
from .adapters.providers.environment import EnvironmentProvider, default_env_prefix
from .adapters.providers.memory import OverrideProvider
from .application.merge import resolve_layers
from .application.ports import Provider

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DISTRIBUTION: Final[str] = "lib_config_resolver"


def _resolve_version() -> str:
    """Return the installed package version, or ``"0.0.0"`` for source checkouts."""

    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


@click.group(
    help="Layered configuration resolver",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="lib_config_resolver version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command storing the traceback preference for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``lib_cli_exit_tools.config.traceback_force_color``.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print distribution metadata and the document formats this build can parse."""

    try:
        meta = metadata.metadata(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo(f"{_DISTRIBUTION} (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.11')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")
    click.echo(f"  Formats         : {', '.join(sorted(PARSERS))}")


@cli.command("env-prefix", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("slug")
def cli_env_prefix(slug: str) -> None:
    """Compute the canonical environment prefix for *slug*.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> result = CliRunner().invoke(cli, ["env-prefix", "config-kit"])
    >>> result.output.strip()
    'CONFIG_KIT'
    """

    click.echo(default_env_prefix(slug))


@cli.command("resolve", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--file",
    "files",
    multiple=True,
    type=click.Path(path_type=Path, dir_okay=False),
    help="Configuration document (YAML/JSON/TOML); repeatable, later files win",
)
@click.option(
    "--require-files/--optional-files",
    default=False,
    show_default=True,
    help="Fail when a --file does not exist instead of skipping it",
)
@click.option("--env-prefix", default=None, help="Read environment variables starting with this prefix")
@click.option("--separator", default="__", show_default=True, help="Separator for nested environment keys")
@click.option(
    "--set",
    "overrides",
    multiple=True,
    metavar="KEY=VALUE",
    help="Dotted override applied last, e.g. --set db.port=5433 (repeatable)",
)
@click.option("--indent", type=int, default=None, help="Pretty-print JSON output with the provided indent size")
@click.option(
    "--provenance/--no-provenance",
    default=False,
    help="Include the provider behind each key in the output",
)
def cli_resolve(
    files: Sequence[Path],
    require_files: bool,
    env_prefix: Optional[str],
    separator: str,
    overrides: Sequence[str],
    indent: Optional[int],
    provenance: bool,
) -> None:
    """Merge the requested providers and print the result as JSON.

    Precedence, lowest first: each ``--file`` in order, the environment
    (when ``--env-prefix`` is given), then ``--set`` overrides. Values from
    the environment and ``--set`` stay strings; no schema is applied.
    """

    providers: list[Provider] = [DocumentProvider.file(path, required=require_files) for path in files]
    if env_prefix is not None:
        providers.append(EnvironmentProvider(env_prefix, separator=separator))
    if overrides:
        providers.append(OverrideProvider(_parse_overrides(overrides), name="cli-override"))

    tree, meta = resolve_layers(providers)
    payload: object = {"config": tree, "provenance": meta} if provenance else tree
    click.echo(json.dumps(payload, indent=indent, separators=(",", ":"), ensure_ascii=False))


def _parse_overrides(values: Sequence[str]) -> dict[str, str]:
    """Split ``KEY=VALUE`` strings, rejecting entries without ``=`` or key."""

    parsed: dict[str, str] = {}
    for value in values:
        key, sep, raw = value.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}", param_hint="--set")
        parsed[key.strip()] = raw
    return parsed


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
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
