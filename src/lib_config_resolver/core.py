"""Composition root for ``lib_config_resolver``.

Purpose
-------
Provide the entry points that run the resolution pipeline (gather providers,
merge fragments, decode against a schema) and the conventional startup wiring
used by services: ``config.yml`` < ``config.yaml`` < prefixed environment.

Contents
--------
* :func:`resolve_config` – the public pipeline entry point.
* :func:`standard_providers` – default provider list for a working directory.
* :func:`try_parse_config` – standard providers + decode, raising on failure.
* :func:`parse_config` – same, but prints a report and exits on failure.
* :func:`report_resolution_error` – the human-oriented failure report.

System Role
-----------
Connects the provider adapters, the merge engine, and the decoder while
emitting structured observability signals. Nothing here keeps state between
calls.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Mapping, Sequence

import click

from .adapters.providers.document import DocumentProvider
from .adapters.providers.environment import EnvironmentProvider, default_env_prefix
from .adapters.providers.memory import DefaultsProvider, OverrideProvider
from .application.decode import decode
from .application.merge import resolve, resolve_layers
from .application.ports import EnvironSource, Provider
from .domain.config import Config, EMPTY_CONFIG, SourceInfo
from .domain.errors import (
    Cancelled,
    ConfigError,
    MissingField,
    NotFound,
    ParseFailure,
    PermissionDenied,
    ProviderFailed,
    ResolutionError,
    SourceError,
    TypeMismatch,
    UnknownField,
    ValidationError,
)
from .domain.schema import MISSING, Field, Schema
from .observability import log_error, log_info, resolution_scope

CONFIG_FILE_NAMES: tuple[str, ...] = ("config.yml", "config.yaml")
"""Files read from the working directory, lowest precedence first."""

ENV_SEPARATOR = "__"


def resolve_config(
    providers: Sequence[Provider],
    schema: Schema,
    *,
    strict: bool,
    cancel: threading.Event | None = None,
) -> Any:
    """Resolve *providers* into a typed configuration described by *schema*.

    Why
    ----
    Services want one call that either yields a fully validated configuration
    or an error naming the provider and key at fault.

    What
    ----
    Runs the pipeline once: fetch providers in order and fold them
    (:func:`resolve_layers`), then :func:`decode` the merged tree. Any failure
    aborts the call; no partial result escapes.

    Parameters
    ----------
    providers:
        Ordered from lowest to highest precedence.
    schema:
        Expected fields; ``schema.target`` builds the result.
    strict:
        Reject keys the schema does not declare. Required; there is no
        default.
    cancel:
        Optional event aborting the gathering stage with :class:`Cancelled`.

    Returns
    -------
    Any
        ``schema.target`` instance, or an immutable :class:`Config` when the
        schema has no target.

    Side Effects
    ------------
    Emits ``configuration_resolved`` / ``configuration_invalid`` log events
    inside a :func:`resolution_scope` so all records of the run share an id.

    Examples
    --------
    >>> schema = Schema([Field("db", Schema([Field("host", "string"), Field("port", "integer")]))])
    >>> cfg = resolve_config(
    ...     [DefaultsProvider({"db": {"host": "x", "port": 5432}}), OverrideProvider({"db": {"port": 5433}})],
    ...     schema,
    ...     strict=True,
    ... )
    >>> cfg.get("db.host"), cfg.get("db.port"), cfg.origin("db.port")["layer"]
    ('x', 5433, 'override')
    """

    with resolution_scope():
        tree, meta = resolve_layers(providers, cancel=cancel)
        try:
            result = decode(tree, schema, strict=strict, provenance=meta)
        except ValidationError as exc:
            log_error("configuration_invalid", provider=exc.provider, path=exc.path, error=exc.reason)
            raise
        log_info("configuration_resolved", providers=len(providers), strict=strict)
    return result


def standard_providers(
    env_prefix: str,
    *,
    cwd: str | Path | None = None,
    environ: EnvironSource | None = None,
) -> list[Provider]:
    """Return the conventional provider list for a service.

    Precedence, lowest first: ``<cwd>/config.yml``, ``<cwd>/config.yaml``
    (both optional), then environment variables starting with *env_prefix*
    with ``__`` separating nested keys.
    """

    base = Path(cwd) if cwd is not None else Path.cwd()
    providers: list[Provider] = [DocumentProvider.file(base / name, required=False) for name in CONFIG_FILE_NAMES]
    providers.append(EnvironmentProvider(env_prefix, separator=ENV_SEPARATOR, environ=environ))
    return providers


def try_parse_config(
    schema: Schema,
    env_prefix: str,
    *,
    strict: bool,
    cwd: str | Path | None = None,
    environ: EnvironSource | None = None,
) -> Any:
    """Resolve :func:`standard_providers` against *schema*, raising on failure.

    Missing configuration files are not reported here; use
    :func:`parse_config` to get hints when nothing was found.
    """

    return resolve_config(standard_providers(env_prefix, cwd=cwd, environ=environ), schema, strict=strict)


def parse_config(
    schema: Schema,
    env_prefix: str,
    *,
    strict: bool,
    cwd: str | Path | None = None,
    environ: EnvironSource | None = None,
) -> Any:
    """Like :func:`try_parse_config`, but print a report and exit(1) on failure.

    Call this before any real work starts: the process terminates through
    :class:`SystemExit`, so only ``finally`` blocks and ``atexit`` hooks run.
    """

    try:
        return try_parse_config(schema, env_prefix, strict=strict, cwd=cwd, environ=environ)
    except ResolutionError as exc:
        report_resolution_error(exc, env_prefix, cwd=cwd, environ=environ)
        raise SystemExit(1) from exc


def report_resolution_error(
    error: ResolutionError,
    env_prefix: str,
    *,
    cwd: str | Path | None = None,
    environ: EnvironSource | None = None,
) -> None:
    """Print *error* to stderr with hints about likely causes.

    Hints: no ``config.yml``/``config.yaml`` in *cwd*, and, when any variable
    starts with *env_prefix*, a reminder to check variable names for typos.
    """

    click.echo(f"{click.style('error', fg='red', bold=True)}: invalid configuration:", err=True)
    click.echo(f"- {error}", err=True)

    base = Path(cwd) if cwd is not None else Path.cwd()
    if not any((base / name).exists() for name in CONFIG_FILE_NAMES):
        _print_note(
            f"neither `{base / CONFIG_FILE_NAMES[1]}` nor `{base / CONFIG_FILE_NAMES[0]}` could be found; "
            "ensure that you have read permissions and that the filename is correct"
        )
    if any(name.startswith(env_prefix) for name in _environment_names(environ)):
        _print_note(f"an environment variable starting with `{env_prefix}` was found; check any variable names for typos")


def _print_note(note: str) -> None:
    click.echo(f"\n{click.style('note', fg='green', bold=True)}: {note}", err=True)


def _environment_names(environ: EnvironSource | None) -> list[str]:
    if environ is None:
        return list(os.environ)
    if isinstance(environ, Mapping):
        return list(environ)
    return [name for name, _ in environ()]


__all__ = [
    "CONFIG_FILE_NAMES",
    "Cancelled",
    "Config",
    "ConfigError",
    "DefaultsProvider",
    "DocumentProvider",
    "EMPTY_CONFIG",
    "EnvironmentProvider",
    "Field",
    "MISSING",
    "MissingField",
    "NotFound",
    "OverrideProvider",
    "ParseFailure",
    "PermissionDenied",
    "Provider",
    "ProviderFailed",
    "ResolutionError",
    "Schema",
    "SourceError",
    "SourceInfo",
    "TypeMismatch",
    "UnknownField",
    "ValidationError",
    "default_env_prefix",
    "parse_config",
    "report_resolution_error",
    "resolve",
    "resolve_config",
    "standard_providers",
    "try_parse_config",
]
