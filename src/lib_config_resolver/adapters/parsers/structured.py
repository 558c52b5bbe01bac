"""Structured document parsers.

Purpose
-------
Convert raw document bytes into value-tree mappings. Each parser is a thin
wrapper around a PyYAML safe loader/``json``/``tomllib`` so error translation and
observability live in one place.

Contents
--------
* :func:`parse_yaml` / :func:`parse_json` / :func:`parse_toml` – format
  specific parsers raising :class:`ParseFailure`.
* :data:`PARSERS` / :func:`parser_for` – lookup by format name or file suffix.
* :func:`parse_document` – dispatch helper used by the document provider.

System Role
-----------
Invoked by :class:`lib_config_resolver.adapters.providers.document.DocumentProvider`;
the resolver itself only ever sees the resulting mapping or the error message.
"""

from __future__ import annotations

import datetime
import json
import tomllib
from pathlib import PurePath
from typing import Any, Final, Mapping

import yaml

from ...application.ports import DocumentParser
from ...domain.errors import ParseFailure
from ...observability import log_debug, log_error


class _ConfigLoader(yaml.SafeLoader):
    """Safe loader that keeps dates and timestamps as the strings written."""


_ConfigLoader.add_constructor("tag:yaml.org,2002:timestamp", yaml.SafeLoader.construct_yaml_str)


def parse_yaml(data: bytes, *, source: str) -> Mapping[str, object]:
    """Parse YAML *data*; an empty document yields an empty mapping.

    Dates and timestamps stay strings (``2024-01-01`` is not a ``date``).

    Examples
    --------
    >>> parse_yaml(b"db:\\n  port: 5432\\n", source="inline")
    {'db': {'port': 5432}}
    >>> parse_yaml(b"release: 2024-01-01\\n", source="inline")
    {'release': '2024-01-01'}
    >>> parse_yaml(b"# nothing here\\n", source="inline")
    {}
    """

    try:
        loaded = yaml.load(data, Loader=_ConfigLoader)
    except yaml.YAMLError as exc:
        raise _invalid(source, "yaml", exc) from exc
    return _ensure_mapping({} if loaded is None else loaded, source=source, fmt="yaml")


def parse_json(data: bytes, *, source: str) -> Mapping[str, object]:
    """Parse JSON *data*.

    Examples
    --------
    >>> parse_json(b'{"enabled": true}', source="inline")
    {'enabled': True}
    """

    try:
        loaded = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise _invalid(source, "json", exc) from exc
    return _ensure_mapping(loaded, source=source, fmt="json")


def parse_toml(data: bytes, *, source: str) -> Mapping[str, object]:
    """Parse TOML *data* (UTF-8); dates and times become ISO 8601 strings.

    Examples
    --------
    >>> parse_toml(b"released = 2024-01-01T10:00:00\\n", source="inline")
    {'released': '2024-01-01T10:00:00'}
    """

    try:
        loaded = tomllib.loads(data.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise _invalid(source, "toml", exc) from exc
    return _ensure_mapping(loaded, source=source, fmt="toml")


PARSERS: Final[dict[str, DocumentParser]] = {
    "yaml": parse_yaml,
    "yml": parse_yaml,
    "json": parse_json,
    "toml": parse_toml,
}


def parser_for(fmt: str | None, *, path: str | None = None) -> DocumentParser:
    """Return the parser for *fmt*, falling back to the suffix of *path*.

    Raises
    ------
    ValueError
        When neither the format nor the suffix names a supported parser. This
        is a programming error in the caller's wiring, not a source failure.

    Examples
    --------
    >>> parser_for(None, path="/etc/app/config.yml") is parse_yaml
    True
    >>> parser_for("JSON") is parse_json
    True
    """

    name = fmt or (PurePath(path).suffix if path else "")
    parser = PARSERS.get(name.lower().lstrip("."))
    if parser is None:
        raise ValueError(f"unsupported document format {name!r}; expected one of {', '.join(sorted(PARSERS))}")
    return parser


def parse_document(data: bytes, *, source: str, parser: DocumentParser) -> Mapping[str, object]:
    """Run *parser* over *data*, logging the outcome for *source*."""

    result = parser(data, source=source)
    log_debug("document_parsed", source=source, keys=len(result))
    return result


def _ensure_mapping(data: object, *, source: str, fmt: str) -> Mapping[str, object]:
    """Return *data* as a value tree, otherwise raise :class:`ParseFailure`.

    The root must be a mapping and every mapping key a string. Date and time
    values become ISO 8601 strings; any other value outside the tree model
    (YAML sets, binary data) is rejected.
    """

    if not isinstance(data, Mapping):
        raise _invalid(source, fmt, f"document root must be a mapping, got {type(data).__name__}")
    return _to_tree(data, source=source, fmt=fmt)


def _to_tree(node: Any, *, source: str, fmt: str) -> Any:
    if isinstance(node, Mapping):
        tree: dict[str, Any] = {}
        for key, value in node.items():
            if not isinstance(key, str):
                raise _invalid(source, fmt, f"mapping keys must be strings, got {key!r}")
            tree[key] = _to_tree(value, source=source, fmt=fmt)
        return tree
    if isinstance(node, list):
        return [_to_tree(item, source=source, fmt=fmt) for item in node]
    if isinstance(node, (datetime.date, datetime.time)):
        return node.isoformat()
    if node is None or isinstance(node, (bool, int, float, str)):
        return node
    raise _invalid(source, fmt, f"unsupported value of type {type(node).__name__}")


def _invalid(source: str, fmt: str, error: object) -> ParseFailure:
    log_error("document_invalid", source=source, format=fmt, error=str(error))
    return ParseFailure(source, str(error))
