"""Decode a merged value tree into the caller's typed configuration.

Purpose
-------
This is the single place where untyped data becomes typed: every coercion
(environment strings to integers, booleans, durations) lives here so providers
stay type-agnostic.

Contents
    - ``decode``: public entry point.
    - ``_Decoder``: depth-first, declaration-order walk carrying strictness and
      provenance.
    - ``_CONVERTERS``: one small function per scalar type tag.

System Role
-----------
Called by :func:`lib_config_resolver.core.resolve_config` after the merge
engine. The first failure of the walk is raised; nothing partial is returned.
"""

from __future__ import annotations

import copy
import math
import re
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Callable, Final
from urllib.parse import urlsplit

from ..domain.config import Config, SourceInfo
from ..domain.errors import MissingField, TypeMismatch, UnknownField
from ..domain.schema import FieldType, Schema
from ..domain.tree import kind_of

_INTEGER_PATTERN: Final = re.compile(r"[+-]?\d+")
LOG_LEVELS: Final[tuple[str, ...]] = ("off", "error", "warn", "info", "debug", "trace")


def decode(
    tree: Mapping[str, Any],
    schema: Schema,
    *,
    strict: bool,
    provenance: Mapping[str, SourceInfo] | None = None,
) -> Any:
    """Validate *tree* against *schema* and build the typed result.

    Why
    ----
    Callers need either a fully valid configuration or a precise error; the
    walk order is fixed by the schema so the same input always reports the
    same first error.

    What
    ----
    For each declared field (in declaration order): missing without default
    raises :class:`MissingField`; an unconvertible value raises
    :class:`TypeMismatch`; nested schemas recurse immediately. After the
    declared fields of a mapping, strict mode rejects the first undeclared key
    (in tree order) with :class:`UnknownField`. Lax mode ignores such keys.

    Parameters
    ----------
    tree:
        Merged value tree.
    schema:
        Field declarations; ``schema.target`` builds the result when set.
    strict:
        Whether undeclared keys are errors.
    provenance:
        Optional ``dotted key → SourceInfo`` table used to name the provider
        behind a bad value.

    Returns
    -------
    Any
        ``schema.target(**values)`` or, without a target, an immutable
        :class:`Config` carrying *provenance*.

    Examples
    --------
    >>> from lib_config_resolver.domain.schema import Field
    >>> schema = Schema([Field("port", "integer")])
    >>> decode({"port": "5432"}, schema, strict=True).get("port")
    5432
    >>> decode({"port": "abc"}, schema, strict=True)
    Traceback (most recent call last):
    ...
    lib_config_resolver.domain.errors.TypeMismatch: port: expected integer, found string
    """

    meta = provenance or {}
    values = _Decoder(strict=strict, provenance=meta).decode_schema(tree, schema, "")
    if schema.target is not None:
        return values
    return Config(values, meta)


class _Reject(Exception):
    """Internal signal that a converter cannot accept a value."""

    def __init__(self, found: str) -> None:
        super().__init__(found)
        self.found = found


class _Decoder:
    def __init__(self, *, strict: bool, provenance: Mapping[str, SourceInfo]) -> None:
        self._strict = strict
        self._provenance = provenance

    def decode_schema(self, node: Mapping[str, Any], schema: Schema, path: str) -> Any:
        values: dict[str, Any] = {}
        for field in schema.fields:
            key = field.tree_key
            child_path = _join(path, key)
            if key in node:
                values[field.name] = self.decode_value(node[key], field.type, field.items, field.nullable, child_path)
            elif not field.required:
                values[field.name] = copy.deepcopy(field.default)
            elif isinstance(field.type, Schema):
                values[field.name] = self.decode_schema({}, field.type, child_path)
            else:
                raise MissingField(child_path)
        if self._strict:
            declared = schema.keys()
            for key in node:
                if key not in declared:
                    unknown = _join(path, key)
                    raise UnknownField(unknown, provider=self._provider_of(unknown))
        if schema.target is None:
            return values
        return schema.target(**values)

    def decode_value(
        self,
        value: Any,
        field_type: FieldType,
        items: FieldType | None,
        nullable: bool,
        path: str,
    ) -> Any:
        if value is None and (nullable or field_type == "any"):
            return None
        if isinstance(field_type, Schema):
            if not isinstance(value, Mapping):
                raise self._mismatch(path, "mapping", kind_of(value))
            return self.decode_schema(value, field_type, path)
        if field_type == "sequence":
            return self._decode_sequence(value, items, path)
        if field_type == "non_empty_sequence":
            if isinstance(value, (list, tuple)) and not value:
                raise self._mismatch(path, field_type, "empty sequence")
            return self._decode_sequence(value, items, path, expected=field_type)
        if field_type == "mapping":
            return self._decode_mapping(value, items, path)
        try:
            return _CONVERTERS[field_type](value)
        except _Reject as rejected:
            raise self._mismatch(path, field_type, rejected.found) from None

    def _decode_sequence(
        self, value: Any, items: FieldType | None, path: str, *, expected: str = "sequence"
    ) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            raise self._mismatch(path, expected, kind_of(value))
        if items is None:
            return list(value)
        return [self.decode_value(item, items, None, False, _join(path, str(index))) for index, item in enumerate(value)]

    def _decode_mapping(self, value: Any, items: FieldType | None, path: str) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            raise self._mismatch(path, "mapping", kind_of(value))
        if items is None:
            return dict(value)
        return {key: self.decode_value(item, items, None, False, _join(path, key)) for key, item in value.items()}

    def _mismatch(self, path: str, expected: str, found: str) -> TypeMismatch:
        return TypeMismatch(path, expected, found, provider=self._provider_of(path))

    def _provider_of(self, path: str) -> str | None:
        """Return the provider behind *path*: exact key, nearest ancestor, then first descendant."""

        candidate = path
        while candidate:
            info = self._provenance.get(candidate)
            if info is not None:
                return info["layer"]
            candidate = candidate.rpartition(".")[0]
        prefix = path + "."
        for key, info in self._provenance.items():
            if key.startswith(prefix):
                return info["layer"]
        return None


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    raise _Reject(kind_of(value))


def _to_integer(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and _INTEGER_PATTERN.fullmatch(value.strip()):
        return int(value.strip())
    raise _Reject(kind_of(value))


def _to_float(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise _Reject(kind_of(value))


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise _Reject(kind_of(value))


def _duration(unit: str) -> Callable[[Any], timedelta]:
    def convert(value: Any) -> timedelta:
        amount = _to_float(value)
        if not math.isfinite(amount) or amount < 0:
            raise _Reject(f"negative {kind_of(value)}")
        return timedelta(**{unit: amount})

    return convert


def _to_log_level(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in LOG_LEVELS:
        return value.strip().lower()
    raise _Reject(kind_of(value))


def _to_non_empty_string(value: Any) -> str:
    text = _to_string(value)
    if not text:
        raise _Reject("empty string")
    return text


def _to_trimmed_non_empty_string(value: Any) -> str:
    """Strip surrounding whitespace, then reject what is left if empty.

    Examples
    --------
    >>> _to_trimmed_non_empty_string("  ops-team  ")
    'ops-team'
    """

    text = _to_string(value).strip()
    if not text:
        raise _Reject("blank string")
    return text


_HOST_SCHEMES: Final[frozenset[str]] = frozenset({"http", "https", "ws", "wss", "ftp"})


def _to_base_url(value: Any) -> str:
    """Accept absolute hierarchical URLs and normalise the trailing slash.

    The scheme must be followed by ``//``; web schemes also need a host.
    ``file:///srv/api`` is a valid base, ``mailto:ops@example.com`` is not.

    Examples
    --------
    >>> _to_base_url("https://api.example.com/v1")
    'https://api.example.com/v1/'
    >>> _to_base_url("file:///srv/api")
    'file:///srv/api/'
    """

    if not isinstance(value, str):
        raise _Reject(kind_of(value))
    text = value.strip()
    parts = urlsplit(text)
    if not parts.scheme or not text[len(parts.scheme) + 1 :].startswith("//"):
        raise _Reject(kind_of(value))
    if parts.scheme in _HOST_SCHEMES and not parts.hostname:
        raise _Reject(kind_of(value))
    path = parts.path if parts.path.endswith("/") else parts.path + "/"
    url = f"{parts.scheme}://{parts.netloc}{path}"
    if parts.query:
        url += f"?{parts.query}"
    if parts.fragment:
        url += f"#{parts.fragment}"
    return url


_CONVERTERS: Final[dict[str, Callable[[Any], Any]]] = {
    "string": _to_string,
    "integer": _to_integer,
    "float": _to_float,
    "boolean": _to_boolean,
    "any": lambda value: value,
    "seconds": _duration("seconds"),
    "milliseconds": _duration("milliseconds"),
    "log_level": _to_log_level,
    "base_url": _to_base_url,
    "non_empty_string": _to_non_empty_string,
    "trimmed_non_empty_string": _to_trimmed_non_empty_string,
}
