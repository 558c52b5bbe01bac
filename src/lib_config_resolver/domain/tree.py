"""Value tree helpers.

Purpose
-------
Configuration arrives untyped from documents and the environment. Until the
decoder turns it into a typed result it is held as a plain JSON-like tree:
``None``, ``bool``, ``int``, ``float``, ``str``, ``list`` and ``dict`` keyed by
strings. This module owns the operations on that representation and performs
no I/O.

Contents
--------
* :func:`kind_of` – classify a node for error messages.
* :func:`merge` – the precedence-preserving structural merge.
* :func:`assign_path` / :func:`lookup_path` – nested writes and dotted reads.
* :func:`clone_tree` – deep copy that also unwraps ``mappingproxy`` objects.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Sequence


def kind_of(value: object) -> str:
    """Return the value-tree kind of *value*.

    ``bool`` is tested before ``int`` because it is a subclass of it.

    Examples
    --------
    >>> [kind_of(v) for v in (None, True, 1, 1.5, "x", [], {})]
    ['null', 'boolean', 'integer', 'float', 'string', 'sequence', 'mapping']
    """

    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, (list, tuple)):
        return "sequence"
    return "unknown"


def merge(base: Any, overlay: Any) -> Any:
    """Merge *overlay* on top of *base* and return a new tree.

    Why
    ----
    Partial overrides (one nested field set from the environment) must not
    force a source to restate an entire nested object, while sequences stay
    atomic so there is never a question of how two lists interleave.

    What
    ----
    * both mappings: key-wise recursive merge; keys absent from *overlay*
      keep the *base* value;
    * anything else (sequences, scalars, mismatched kinds): *overlay* wins.

    Neither argument is mutated and the result shares no containers with them.

    Examples
    --------
    >>> merge({"db": {"host": "x", "port": 5432}}, {"db": {"port": 5433}})
    {'db': {'host': 'x', 'port': 5433}}
    >>> merge({"hosts": ["a", "b"]}, {"hosts": ["c"]})
    {'hosts': ['c']}
    >>> merge({"a": 1}, {})
    {'a': 1}
    """

    if isinstance(base, Mapping) and isinstance(overlay, Mapping):
        result = {key: clone_tree(value) for key, value in base.items()}
        for key, value in overlay.items():
            result[key] = merge(result[key], value) if key in result else clone_tree(value)
        return result
    return clone_tree(overlay)


def assign_path(target: dict[str, Any], segments: Sequence[str], value: Any) -> None:
    """Assign *value* at *segments* inside *target*, creating mappings on the way.

    Raises
    ------
    ValueError
        When an intermediate segment already holds a non-mapping value, or the
        final segment already holds a mapping.

    Examples
    --------
    >>> data: dict[str, object] = {}
    >>> assign_path(data, ["database", "host"], "db.local")
    >>> data
    {'database': {'host': 'db.local'}}
    """

    cursor = target
    for index, part in enumerate(segments[:-1]):
        child = cursor.setdefault(part, {})
        if not isinstance(child, dict):
            raise ValueError(f"cannot nest below scalar key {'.'.join(segments[: index + 1])}")
        cursor = child
    final = segments[-1]
    if isinstance(cursor.get(final), dict):
        raise ValueError(f"cannot override mapping with scalar for key {'.'.join(segments)}")
    cursor[final] = value


def lookup_path(source: Mapping[str, Any], dotted: str, default: Any = None) -> Any:
    """Resolve *dotted* within *source*, returning *default* when missing.

    Examples
    --------
    >>> lookup_path({"service": {"timeout": 5}}, "service.timeout")
    5
    >>> lookup_path({"service": {}}, "service.retries", default=3)
    3
    """

    current: Any = source
    for part in dotted.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


def clone_tree(value: Any) -> Any:
    """Deep-copy mappings and sequences; scalars are immutable and returned as-is.

    Tuples are cloned into lists so the tree only ever contains ``list``
    sequences.
    """

    if isinstance(value, Mapping):
        return {key: clone_tree(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [clone_tree(item) for item in value]
    return value


def dotted_key(segments: Sequence[str], key: str) -> str:
    """Join *segments* and *key* with dots."""

    return ".".join([*segments, key]) if segments else key
