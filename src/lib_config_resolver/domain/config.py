"""Domain-level configuration value objects.

Purpose
-------
Anchor the immutable :class:`Config` mapping returned when a schema has no
``target`` type, and the :class:`SourceInfo` provenance record produced by the
merge engine. This module contains no I/O.

Contents
--------
* :class:`SourceInfo` – which provider (and source location) supplied a key.
* :class:`Config` – read-only ``Mapping`` with dotted lookups and provenance.
* :data:`EMPTY_CONFIG` – canonical empty instance.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterator, TypedDict

from .tree import clone_tree, lookup_path, merge


class SourceInfo(TypedDict):
    """Describe the origin of a resolved configuration key.

    Attributes
    ----------
    layer:
        Name of the provider that supplied the value (``"defaults"``,
        ``"file:/etc/app.yaml"``, ``"environment"``, ...).
    path:
        Source location (file path, buffer label) or ``None`` for in-memory
        and environment providers.
    key:
        Fully qualified dotted key, e.g. ``"db.port"``.
    """

    layer: str
    path: str | None
    key: str


@dataclass(frozen=True, slots=True)
class Config(Mapping[str, Any]):
    """Immutable mapping holding a decoded configuration and its provenance.

    Examples
    --------
    >>> cfg = Config(
    ...     {"db": {"host": "x", "port": 5433}},
    ...     {"db.port": {"layer": "override", "path": None, "key": "db.port"}},
    ... )
    >>> cfg.get("db.port")
    5433
    >>> cfg.origin("db.port")["layer"]
    'override'
    >>> cfg.with_overrides({"db": {"port": 1}}).get("db.host")
    'x'
    """

    _data: Mapping[str, Any]
    _meta: Mapping[str, SourceInfo]

    def __post_init__(self) -> None:
        object.__setattr__(self, "_data", MappingProxyType(clone_tree(self._data)))
        object.__setattr__(self, "_meta", MappingProxyType(dict(self._meta)))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def as_dict(self) -> dict[str, Any]:
        """Return a deep, mutable copy of the configuration tree."""

        return clone_tree(self._data)

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise the configuration to compact JSON.

        Values that JSON cannot express natively (``timedelta`` produced by
        duration fields) are rendered with ``str``.

        Examples
        --------
        >>> Config({"service": {"timeout": 5}}, {}).to_json()
        '{"service":{"timeout":5}}'
        """

        return json.dumps(self.as_dict(), indent=indent, separators=(",", ":"), ensure_ascii=False, default=str)

    def get(self, key: str, default: Any = None) -> Any:  # type: ignore[override]
        """Resolve *key* as a dotted path, returning *default* when missing."""

        return lookup_path(self._data, key, default)

    def origin(self, key: str) -> SourceInfo | None:
        """Return provenance for *key* or ``None`` when no provider produced it."""

        return self._meta.get(key)

    def provenance(self) -> dict[str, SourceInfo]:
        """Return a copy of the complete provenance table."""

        return dict(self._meta)

    def with_overrides(self, overrides: Mapping[str, Any]) -> Config:
        """Return a new :class:`Config` with *overrides* deep-merged on top.

        Provenance is kept as-is; overridden keys are not re-attributed.
        """

        return Config(merge(self._data, overrides), self._meta)


EMPTY_CONFIG = Config(MappingProxyType({}), MappingProxyType({}))
"""Shared empty configuration; safe to reuse because :class:`Config` is immutable."""
