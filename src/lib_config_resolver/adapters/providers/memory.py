"""In-memory providers.

Purpose
-------
Wrap caller-supplied value trees as providers: :class:`DefaultsProvider` for
baked-in defaults (lowest precedence by convention) and
:class:`OverrideProvider` for explicit or test-time overrides that must not
touch the real environment or filesystem.
"""

from __future__ import annotations

from typing import Any, Mapping

from ...domain.tree import assign_path, clone_tree, merge


class DefaultsProvider:
    """Provide a literal tree of defaults; never fails.

    Each fetch returns a fresh copy so callers cannot mutate the stored
    defaults through a resolved tree.
    """

    def __init__(self, tree: Mapping[str, Any], *, name: str = "defaults") -> None:
        self.name = name
        self.source: str | None = None
        self._tree = clone_tree(tree)

    def fetch(self) -> Mapping[str, object]:
        return clone_tree(self._tree)


class OverrideProvider(DefaultsProvider):
    """Provide explicit overrides, accepting dotted keys for nested values.

    Examples
    --------
    >>> OverrideProvider({"db.port": 5433, "debug": True}).fetch()
    {'db': {'port': 5433}, 'debug': True}
    """

    def __init__(self, tree: Mapping[str, Any], *, name: str = "override") -> None:
        super().__init__(expand_dotted(tree), name=name)


def expand_dotted(tree: Mapping[str, Any]) -> dict[str, Any]:
    """Expand top-level dotted keys (``"a.b": 1``) into nested mappings.

    Entries are merged in order, so ``{"db": {"host": "x"}, "db.port": 1}``
    keeps both keys.

    Raises
    ------
    ValueError
        When a dotted key would nest below an existing scalar.
    """

    expanded: dict[str, Any] = {}
    for key, value in tree.items():
        fragment: dict[str, Any] = {}
        assign_path(fragment, key.split("."), clone_tree(value))
        if _collides(expanded, key.split(".")):
            raise ValueError(f"override key {key!r} nests below a scalar value")
        expanded = merge(expanded, fragment)
    return expanded


def _collides(tree: Mapping[str, Any], segments: list[str]) -> bool:
    """Return whether a strict prefix of *segments* names a non-mapping value."""

    cursor: Any = tree
    for part in segments[:-1]:
        if not isinstance(cursor, Mapping) or part not in cursor:
            return False
        cursor = cursor[part]
        if not isinstance(cursor, Mapping):
            return True
    return False
