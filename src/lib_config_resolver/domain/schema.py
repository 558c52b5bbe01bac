"""Schema description consumed by the decoder.

Purpose
-------
Describe the typed configuration a caller expects: which fields exist, under
which key, with which type tag, and with which default. The description is
static data; the decoder in :mod:`lib_config_resolver.application.decode`
interprets it.

Contents
--------
* :data:`MISSING` – sentinel marking a field without default.
* :data:`TYPE_TAGS` – the scalar/structured tags understood by the decoder.
* :class:`Field` – one declared field.
* :class:`Schema` – ordered fields plus an optional ``target`` constructor,
  with :meth:`Schema.from_dataclass` deriving both from a dataclass.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import types
import typing
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Final, Sequence, Union


class _Missing:
    """Sentinel type for fields without a default."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()

TYPE_TAGS: Final[frozenset[str]] = frozenset(
    {
        "string",
        "integer",
        "float",
        "boolean",
        "sequence",
        "mapping",
        "any",
        "seconds",
        "milliseconds",
        "log_level",
        "base_url",
        "non_empty_string",
        "trimmed_non_empty_string",
        "non_empty_sequence",
    }
)

FieldType = Union[str, "Schema"]


@dataclass(frozen=True, slots=True)
class Field:
    """A single declared configuration field.

    Parameters
    ----------
    name:
        Attribute / keyword name in the decoded result.
    type:
        A tag from :data:`TYPE_TAGS` or a nested :class:`Schema`.
    default:
        Value used when the key is absent. :data:`MISSING` makes the field
        required. Mutable defaults are deep-copied per resolution.
    key:
        Key inside the value tree; defaults to ``name``.
    items:
        Element type for ``sequence``/``non_empty_sequence`` fields and value type for ``mapping``
        fields (tag or nested :class:`Schema`).
    nullable:
        Whether an explicit ``null`` in the tree is accepted.
    """

    name: str
    type: FieldType
    default: Any = MISSING
    key: str | None = None
    items: FieldType | None = None
    nullable: bool = False

    def __post_init__(self) -> None:
        for candidate in (self.type, self.items):
            if isinstance(candidate, str) and candidate not in TYPE_TAGS:
                raise ValueError(f"unknown type tag {candidate!r} for field {self.name!r}")
        if self.items is not None and self.type not in ("sequence", "non_empty_sequence", "mapping"):
            raise ValueError(f"field {self.name!r}: items only apply to sequence or mapping fields")

    @property
    def tree_key(self) -> str:
        return self.key if self.key is not None else self.name

    @property
    def required(self) -> bool:
        return self.default is MISSING


@dataclass(frozen=True, slots=True)
class Schema:
    """Ordered field declarations plus an optional result constructor.

    Declaration order fixes the order in which the decoder validates fields,
    and therefore which error is reported first.

    Examples
    --------
    >>> schema = Schema([Field("host", "string"), Field("port", "integer", default=5432)])
    >>> [field.name for field in schema.fields]
    ['host', 'port']
    """

    fields: Sequence[Field]
    target: Callable[..., Any] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        keys = [field.tree_key for field in self.fields]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise ValueError(f"duplicate schema keys: {', '.join(duplicates)}")

    def keys(self) -> frozenset[str]:
        return frozenset(field.tree_key for field in self.fields)

    @classmethod
    def from_dataclass(cls, target: type) -> Schema:
        """Derive a schema from the fields and type hints of a dataclass.

        Why
        ----
        Most callers already describe their configuration as a (frozen)
        dataclass; deriving the schema keeps a single source of truth.

        What
        ----
        Maps ``str``/``int``/``float``/``bool`` to the matching tags,
        ``list[X]`` to ``sequence`` with ``items``, ``dict[str, X]`` to
        ``mapping``, ``timedelta`` to ``seconds``, ``X | None`` to a nullable
        field, and nested dataclasses to nested schemas. Dataclass defaults
        and ``default_factory`` values become field defaults. ``tuple[...]``
        raises :class:`TypeError`: the decoder builds lists, so declare
        ``list[X]`` or ``Sequence[X]`` instead.

        Examples
        --------
        >>> from dataclasses import dataclass
        >>> @dataclass(frozen=True)
        ... class Database:
        ...     host: str
        ...     port: int = 5432
        >>> schema = Schema.from_dataclass(Database)
        >>> [(f.name, f.type, f.default) for f in schema.fields]
        [('host', 'string', MISSING), ('port', 'integer', 5432)]
        """

        if not dataclasses.is_dataclass(target):
            raise TypeError(f"{target!r} is not a dataclass")
        hints = typing.get_type_hints(target)
        fields: list[Field] = []
        for item in dataclasses.fields(target):
            if not item.init:
                continue
            annotation, nullable = _strip_optional(hints[item.name])
            field_type, items = _tag_for(annotation, item.name)
            fields.append(
                Field(
                    name=item.name,
                    type=field_type,
                    default=_default_of(item),
                    items=items,
                    nullable=nullable,
                )
            )
        return cls(fields, target=target)


_SCALAR_TAGS: Final[dict[Any, str]] = {
    str: "string",
    int: "integer",
    float: "float",
    bool: "boolean",
    timedelta: "seconds",
    Any: "any",
    object: "any",
}


def _strip_optional(annotation: Any) -> tuple[Any, bool]:
    """Return ``(inner, True)`` for ``X | None`` annotations."""

    if typing.get_origin(annotation) in (Union, types.UnionType):
        members = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(members) == 1 and len(typing.get_args(annotation)) == 2:
            return members[0], True
        raise TypeError(f"unsupported union annotation {annotation!r}")
    return annotation, False


def _tag_for(annotation: Any, name: str) -> tuple[FieldType, FieldType | None]:
    """Translate a type annotation into ``(type, items)``."""

    if annotation in _SCALAR_TAGS:
        return _SCALAR_TAGS[annotation], None
    if dataclasses.is_dataclass(annotation):
        return Schema.from_dataclass(annotation), None
    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin is tuple or annotation is tuple:
        raise TypeError(f"field {name!r}: tuple annotations are not supported; use list[...] or Sequence[...]")
    if origin in (list, collections.abc.Sequence):
        items = _tag_for(args[0], name)[0] if args else None
        return "sequence", items
    if origin is dict or annotation is dict:
        items = _tag_for(args[1], name)[0] if len(args) == 2 else None
        return "mapping", items
    if annotation is list:
        return "sequence", None
    raise TypeError(f"unsupported annotation {annotation!r} for field {name!r}")


def _default_of(item: dataclasses.Field[Any]) -> Any:
    if item.default is not dataclasses.MISSING:
        return item.default
    if item.default_factory is not dataclasses.MISSING:
        return item.default_factory()
    return MISSING
