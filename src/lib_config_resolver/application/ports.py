"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts the resolver depends on so it never imports a
concrete adapter.

Contents
--------
* :class:`Provider` – a named source producing one value-tree fragment.
* :class:`DocumentParser` – bytes in, mapping out.
* :data:`EnvironSource` – the shapes accepted as environment enumeration.

System Role
-----------
Adapters in :mod:`lib_config_resolver.adapters` implement these protocols; test
harnesses implement :class:`Provider` directly.
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, Protocol, Union, runtime_checkable

EnvironSource = Union[Mapping[str, str], Callable[[], Iterable[tuple[str, str]]]]
"""Either a mapping of variables or a callable yielding ``(name, value)`` pairs."""


@runtime_checkable
class Provider(Protocol):
    """Produce a configuration fragment from one source.

    Why
    ----
    The merge engine only needs a name for error attribution and a single
    method returning data, which keeps every source (defaults, documents,
    environment, test overrides) interchangeable.

    Attributes
    ----------
    name:
        Human-readable identifier used in errors and provenance.
    source:
        Location behind the provider (file path, buffer label) or ``None``.
    """

    name: str
    source: str | None

    def fetch(self) -> Mapping[str, object]:
        """Return the provider's fragment or raise a :class:`SourceError`."""
        ...


class DocumentParser(Protocol):
    """Parse raw document bytes into a mapping."""

    def __call__(self, data: bytes, *, source: str) -> Mapping[str, object]:
        """Return the parsed mapping or raise :class:`ParseFailure`."""
        ...
