"""Application-layer merge engine.

Purpose
-------
Gather fragments from an ordered provider list and fold them into one value
tree while tracking which provider supplied each key. Precedence is positional:
index 0 is the lowest priority, the last provider wins.

Contents
    - ``resolve`` / ``resolve_layers``: fetch providers strictly in order and
      fold their fragments; the first failure aborts the call.
    - ``merge_layers``: fold already-fetched fragments (no I/O).
    - ``_record_provenance`` / ``_clear_branch``: keep provenance in step with
      the tree as branches are replaced.

System Role
-----------
Used by :func:`lib_config_resolver.core.resolve_config` between gathering and
decoding. Nothing here persists between calls.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Iterable, Sequence

from ..domain.config import SourceInfo
from ..domain.errors import Cancelled, ParseFailure, ProviderFailed, SourceError
from ..domain.tree import dotted_key, merge
from ..observability import log_debug, log_error, log_info, provider_event
from .ports import Provider

Provenance = dict[str, SourceInfo]


def resolve(providers: Sequence[Provider], *, cancel: threading.Event | None = None) -> dict[str, object]:
    """Fetch *providers* in order and return the merged tree.

    Examples
    --------
    >>> from lib_config_resolver.adapters.providers.memory import DefaultsProvider, OverrideProvider
    >>> resolve([DefaultsProvider({"a": 1, "b": 2}), OverrideProvider({"b": 3})])
    {'a': 1, 'b': 3}
    """

    tree, _ = resolve_layers(providers, cancel=cancel)
    return tree


def resolve_layers(
    providers: Sequence[Provider],
    *,
    cancel: threading.Event | None = None,
) -> tuple[dict[str, object], Provenance]:
    """Fetch *providers* in precedence order and fold them with provenance.

    Why
    ----
    Later providers may rely on side effects of earlier ones and the fold is
    order-significant, so fetching is sequential and the first failure wins.

    What
    ----
    For each provider: honour cancellation, call ``fetch()``, wrap any
    :class:`SourceError` in :class:`ProviderFailed`, reject non-mapping
    fragments, then fold the fragment into the accumulator.

    Parameters
    ----------
    providers:
        Ordered from lowest to highest precedence.
    cancel:
        Optional event; when set before or during a fetch the call raises
        :class:`Cancelled` and discards everything gathered so far.

    Returns
    -------
    tuple[dict[str, object], dict[str, SourceInfo]]
        ``(merged_tree, provenance)``.

    Raises
    ------
    ProviderFailed
        The first provider whose fetch failed; later providers never run.
    Cancelled
        Cancellation was requested.
    """

    merged: dict[str, object] = {}
    meta: Provenance = {}
    for provider in providers:
        _check_cancelled(cancel, provider.name)
        fragment = _fetch(provider)
        _check_cancelled(cancel, provider.name)
        merged = _fold(merged, meta, fragment, provider.name, provider.source)
        log_debug("provider_fetched", **provider_event(provider, keys=len(fragment)))
    log_info("configuration_merged", providers=len(providers), keys=len(merged))
    return merged, meta


def merge_layers(
    layers: Iterable[tuple[str, Mapping[str, object], str | None]],
) -> tuple[dict[str, object], Provenance]:
    """Merge ``(name, fragment, source)`` *layers* honouring order and provenance.

    Examples
    --------
    >>> merged, meta = merge_layers([
    ...     ("defaults", {"service": {"timeout": 5}}, None),
    ...     ("environment", {"service": {"timeout": "10"}}, None),
    ... ])
    >>> merged["service"]["timeout"], meta["service.timeout"]["layer"]
    ('10', 'environment')
    """

    merged: dict[str, object] = {}
    meta: Provenance = {}
    for name, fragment, source in layers:
        merged = _fold(merged, meta, fragment, name, source)
    return merged, meta


def _fetch(provider: Provider) -> Mapping[str, object]:
    """Call ``provider.fetch()`` translating source failures into :class:`ProviderFailed`."""

    try:
        fragment = provider.fetch()
    except SourceError as exc:
        log_error("provider_failed", **provider_event(provider, error=str(exc)))
        raise ProviderFailed(provider.name, exc) from exc
    if not isinstance(fragment, Mapping):
        error = ParseFailure(provider.name, f"fragment must be a mapping, got {type(fragment).__name__}")
        log_error("provider_failed", **provider_event(provider, error=str(error)))
        raise ProviderFailed(provider.name, error)
    return fragment


def _check_cancelled(cancel: threading.Event | None, provider: str) -> None:
    if cancel is not None and cancel.is_set():
        log_info("resolution_cancelled", provider=provider)
        raise Cancelled(provider)


def _fold(
    merged: dict[str, object],
    meta: Provenance,
    fragment: Mapping[str, object],
    layer: str,
    source: str | None,
) -> dict[str, object]:
    _record_provenance(meta, fragment, layer, source, [])
    return merge(merged, fragment)


def _record_provenance(
    meta: Provenance,
    fragment: Mapping[str, object],
    layer: str,
    source: str | None,
    segments: list[str],
) -> None:
    """Attribute every leaf of *fragment* to *layer*.

    A mapping entry only clears provenance recorded for the same key (a scalar
    it replaces); its children keep theirs unless overwritten. A leaf replaces
    the key and every descendant.
    """

    for key, value in fragment.items():
        dotted = dotted_key(segments, key)
        if isinstance(value, Mapping):
            meta.pop(dotted, None)
            _record_provenance(meta, value, layer, source, [*segments, key])
        else:
            _clear_branch(meta, dotted)
            meta[dotted] = SourceInfo(layer=layer, path=source, key=dotted)


def _clear_branch(meta: Provenance, prefix: str) -> None:
    """Remove provenance entries that belong to *prefix* or its descendants."""

    for meta_key in list(meta):
        if meta_key == prefix or meta_key.startswith(prefix + "."):
            del meta[meta_key]
