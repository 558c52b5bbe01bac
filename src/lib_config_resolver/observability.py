"""Structured logging for resolution runs.

Purpose
    Every log record emitted while resolving configuration carries the same
    ``context`` payload: the identifier of the resolution run plus the
    provider and source involved. Handlers are the host application's
    business; the package logger only has a ``NullHandler``.

Contents
    - ``RESOLUTION_ID``: context variable naming the active resolution run.
    - ``get_logger``: the ``lib_config_resolver`` logger.
    - ``bind_trace_id``: bind an externally chosen identifier (e.g. a request id).
    - ``resolution_scope``: context manager that labels one resolution run.
    - ``log_debug`` / ``log_info`` / ``log_error``: structured emitters.
    - ``provider_event``: the ``provider``/``source`` fields of a provider record.

System Integration
    The merge engine, adapters, and :mod:`lib_config_resolver.core` log through
    these helpers; records expose their fields as ``record.context``.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Final, Iterator, Mapping

RESOLUTION_ID: ContextVar[str | None] = ContextVar("lib_config_resolver_resolution_id", default=None)

_LOGGER: Final[logging.Logger] = logging.getLogger("lib_config_resolver")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the package logger so applications may attach handlers."""

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind *trace_id* for subsequent records, or clear it with ``None``.

    Examples
    --------
    >>> bind_trace_id('req-7')
    >>> RESOLUTION_ID.get()
    'req-7'
    >>> bind_trace_id(None)
    """

    RESOLUTION_ID.set(trace_id)


@contextmanager
def resolution_scope(trace_id: str | None = None) -> Iterator[str]:
    """Label the records of one resolution run.

    An identifier already bound by the caller (via :func:`bind_trace_id` or an
    enclosing scope) is reused; otherwise *trace_id* or a fresh random hex id
    is bound until the block exits.

    Examples
    --------
    >>> with resolution_scope("startup") as run_id:
    ...     run_id, RESOLUTION_ID.get()
    ('startup', 'startup')
    >>> RESOLUTION_ID.get() is None
    True
    """

    current = RESOLUTION_ID.get()
    if current is not None:
        yield current
        return
    run_id = trace_id or uuid.uuid4().hex
    token = RESOLUTION_ID.set(run_id)
    try:
        yield run_id
    finally:
        RESOLUTION_ID.reset(token)


def log_debug(message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    _emit(logging.INFO, message, fields)


def log_error(message: str, **fields: Any) -> None:
    _emit(logging.ERROR, message, fields)


def provider_event(provider: Any, **fields: Any) -> dict[str, Any]:
    """Return the structured fields describing *provider*, plus *fields*.

    Examples
    --------
    >>> from types import SimpleNamespace
    >>> provider_event(SimpleNamespace(name='environment', source=None), keys=3)
    {'provider': 'environment', 'source': None, 'keys': 3}
    """

    event: dict[str, Any] = {"provider": provider.name, "source": getattr(provider, "source", None)}
    event.update(fields)
    return event


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    if not _LOGGER.isEnabledFor(level):
        return
    context = {"trace_id": RESOLUTION_ID.get()}
    context.update(fields)
    _LOGGER.log(level, message, extra={"context": context})
