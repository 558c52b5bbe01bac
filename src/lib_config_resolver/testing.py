"""Test harness providers that keep resolution scenarios observable.

Purpose
    Give test suites deterministic building blocks for precedence and failure
    scenarios without touching the real environment or filesystem.

Contents
    - ``CountingProvider``: wraps another provider and counts ``fetch()`` calls.
    - ``FailingProvider``: always raises the supplied :class:`SourceError`.

System Integration
    Pair with :class:`lib_config_resolver.adapters.providers.memory.OverrideProvider`
    to inject overrides, and with ``CountingProvider`` to assert that later
    providers never run after an earlier one fails.
"""

from __future__ import annotations

from typing import Mapping

from .application.ports import Provider
from .domain.errors import SourceError


class CountingProvider:
    """Delegate to *inner* while recording how often it was fetched.

    Examples
    --------
    >>> from lib_config_resolver.adapters.providers.memory import DefaultsProvider
    >>> counted = CountingProvider(DefaultsProvider({"a": 1}))
    >>> counted.fetch(), counted.calls
    ({'a': 1}, 1)
    """

    def __init__(self, inner: Provider) -> None:
        self.inner = inner
        self.name = inner.name
        self.source = inner.source
        self.calls = 0

    def fetch(self) -> Mapping[str, object]:
        self.calls += 1
        return self.inner.fetch()


class FailingProvider:
    """Raise *error* on every fetch.

    Examples
    --------
    >>> from lib_config_resolver.domain.errors import NotFound
    >>> FailingProvider(NotFound("gone"), name="broken").fetch()
    Traceback (most recent call last):
    ...
    lib_config_resolver.domain.errors.NotFound: gone
    """

    def __init__(self, error: SourceError, *, name: str = "failing") -> None:
        self.error = error
        self.name = name
        self.source: str | None = None
        self.calls = 0

    def fetch(self) -> Mapping[str, object]:
        self.calls += 1
        raise self.error
