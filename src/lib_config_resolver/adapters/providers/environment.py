"""Environment variable provider.

Purpose
-------
Translate environment variables into a nested value-tree fragment. The
enumeration is injectable (a mapping or a callable yielding pairs) so tests
never have to touch the real process environment.

Key behaviours
--------------
* Only keys starting with the prefix are considered; ``_`` is appended to the
  prefix when missing (``APP`` matches ``APP_...``).
* The remainder is split on the separator and lower-cased
  (``APP_DB__HOST`` → ``db.host`` with the default ``__``).
* Values stay strings; type coercion belongs to the decoder.
* Conflicting shapes (``APP_DB`` and ``APP_DB__HOST``) or empty path segments
  raise :class:`ParseFailure`.
"""

from __future__ import annotations

import os
from typing import Iterable, Mapping

from ...application.ports import EnvironSource
from ...domain.errors import ParseFailure
from ...domain.tree import assign_path
from ...observability import log_debug


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-config-resolver')
    'LIB_CONFIG_RESOLVER'
    """

    return slug.replace("-", "_").upper()


class EnvironmentProvider:
    """Provide variables that belong to the configuration namespace.

    Examples
    --------
    >>> env = {'APP_DATABASE__HOST': 'db.local', 'APP_DEBUG': 'true', 'HOME': '/root'}
    >>> EnvironmentProvider('APP', environ=env).fetch()
    {'database': {'host': 'db.local'}, 'debug': 'true'}
    >>> EnvironmentProvider('APP', separator='_', environ={'APP_DATABASE_HOST': 'x'}).fetch()
    {'database': {'host': 'x'}}
    """

    def __init__(
        self,
        prefix: str,
        *,
        separator: str = "__",
        environ: EnvironSource | None = None,
        name: str = "environment",
    ) -> None:
        if not separator:
            raise ValueError("separator must not be empty")
        self.name = name
        self.source: str | None = None
        self.prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        self.separator = separator
        self._environ = environ

    def fetch(self) -> Mapping[str, object]:
        """Return a nested mapping built from matching variables."""

        collected: dict[str, object] = {}
        for key, value in sorted(self._entries()):
            if not key.startswith(self.prefix):
                continue
            stripped = key[len(self.prefix) :]
            if not stripped:
                continue
            segments = [part.lower() for part in stripped.split(self.separator)]
            if not all(segments):
                raise ParseFailure(self.name, f"variable {key} contains an empty path segment")
            try:
                assign_path(collected, segments, value)
            except ValueError as exc:
                raise ParseFailure(self.name, f"variable {key} conflicts with another variable: {exc}") from exc
        log_debug("env_variables_loaded", provider=self.name, source=None, keys=sorted(collected))
        return collected

    def _entries(self) -> Iterable[tuple[str, str]]:
        if self._environ is None:
            return list(os.environ.items())
        if isinstance(self._environ, Mapping):
            return list(self._environ.items())
        return list(self._environ())
