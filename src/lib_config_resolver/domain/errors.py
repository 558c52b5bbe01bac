"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by providers, the merge engine, the
decoder, and consuming applications. The hierarchy lives in the domain layer
so outer layers may depend on it without creating import cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class for all library failures.
* :class:`SourceError` and its subclasses :class:`NotFound`,
  :class:`ParseFailure`, :class:`PermissionDenied` – raised by individual
  providers during ``fetch()``.
* :class:`ResolutionError` and its subclasses :class:`ProviderFailed`,
  :class:`Cancelled`, :class:`ValidationError` (:class:`MissingField`,
  :class:`TypeMismatch`, :class:`UnknownField`) – raised to callers of the
  resolver with provider and dotted-path context attached.

System Role
-----------
Providers raise :class:`SourceError` subclasses; the merge engine wraps them in
:class:`ProviderFailed`; the decoder raises :class:`ValidationError`
subclasses. Callers catch :class:`ResolutionError` (or :class:`ConfigError`) to
treat every failure as fatal to startup.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_config_resolver``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class SourceError(ConfigError):
    """Raised by a provider when its source cannot produce a fragment."""


class NotFound(SourceError):
    """A mandatory configuration resource is absent.

    Optional resources never raise this; their providers yield an empty
    mapping instead.
    """


class ParseFailure(SourceError):
    """Raised when source content cannot be parsed into a value tree.

    Attributes
    ----------
    source:
        Human-readable source name (file path, buffer label, ``environment``).
    message:
        Underlying parser message, surfaced verbatim.

    Examples
    --------
    >>> str(ParseFailure("config.yaml", "mapping values are not allowed here"))
    'failed to parse config.yaml: mapping values are not allowed here'
    """

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        self.message = message
        super().__init__(f"failed to parse {source}: {message}")


class PermissionDenied(SourceError):
    """The source exists but cannot be read."""


class ResolutionError(ConfigError):
    """Failure of a resolution call, tagged with provider and path context.

    Why
    ----
    Operators must be able to act on a failed startup without re-running with
    extra diagnostics, so every error names the provider and the dotted key it
    concerns whenever those are known.

    Attributes
    ----------
    provider:
        Name of the provider responsible, or ``None`` (e.g. a missing field no
        provider supplied).
    path:
        Dotted key path inside the merged tree, or ``None`` for source-level
        failures.
    reason:
        Short human-readable description of the failure.

    Examples
    --------
    >>> str(ResolutionError("boom", provider="environment", path="db.port"))
    'environment: db.port: boom'
    >>> str(ResolutionError("boom"))
    'boom'
    """

    def __init__(self, reason: str, *, provider: str | None = None, path: str | None = None) -> None:
        self.reason = reason
        self.provider = provider
        self.path = path
        super().__init__(_render(provider, path, reason))


class ProviderFailed(ResolutionError):
    """A provider raised a :class:`SourceError` during ``fetch()``."""

    def __init__(self, provider: str, error: SourceError) -> None:
        self.error = error
        super().__init__(str(error), provider=provider)


class Cancelled(ResolutionError):
    """Resolution was cancelled while gathering provider fragments."""

    def __init__(self, provider: str | None = None) -> None:
        super().__init__("resolution cancelled", provider=provider)


class ValidationError(ResolutionError):
    """The merged tree does not satisfy the caller's schema."""


class MissingField(ValidationError):
    """A required field is absent and declares no default."""

    def __init__(self, path: str) -> None:
        super().__init__("missing required field", path=path)


class TypeMismatch(ValidationError):
    """A present value cannot be converted to the declared type.

    Examples
    --------
    >>> str(TypeMismatch("port", "integer", "string", provider="environment"))
    'environment: port: expected integer, found string'
    """

    def __init__(self, path: str, expected: str, found: str, *, provider: str | None = None) -> None:
        self.expected = expected
        self.found = found
        super().__init__(f"expected {expected}, found {found}", provider=provider, path=path)


class UnknownField(ValidationError):
    """Strict mode found a key the schema does not declare."""

    def __init__(self, path: str, *, provider: str | None = None) -> None:
        super().__init__("unknown field", provider=provider, path=path)


def _render(provider: str | None, path: str | None, reason: str) -> str:
    """Join the non-empty parts of an error message with ``": "``."""

    return ": ".join(part for part in (provider, path, reason) if part)
