"""Layered configuration resolver.

Merge configuration fragments from ordered providers (defaults, documents,
environment variables, overrides) and decode the result into a typed value,
reporting the provider and dotted key behind any failure. The stable API is
re-exported from :mod:`lib_config_resolver.core`.
"""

from __future__ import annotations

from .core import (
    CONFIG_FILE_NAMES,
    EMPTY_CONFIG,
    MISSING,
    Cancelled,
    Config,
    ConfigError,
    DefaultsProvider,
    DocumentProvider,
    EnvironmentProvider,
    Field,
    MissingField,
    NotFound,
    OverrideProvider,
    ParseFailure,
    PermissionDenied,
    Provider,
    ProviderFailed,
    ResolutionError,
    Schema,
    SourceError,
    SourceInfo,
    TypeMismatch,
    UnknownField,
    ValidationError,
    default_env_prefix,
    parse_config,
    report_resolution_error,
    resolve,
    resolve_config,
    standard_providers,
    try_parse_config,
)
from .observability import bind_trace_id, get_logger

__all__ = [
    "CONFIG_FILE_NAMES",
    "Cancelled",
    "Config",
    "ConfigError",
    "DefaultsProvider",
    "DocumentProvider",
    "EMPTY_CONFIG",
    "EnvironmentProvider",
    "Field",
    "MISSING",
    "MissingField",
    "NotFound",
    "OverrideProvider",
    "ParseFailure",
    "PermissionDenied",
    "Provider",
    "ProviderFailed",
    "ResolutionError",
    "Schema",
    "SourceError",
    "SourceInfo",
    "TypeMismatch",
    "UnknownField",
    "ValidationError",
    "bind_trace_id",
    "default_env_prefix",
    "get_logger",
    "parse_config",
    "report_resolution_error",
    "resolve",
    "resolve_config",
    "standard_providers",
    "try_parse_config",
]
