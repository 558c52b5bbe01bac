"""Environment provider tests clarifying namespace rules.

The scenarios cover prefix handling, nested assignment, the no-coercion rule,
and randomised inputs.
"""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_config_resolver.adapters.providers.environment import EnvironmentProvider, default_env_prefix
from lib_config_resolver.domain.errors import ParseFailure


def test_default_env_prefix() -> None:
    assert default_env_prefix("lib-config-resolver") == "LIB_CONFIG_RESOLVER"


def test_nested_keys_keep_string_values() -> None:
    environ = {
        "APP_DB__HOST": "db.example.com",
        "APP_DB__PORT": "5432",
        "APP_FEATURE__ENABLED": "true",
        "OTHER": "ignored",
    }
    data = EnvironmentProvider("APP", environ=environ).fetch()
    assert data == {"db": {"host": "db.example.com", "port": "5432"}, "feature": {"enabled": "true"}}


def test_single_underscore_separator() -> None:
    data = EnvironmentProvider("APP", separator="_", environ={"APP_DATABASE_HOST": "h"}).fetch()
    assert data == {"database": {"host": "h"}}


def test_prefix_with_trailing_separator() -> None:
    environ = {"SERVICE_TEST__OPTION": "a", "SERVICE_TESTX": "no"}
    data = EnvironmentProvider("SERVICE_TEST__", environ=environ).fetch()
    assert data == {"option": "a"}


def test_callable_enumeration() -> None:
    provider = EnvironmentProvider("APP", environ=lambda: iter([("APP_NAME", "demo")]))
    assert provider.fetch() == {"name": "demo"}


def test_reads_process_environment_at_fetch_time(monkeypatch: pytest.MonkeyPatch) -> None:
    provider = EnvironmentProvider("LCR_TEST")
    monkeypatch.setenv("LCR_TEST_LEVEL", "debug")
    assert provider.fetch() == {"level": "debug"}


def test_empty_mapping_is_not_replaced_by_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LCR_TEST_LEVEL", "debug")
    assert EnvironmentProvider("LCR_TEST", environ={}).fetch() == {}


def test_bare_prefix_is_skipped() -> None:
    assert EnvironmentProvider("APP", environ={"APP_": "x"}).fetch() == {}


def test_conflicting_shapes_raise_parse_failure() -> None:
    environ = {"APP_DB": "sqlite://", "APP_DB__HOST": "h"}
    with pytest.raises(ParseFailure, match="APP_DB__HOST"):
        EnvironmentProvider("APP", environ=environ).fetch()


def test_empty_segment_raises_parse_failure() -> None:
    with pytest.raises(ParseFailure, match="empty path segment"):
        EnvironmentProvider("APP", environ={"APP_DB____HOST": "h"}).fetch()


NAMESPACE_KEYS = st.sampled_from(["SERVICE__TIMEOUT", "SERVICE__ENDPOINT", "LOGGING__LEVEL", "DEBUG"])
RAW_VALUES = st.sampled_from(["0", "1", "true", "3.5", "none", "debug", ""])


@given(st.dictionaries(NAMESPACE_KEYS, RAW_VALUES, max_size=4))
def test_random_namespace_maps_to_nested_strings(entries) -> None:
    environ = {f"DEMO_{key}": value for key, value in entries.items()}
    environ["IGNORED"] = "1"
    payload = EnvironmentProvider("DEMO", environ=environ).fetch()

    for key, original in entries.items():
        node = payload
        parts = key.lower().split("__")
        for part in parts[:-1]:
            node = node[part]
        assert node[parts[-1]] == original
    assert "ignored" not in payload
