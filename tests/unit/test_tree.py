"""Value tree merge rules, including randomised property checks."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from lib_config_resolver.domain.tree import assign_path, kind_of, lookup_path, merge

SCALAR = st.one_of(st.none(), st.booleans(), st.integers(), st.text(max_size=5))
VALUE = st.recursive(
    SCALAR,
    lambda children: st.one_of(
        st.lists(children, max_size=3),
        st.dictionaries(st.text(min_size=1, max_size=5), children, max_size=3),
    ),
    max_leaves=10,
)
MAPPING = st.dictionaries(st.text(min_size=1, max_size=5), VALUE, max_size=4)


def test_deep_merge_preserves_untouched_keys() -> None:
    base = {"db": {"host": "x", "port": 5432}}
    assert merge(base, {"db": {"port": 5433}}) == {"db": {"host": "x", "port": 5433}}


def test_sequences_are_replaced_not_merged() -> None:
    assert merge({"hosts": ["a", "b", "c"]}, {"hosts": ["z"]}) == {"hosts": ["z"]}


def test_kind_change_replaces_value() -> None:
    assert merge({"db": {"host": "x"}}, {"db": "sqlite://"}) == {"db": "sqlite://"}
    assert merge({"db": "sqlite://"}, {"db": {"host": "x"}}) == {"db": {"host": "x"}}
    assert merge({"flag": True}, {"flag": None}) == {"flag": None}


def test_merge_does_not_mutate_inputs() -> None:
    base = {"db": {"host": "x"}, "hosts": ["a"]}
    overlay = {"db": {"port": 1}}
    result = merge(base, overlay)
    result["db"]["host"] = "changed"
    result["hosts"].append("b")
    assert base == {"db": {"host": "x"}, "hosts": ["a"]}
    assert overlay == {"db": {"port": 1}}


@given(MAPPING)
def test_empty_overlay_is_right_identity(tree) -> None:
    assert merge(tree, {}) == tree


@given(MAPPING, MAPPING)
def test_overlay_scalars_win(base, overlay) -> None:
    merged = merge(base, overlay)
    for key, value in overlay.items():
        if not isinstance(value, dict):
            assert merged[key] == value
    for key, value in base.items():
        if key not in overlay:
            assert merged[key] == value


def test_kind_of_classifies_every_node() -> None:
    assert kind_of(True) == "boolean"
    assert kind_of(0) == "integer"
    assert kind_of(0.5) == "float"
    assert kind_of("5") == "string"
    assert kind_of(["a"]) == "sequence"
    assert kind_of({"a": 1}) == "mapping"
    assert kind_of(None) == "null"
    assert kind_of(object()) == "unknown"


def test_assign_path_rejects_scalar_collisions() -> None:
    data: dict[str, object] = {"db": "x"}
    try:
        assign_path(data, ["db", "host"], "y")
    except ValueError:
        pass
    else:  # pragma: no cover - ensure failure if no exception
        assert False, "Expected ValueError when nesting below a scalar"


def test_lookup_path_handles_missing_branches() -> None:
    tree = {"service": {"timeout": 5}}
    assert lookup_path(tree, "service.timeout") == 5
    assert lookup_path(tree, "service.timeout.unit") is None
    assert lookup_path(tree, "missing", default="fallback") == "fallback"
