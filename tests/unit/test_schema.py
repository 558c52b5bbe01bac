from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, make_dataclass
from datetime import timedelta
from typing import Optional

import pytest

from lib_config_resolver.domain.schema import MISSING, Field, Schema


@dataclass(frozen=True)
class Database:
    host: str
    port: int = 5432


@dataclass(frozen=True)
class Service:
    database: Database
    name: str
    debug: bool = False
    ratio: float = 0.5
    tags: list[str] = field(default_factory=list)
    labels: dict[str, int] = field(default_factory=dict)
    timeout: timedelta = timedelta(seconds=30)
    token: Optional[str] = None
    extra: str | None = None


def test_from_dataclass_maps_annotations() -> None:
    schema = Schema.from_dataclass(Service)
    by_name = {item.name: item for item in schema.fields}

    assert [item.name for item in schema.fields][:2] == ["database", "name"]
    assert isinstance(by_name["database"].type, Schema)
    assert by_name["database"].type.target is Database
    assert by_name["name"].type == "string" and by_name["name"].default is MISSING
    assert by_name["debug"].type == "boolean" and by_name["debug"].default is False
    assert by_name["ratio"].type == "float"
    assert (by_name["tags"].type, by_name["tags"].items, by_name["tags"].default) == ("sequence", "string", [])
    assert (by_name["labels"].type, by_name["labels"].items) == ("mapping", "integer")
    assert by_name["timeout"].type == "seconds"
    assert by_name["token"].nullable and by_name["token"].type == "string"
    assert by_name["extra"].nullable
    assert schema.target is Service


def test_from_dataclass_rejects_plain_classes() -> None:
    with pytest.raises(TypeError):
        Schema.from_dataclass(object)


def test_field_rejects_unknown_tag() -> None:
    with pytest.raises(ValueError, match="unknown type tag"):
        Field("port", "int")


def test_items_only_for_collections() -> None:
    with pytest.raises(ValueError, match="items only apply"):
        Field("port", "integer", items="string")


def test_schema_rejects_duplicate_keys() -> None:
    with pytest.raises(ValueError, match="duplicate schema keys: port"):
        Schema([Field("port", "integer"), Field("listen_port", "integer", key="port")])


def test_tree_key_defaults_to_name() -> None:
    assert Field("port", "integer").tree_key == "port"
    assert Field("listen_port", "integer", key="port").tree_key == "port"
    assert Field("port", "integer").required
    assert not Field("port", "integer", default=1).required


@pytest.mark.parametrize("annotation", [tuple[str, ...], tuple[int, str], tuple])
def test_from_dataclass_rejects_tuple_annotations(annotation: object) -> None:
    hosts = make_dataclass("Hosts", [("names", annotation)], frozen=True)
    with pytest.raises(TypeError, match="tuple annotations are not supported"):
        Schema.from_dataclass(hosts)


def test_sequence_annotation_stays_supported() -> None:
    hosts = make_dataclass("Hosts", [("names", Sequence[str], field(default=()))], frozen=True)
    (names,) = Schema.from_dataclass(hosts).fields
    assert (names.type, names.items, names.default) == ("sequence", "string", ())


def test_non_empty_sequence_accepts_items() -> None:
    assert Field("hosts", "non_empty_sequence", items="string").items == "string"
