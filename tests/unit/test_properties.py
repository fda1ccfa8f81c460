from __future__ import annotations

import logging
from typing import Any, Dict

import pytest

from confighub.errors import DecodeError, TypeMismatchError
from confighub.properties import Properties


def _payload() -> Dict[str, Any]:
    return {
        "db.port": {"type": "Integer", "val": 3306},
        "db.host": {"val": "db1.internal"},
        "db.password": {"type": "Text", "encryption": "Secrets", "val": "gAAAAABk-cipher"},
        "feature.on": {"type": "Boolean", "val": True},
        "old.timeout": {"type": "Long", "deprecated": True, "val": 30000},
        "ratio": {"type": "Double", "val": 0.75},
        "countries": {"type": "List", "val": ["US", "UK", "BA"]},
        "limits": {"type": "Map", "val": {"cpu": "2", "mem": "4g"}},
    }


def _decoded() -> Properties:
    props = Properties()
    props.decode(_payload())
    return props


def test_decode_integer_scenario():
    props = Properties()
    props.decode({"db.port": {"type": "Integer", "val": 3306}})

    assert props.get_integer("db.port") == 3306
    assert props.get_long("db.port") == 3306
    assert props.get("db.port") == "3306"
    assert props.is_deprecated("db.port") is False
    assert props.is_integer("db.port") is True
    assert props.is_long("db.port") is False


def test_boolean_scenario_rejects_integer_read():
    props = Properties()
    props.decode({"flag": {"type": "Boolean", "val": True}})
    with pytest.raises(TypeMismatchError):
        props.get_integer("flag")


def test_absent_keys_return_defaults_or_none():
    props = _decoded()
    assert props.get("nope") is None
    assert props.get("nope", "x") == "x"
    assert props.get_boolean("nope", True) is True
    assert props.get_integer("nope", 7) == 7
    assert props.get_long("nope") is None
    assert props.get_double("nope", 1.5) == 1.5
    assert props.get_float("nope") is None
    assert props.get_list("nope", ["a"]) == ["a"]
    assert props.get_map("nope", {}) == {}
    assert props.get_encryption_group("nope") is None
    assert props.is_text("nope") is False


def test_typed_accessors_on_decoded_table():
    props = _decoded()
    assert props.get("db.host") == "db1.internal"
    assert props.get_boolean("feature.on") is True
    assert props.get_double("ratio") == 0.75
    assert props.get_integer("ratio") == 0
    assert props.get_list("countries") == ["US", "UK", "BA"]
    assert props.get_map("limits") == {"cpu": "2", "mem": "4g"}
    assert props.is_list("countries") is True
    assert props.is_map("countries") is False
    assert props.keys() == set(_payload())
    assert len(props) == 8
    assert "db.port" in props


def test_looked_up_values_cannot_change_the_table():
    props = _decoded()
    limits = props.lookup("limits")
    with pytest.raises(TypeError):
        limits.value["cpu"] = "99"
    props.get_map("limits")["cpu"] = "99"
    props.get_list("countries").append("FR")
    assert props.get_map("limits") == {"cpu": "2", "mem": "4g"}
    assert props.get_list("countries") == ["US", "UK", "BA"]
    assert len({props.lookup(key) for key in props.keys()}) == 8


def test_encrypted_value_stays_opaque_text():
    props = _decoded()
    assert props.is_text("db.password")
    assert props.get("db.password") == "gAAAAABk-cipher"
    assert props.get_encryption_group("db.password") == "Secrets"
    assert props.get_encryption_group("db.host") is None


def test_deprecated_read_logs_warning(caplog):
    props = _decoded()
    caplog.set_level(logging.WARNING, logger="confighub.properties")

    assert props.is_deprecated("old.timeout") is True
    assert not caplog.records  # the flag check itself is silent

    assert props.get_long("old.timeout") == 30000
    assert any("Deprecated property 'old.timeout'" in r.getMessage() for r in caplog.records)


def test_unknown_type_is_skipped_with_warning(caplog):
    caplog.set_level(logging.WARNING, logger="confighub.properties")
    props = Properties()
    props.decode({"a": {"type": "Timestamp", "val": "2024"}, "b": {"val": "ok"}})

    assert props.keys() == {"b"}
    assert any("unknown type 'Timestamp'" in r.getMessage() for r in caplog.records)


def test_failed_decode_keeps_previous_table():
    props = _decoded()
    with pytest.raises(DecodeError):
        props.decode({"good": {"val": "x"}, "bad": {"type": "Integer", "val": "not-a-number"}})

    assert props.get_integer("db.port") == 3306
    assert "good" not in props


@pytest.mark.parametrize(
    "payload",
    [
        {"a": "not-an-object"},
        {"a": {"type": 5, "val": "x"}},
        {"a": {"type": "Map", "val": "x"}},
        ["not", "an", "object"],
    ],
)
def test_malformed_payloads_raise_decode_error(payload):
    with pytest.raises(DecodeError):
        Properties().decode(payload)


def test_decode_replaces_rather_than_merges():
    props = _decoded()
    props.decode({"only": {"val": "one"}})
    assert props.keys() == {"only"}
    props.decode(None)
    assert len(props) == 0
