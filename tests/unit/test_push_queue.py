from __future__ import annotations

import json
from decimal import Decimal
from typing import List, Optional

import httpx
import pytest

from confighub.errors import TransportError, UnsupportedValueTypeError
from confighub.push_queue import PushQueue, ValueDataType
from confighub.transport import TransportResponse


class FakeSession:
    def __init__(self, response: Optional[TransportResponse] = None, exc: Optional[Exception] = None) -> None:
        self.response = response or TransportResponse(200, "", httpx.Headers({"ETag": "rev-1"}))
        self.exc = exc
        self.bodies: List[str] = []

    def send_push(self, body: str) -> TransportResponse:
        self.bodies.append(body)
        if self.exc is not None:
            raise self.exc
        return self.response


def test_key_is_get_or_create():
    q = PushQueue(FakeSession())
    assert q.key("a") is q.key("a")
    assert q.pending_keys() == ["a"]


def test_values_only_key_has_no_attribute_fields():
    q = PushQueue(FakeSession())
    q.key("k").set_value("DEBUG", "*;App")

    encoded = q.encode()
    assert encoded == {
        "data": [
            {"key": "k", "values": [{"context": "*;App", "active": True, "value": "DEBUG"}]}
        ]
    }


def test_same_context_overwrites_previous_value():
    q = PushQueue(FakeSession())
    q.key("k").set_value("DEBUG", "*;App").set_value("WARN", "*;App", active=False)

    values = q.encode()["data"][0]["values"]
    assert values == [{"context": "*;App", "active": False, "value": "WARN"}]


def test_two_contexts_give_two_values():
    q = PushQueue(FakeSession())
    q.key("k").set_value("DEBUG", "*;App").set_value("INFO", "Dev;App")

    values = q.encode()["data"][0]["values"]
    assert len(values) == 2
    assert sorted(v["context"] for v in values) == ["*;App", "Dev;App"]


def test_attributes_are_sent_as_text():
    q = PushQueue(FakeSession())
    (
        q.key("unittest.count.total")
        .set_readme("Counts for some totals")
        .enable_push()
        .deprecate()
        .set_value_data_type(ValueDataType.INTEGER)
        .set_security_group("Secrets", "s3cret")
        .set_value(32, "Development;UnitTest")
    )

    entry = q.encode()["data"][0]
    assert entry["readme"] == "Counts for some totals"
    assert entry["push"] == "true"
    assert entry["deprecated"] == "true"
    assert entry["vdt"] == "Integer"
    assert entry["securityGroup"] == "Secrets"
    assert entry["password"] == "s3cret"
    assert entry["values"][0]["value"] == "32"


def test_attribute_setters_overwrite():
    q = PushQueue(FakeSession())
    q.key("k").enable_push().disable_push().deprecate().not_deprecated().set_value_data_type("List")

    entry = q.encode()["data"][0]
    assert entry == {"key": "k", "push": "false", "deprecated": "false", "vdt": "List"}


def test_value_shapes_are_encoded():
    q = PushQueue(FakeSession())
    countries = ["US", "UK"]
    (
        q.key("k")
        .set_value(countries, "a")
        .set_value({"cpu": "2"}, "b")
        .set_value(True, "c")
        .set_value(2.5, "d")
        .set_value(Decimal("1.10"), "e")
        .set_value(("x", "y"), "f")
    )
    countries.append("BA")  # later caller mutation is not queued

    by_ctx = {v["context"]: v["value"] for v in q.encode()["data"][0]["values"]}
    assert by_ctx == {
        "a": ["US", "UK"],
        "b": {"cpu": "2"},
        "c": "true",
        "d": "2.5",
        "e": "1.10",
        "f": ["x", "y"],
    }


@pytest.mark.parametrize("value", [None, object(), {"a"}, [1, 2], {"a": 1}, b"raw"])
def test_unsupported_values_are_rejected(value):
    q = PushQueue(FakeSession())
    with pytest.raises(UnsupportedValueTypeError):
        q.key("k").set_value(value, "*")


def test_invalid_value_data_type_is_rejected():
    q = PushQueue(FakeSession())
    with pytest.raises(ValueError):
        q.key("k").set_value_data_type("Timestamp")


def test_top_level_flags():
    q = PushQueue(FakeSession())
    q.key("k").set_value("v", "*")
    assert "enableKeyCreation" not in q.encode()
    assert "changeComment" not in q.encode()

    q.enable_key_creation()
    q.set_change_comment("bump")
    encoded = q.encode()
    assert encoded["enableKeyCreation"] is True
    assert encoded["changeComment"] == "bump"

    q.disable_key_creation()
    assert "enableKeyCreation" not in q.encode()


def test_flush_sends_and_clears():
    session = FakeSession()
    q = PushQueue(session)
    q.key("k").set_value("v", "*")

    resp = q.flush()

    assert resp.status_code == 200
    assert resp.ok
    assert resp.message == "rev-1"
    assert json.loads(session.bodies[0])["data"][0]["key"] == "k"
    assert len(q) == 0


def test_flush_clears_even_when_transport_fails():
    session = FakeSession(exc=TransportError("connection refused"))
    q = PushQueue(session)
    q.key("k").set_value("v", "*")

    resp = q.flush()

    assert resp.status_code == 0
    assert resp.ok is False
    assert "connection refused" in (resp.message or "")
    assert len(q) == 0


def test_flush_reports_rejection_status():
    session = FakeSession(response=TransportResponse(400, "Key 'k' does not exist"))
    q = PushQueue(session)
    q.key("k").set_value("v", "*")

    resp = q.flush()

    assert resp.status_code == 400
    assert resp.message == "Key 'k' does not exist"
    assert len(q) == 0


def test_clear_discards_without_sending():
    session = FakeSession()
    q = PushQueue(session)
    q.key("k").set_value("v", "*")
    q.clear()
    assert len(q) == 0
    assert session.bodies == []
