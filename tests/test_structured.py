from typing import Any

import pytest
from msgspec import json

from cloudwise import CloudEvent, HTTPBinding
from cloudwise.errors import (
    AttributeValidationError,
    PayloadCodecError,
    StructuredFormatError,
)
from tests.conftest import TRACEPARENT

HEADERS = {"Content-Type": "application/cloudevents+json"}


def test_document_shape(json_binding: HTTPBinding[Any], full_event: CloudEvent):
    document = json.decode(json_binding.encode(full_event, binary=False).body)
    assert document == {
        "eventID": "A234-1234-1234",
        "source": "https://github.com/cloudevents/spec/pull",
        "eventType": "com.github.pull_request.opened",
        "cloudEventsVersion": "0.1",
        "eventTime": "2018-04-05T17:31:00Z",
        "schemaURL": "https://example.com/schema.json",
        "contentType": "application/json",
        "extensions": {
            "traceparent": TRACEPARENT,
            "tracestate": "rojo=00f067aa0ba902b7",
        },
        "data": {"comment": "much wow", "lines": 3},
    }


def test_headers_are_ignored(json_binding: HTTPBinding[Any], full_event: CloudEvent):
    wire = json_binding.encode(full_event, binary=False)
    headers = {**HEADERS, "CE-EventID": "other", "CE-X-traceparent": "other"}
    assert json_binding.decode(headers, wire.body) == full_event


def test_decode_without_data(binding: HTTPBinding[str]):
    body = b'{"eventID": "1", "source": "/s", "eventType": "t", "cloudEventsVersion": "0.1"}'
    event = binding.decode(HEADERS, body)
    assert event.data is None
    assert event.extensions == {}


def test_object_data_into_str_binding(binding: HTTPBinding[str]):
    body = json.encode(
        {
            "eventID": "1",
            "source": "/s",
            "eventType": "t",
            "cloudEventsVersion": "0.1",
            "data": {"x": 1},
        }
    )
    assert binding.decode(HEADERS, body).data == '{"x":1}'


def test_bytes_data_round_trip():
    binding = HTTPBinding(bytes)
    event = (
        binding.builder()
        .attributes(id="1", source="/s", type="t", contenttype="application/octet-stream")
        .data(b"\x00\x01binary")
        .build()
    )
    wire = binding.encode(event, binary=False)
    assert binding.decode(wire.headers, wire.body) == event


def test_not_json(binding: HTTPBinding[str]):
    with pytest.raises(StructuredFormatError):
        binding.decode(HEADERS, b"<much wow/>")


def test_not_an_object(binding: HTTPBinding[str]):
    with pytest.raises(StructuredFormatError, match="object"):
        binding.decode(HEADERS, b"[1, 2]")


def test_extensions_not_an_object(binding: HTTPBinding[str]):
    body = json.encode(
        {
            "eventID": "1",
            "source": "/s",
            "eventType": "t",
            "cloudEventsVersion": "0.1",
            "extensions": "nope",
        }
    )
    with pytest.raises(StructuredFormatError, match="extensions"):
        binding.decode(HEADERS, body)


def test_missing_attribute(binding: HTTPBinding[str]):
    with pytest.raises(AttributeValidationError, match="id"):
        binding.decode(HEADERS, b'{"source": "/s", "eventType": "t", "cloudEventsVersion": "0.1"}')


def test_wrongly_typed_attribute(binding: HTTPBinding[str]):
    body = b'{"eventID": 1, "source": "/s", "eventType": "t", "cloudEventsVersion": "0.1"}'
    with pytest.raises(AttributeValidationError):
        binding.decode(HEADERS, body)


def test_data_of_wrong_type():
    binding = HTTPBinding(dict[str, int])
    body = json.encode(
        {
            "eventID": "1",
            "source": "/s",
            "eventType": "t",
            "cloudEventsVersion": "0.1",
            "data": {"x": "1"},
        }
    )
    with pytest.raises(PayloadCodecError):
        binding.decode(HEADERS, body)
