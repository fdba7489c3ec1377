from typing import Any

import pytest
from msgspec import Struct

from cloudwise.codecs import JSON_CODEC, CodecRegistry, PayloadCodec, default_codecs
from cloudwise.errors import PayloadCodecError


class Point(Struct):
    x: int
    y: int


def test_json_codec_passes_raw_text_through():
    codecs = default_codecs()
    assert codecs.encode("application/json", '{"x":1}') == b'{"x":1}'
    assert codecs.decode("application/json", b'{"x":1}', str) == '{"x":1}'


def test_json_codec_typed():
    codecs = default_codecs()
    body = codecs.encode("application/json", Point(1, 2))
    assert body == b'{"x":1,"y":2}'
    assert codecs.decode("application/json; charset=utf-8", body, Point) == Point(1, 2)
    assert codecs.decode("application/json", body, Any) == {"x": 1, "y": 2}


def test_json_codec_invalid_payload():
    codecs = default_codecs()
    with pytest.raises(PayloadCodecError):
        codecs.decode("application/json", b'{"x":', dict[str, int])


def test_json_suffix_falls_back_to_json_codec():
    codecs = default_codecs()
    assert codecs.get("application/vnd.example+json") is JSON_CODEC


def test_text_codec():
    codecs = default_codecs()
    assert codecs.encode("text/plain", "hello") == b"hello"
    assert codecs.decode("text/plain", b"hello", str) == "hello"
    with pytest.raises(PayloadCodecError):
        codecs.encode("text/plain", {"not": "text"})


def test_unknown_content_type():
    codecs = default_codecs()
    assert "text/xml" not in codecs
    with pytest.raises(PayloadCodecError, match="text/xml"):
        codecs.encode("text/xml", "<much wow/>")


def test_register_codec():
    codecs = CodecRegistry()
    codecs.register(
        PayloadCodec(
            media_type="text/xml",
            encode=lambda data: data.encode(),
            decode=lambda body, _: body.decode(),
        )
    )
    assert "text/xml" in codecs
    assert codecs.decode("text/xml", codecs.encode("text/xml", "<a/>"), str) == "<a/>"
