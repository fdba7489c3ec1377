"""
Payload codecs, keyed by content type.

`decode` receives the data type the binding is parameterized with,
`str` and `bytes` targets receive the raw body untouched.
"""

from dataclasses import dataclass
from typing import Any, Iterator

from loguru import logger
from msgspec import DecodeError, EncodeError, ValidationError, json

from ._itypes import Decoder, Encoder
from .config import BINARY_MEDIA_TYPE
from .errors import PayloadCodecError
from .headers import media_type

TEXT_MEDIA_TYPE = "text/plain"


@dataclass(frozen=True, slots=True, kw_only=True)
class PayloadCodec:
    media_type: str
    encode: Encoder
    decode: Decoder


def _raw(data: Any) -> bytes | None:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode("utf-8")
    return None


def encode_json(data: Any) -> bytes:
    "strings and bytes are taken as already serialized json"
    if (raw := _raw(data)) is not None:
        return raw
    return json.encode(data)


def decode_json(body: bytes, data_type: Any) -> Any:
    if data_type is bytes:
        return body
    if data_type is str:
        return body.decode("utf-8")
    return json.decode(body, type=data_type)


def encode_text(data: Any) -> bytes:
    if (raw := _raw(data)) is None:
        raise TypeError(f"expected str or bytes, got {type(data).__name__}")
    return raw


def decode_text(body: bytes, data_type: Any) -> Any:
    if data_type is bytes:
        return body
    return body.decode("utf-8")


JSON_CODEC = PayloadCodec(media_type=BINARY_MEDIA_TYPE, encode=encode_json, decode=decode_json)
TEXT_CODEC = PayloadCodec(media_type=TEXT_MEDIA_TYPE, encode=encode_text, decode=decode_text)

CODEC_ERRORS = (EncodeError, DecodeError, ValidationError, TypeError, UnicodeError)


class CodecRegistry:
    def __init__(self, *codecs: PayloadCodec):
        self._codecs: dict[str, PayloadCodec] = {}
        for codec in codecs:
            self.register(codec)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self._codecs)})"

    def __contains__(self, content_type: object) -> bool:
        if not isinstance(content_type, str):
            return False
        try:
            self.get(content_type)
        except PayloadCodecError:
            return False
        return True

    def __iter__(self) -> Iterator[str]:
        return iter(self._codecs)

    def register(self, codec: PayloadCodec) -> PayloadCodec:
        self._codecs[codec.media_type.lower()] = codec
        return codec

    def get(self, content_type: str) -> PayloadCodec:
        """
        look up by bare media type, `+json` structured syntax suffixes
        fall back to the `application/json` codec
        """
        key = media_type(content_type) or ""
        if (codec := self._codecs.get(key)) is not None:
            return codec
        if key.endswith("+json") and (codec := self._codecs.get(BINARY_MEDIA_TYPE)):
            return codec
        raise PayloadCodecError(content_type)

    def encode(self, content_type: str, data: Any) -> bytes:
        codec = self.get(content_type)
        try:
            return codec.encode(data)
        except CODEC_ERRORS as exc:
            raise PayloadCodecError(content_type, str(exc)) from exc

    def decode(self, content_type: str, body: bytes, data_type: Any) -> Any:
        codec = self.get(content_type)
        logger.debug(f"decoding {len(body)} bytes of `{content_type}` payload")
        try:
            return codec.decode(body, data_type)
        except CODEC_ERRORS as exc:
            raise PayloadCodecError(content_type, str(exc)) from exc


def default_codecs() -> CodecRegistry:
    return CodecRegistry(JSON_CODEC, TEXT_CODEC)
