"""
Binding dispatcher, picks binary or structured handling for a message.

```py
binding = HTTPBinding(dict[str, int])

wire = binding.encode(event)  # binary by default
event = binding.decode(wire.headers, wire.body)
```
"""

from typing import Any, Literal, Mapping

from loguru import logger

from ._ds import Headers, Wire
from ._itypes import Result
from .attributes import ATTRIBUTE_KEYS, kv_to_attributes
from .codecs import CodecRegistry, default_codecs
from .config import CONTENT_LENGTH_HEADER, CONTENT_TYPE_HEADER, BindingConfig
from .errors import (
    AttributeValidationError,
    ExtensionCollisionError,
    MissingBodyError,
    PayloadCodecError,
    StructuredFormatError,
    UnsupportedContentTypeError,
)
from .event import CloudEvent, CloudEventBuilder
from .extensions import ExtensionRegistry, default_registry
from .headers import HeaderMapper, media_type
from .marshal import BinaryMarshaller
from .structured import StructuredCodec
from .unmarshal import BinaryUnmarshaller

type Mode = Literal["binary", "structured"]

type DecodeFailure = (
    UnsupportedContentTypeError
    | MissingBodyError
    | StructuredFormatError
    | AttributeValidationError
    | PayloadCodecError
)


class HTTPBinding[T]:
    """
    - data_type: the type payloads are decoded into, `str` keeps the raw text,
    `bytes` the raw body, `Any` the plain json value.
    - config: markers, default content type and binding version
    - extensions: registry of extension formats, shared read-only across messages
    - codecs: payload codecs keyed by content type
    """

    def __init__(
        self,
        data_type: type[T] | Any = str,
        *,
        config: BindingConfig | None = None,
        extensions: ExtensionRegistry | None = None,
        codecs: CodecRegistry | None = None,
    ):
        self._data_type = data_type
        self._config = config or BindingConfig()
        self._extensions = default_registry() if extensions is None else extensions
        self._codecs = codecs or default_codecs()
        self._mapper = HeaderMapper(self._config.spec)
        self.check_extensions()

        self._unmarshaller = BinaryUnmarshaller(
            data_type,
            mapper=self._mapper,
            extensions=self._extensions,
            codecs=self._codecs,
            default_content_type=self._config.default_content_type,
        )
        self._marshaller = BinaryMarshaller(
            mapper=self._mapper,
            extensions=self._extensions,
            codecs=self._codecs,
            default_content_type=self._config.default_content_type,
        )
        self._structured = StructuredCodec(
            data_type,
            mapper=self._mapper,
            extensions=self._extensions,
            media_type=self._config.structured_media_type,
        )

    def check_extensions(self) -> None:
        "an extension key must not land on a reserved header or json field"
        spec = self._config.spec
        reserved_fields: set[str] = set()
        if spec.extensions_field is None:
            reserved_fields = {name.lower() for name in spec.fields.values()}
            reserved_fields.add(spec.data_field.lower())

        reserved_headers = self._mapper.reserved_headers
        for key in self._extensions.keys:
            owner = self._extensions.owner(key) or "unknown"
            header = self._mapper.extension_header(key).lower()
            if header in reserved_headers:
                raise ExtensionCollisionError(owner, key, f"header `{header}`")
            if key in reserved_fields:
                raise ExtensionCollisionError(owner, key, f"json field `{key}`")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(data_type={self._data_type}, version={self.version})"

    @property
    def data_type(self) -> type[T] | Any:
        return self._data_type

    @property
    def config(self) -> BindingConfig:
        return self._config

    @property
    def version(self) -> str:
        return self._config.version

    @property
    def extensions(self) -> ExtensionRegistry:
        return self._extensions

    @property
    def codecs(self) -> CodecRegistry:
        return self._codecs

    @property
    def unmarshaller(self) -> BinaryUnmarshaller[T]:
        return self._unmarshaller

    @property
    def marshaller(self) -> BinaryMarshaller:
        return self._marshaller

    @property
    def structured(self) -> StructuredCodec[T]:
        return self._structured

    def builder(self) -> CloudEventBuilder:
        "events built here get the configured default content type when none is set"
        return CloudEventBuilder(
            specversion=self.version,
            default_content_type=self._config.default_content_type,
        )

    def mode_of(self, headers: Mapping[str, str]) -> Mode:
        content_type = Headers(headers).get(CONTENT_TYPE_HEADER)
        bare = media_type(content_type)
        if bare is None:
            raise UnsupportedContentTypeError(content_type)
        if bare in self._config.binary_media_types:
            return "binary"
        if bare == self._config.structured_media_type:
            return "structured"
        raise UnsupportedContentTypeError(content_type)

    def decode(
        self, headers: Mapping[str, str], body: bytes | None = None
    ) -> Result[CloudEvent, DecodeFailure]:
        "decode a fully buffered message, never returns a partially built event"
        wire = Wire(headers=Headers(headers), body=body or b"")
        mode = self.mode_of(wire.headers)
        logger.debug(f"decoding {mode} cloudevent of {wire.content_length} bytes")
        if mode == "binary":
            return self.decode_binary(wire)
        return self.decode_structured(wire.body)

    def decode_binary(self, wire: Wire) -> CloudEvent:
        return self._unmarshaller(wire)

    def decode_structured(self, body: bytes) -> CloudEvent:
        return self._structured.decode(body)

    def validate(self, event: CloudEvent) -> CloudEvent:
        "enforce attribute constraints on events that did not come from a builder"
        attributes = kv_to_attributes(
            {key: getattr(event.attributes, key) for key in ATTRIBUTE_KEYS},
            specversion=self.version,
        )
        return (
            CloudEventBuilder(specversion=self.version)
            .with_attributes(attributes)
            .data(event.data)
            .extensions(event.extensions)
            .build()
        )

    def encode(self, event: CloudEvent, *, binary: bool = True) -> Wire:
        """
        build the complete wire message, nothing is returned on failure
        so a transport never sees partial headers or body
        """
        event = self.validate(event)
        wire = self.encode_binary(event) if binary else self.encode_structured(event)
        logger.debug(
            f"encoded cloudevent `{event.id}` as {'binary' if binary else 'structured'}, "
            f"{wire.content_length} bytes"
        )
        return wire

    def encode_binary(self, event: CloudEvent) -> Wire:
        return self._marshaller(event)

    def encode_structured(self, event: CloudEvent) -> Wire:
        body = self._structured.encode(event)
        headers = Headers(
            {
                CONTENT_TYPE_HEADER: self._config.structured_media_type,
                CONTENT_LENGTH_HEADER: len(body),
            }
        )
        return Wire(headers=headers, body=body)
