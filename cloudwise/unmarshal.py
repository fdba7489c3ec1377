"""
Binary mode decoding, headers and body of a `Wire` -> `CloudEvent`

map_attribute_headers -> unmarshal_attributes -> decode_payload
  -> map_extension_headers -> unmarshal_extensions => build_event

the payload is decoded with the content type resolved by `unmarshal_attributes`
"""

from typing import Any, Final

from loguru import logger

from ._ds import Wire
from ._itypes import IContext
from .attributes import kv_to_attributes
from .codecs import CodecRegistry
from .event import CloudEvent, CloudEventBuilder
from .extensions import ExtensionRegistry
from .headers import HeaderMapper
from .pipeline import Pipeline, Stage, Terminal

ATTRIBUTES_KV: Final[str] = "attributes_kv"
ATTRIBUTES: Final[str] = "attributes"
DATA: Final[str] = "data"
EXTENSIONS_KV: Final[str] = "extensions_kv"
EXTENSIONS: Final[str] = "extensions"


class BinaryUnmarshaller[T]:
    def __init__(
        self,
        data_type: type[T] | Any,
        *,
        mapper: HeaderMapper,
        extensions: ExtensionRegistry,
        codecs: CodecRegistry,
        default_content_type: str,
    ):
        self._data_type = data_type
        self._mapper = mapper
        self._extensions = extensions
        self._codecs = codecs
        self._default_content_type = default_content_type
        self._pipeline = self.build_pipeline()

    @property
    def pipeline(self) -> Pipeline[Wire, CloudEvent]:
        return self._pipeline

    def __call__(self, wire: Wire) -> CloudEvent:
        return self._pipeline(wire)

    def map_attribute_headers(self, wire: Wire, context: IContext) -> None:
        context[ATTRIBUTES_KV] = self._mapper.headers_to_attributes(wire.headers)

    def unmarshal_attributes(self, _: Wire, context: IContext) -> None:
        context[ATTRIBUTES] = kv_to_attributes(
            context[ATTRIBUTES_KV], specversion=self._mapper.spec.version
        )

    def decode_payload(self, wire: Wire, context: IContext) -> None:
        if not wire.body:
            context[DATA] = None
            return

        content_type = context[ATTRIBUTES].contenttype or self._default_content_type
        context[DATA] = self._codecs.decode(content_type, wire.body, self._data_type)

    def map_extension_headers(self, wire: Wire, context: IContext) -> None:
        context[EXTENSIONS_KV] = self._mapper.headers_to_extensions(wire.headers)

    def unmarshal_extensions(self, _: Wire, context: IContext) -> None:
        extensions = self._extensions.unmarshal(context[EXTENSIONS_KV])
        if ignored := set(k.lower() for k in context[EXTENSIONS_KV]) - self._extensions.keys:
            logger.trace(f"headers not claimed by any extension: {sorted(ignored)}")
        context[EXTENSIONS] = extensions

    def build_event(self, _: Wire, context: IContext) -> CloudEvent:
        return (
            CloudEventBuilder(specversion=self._mapper.spec.version)
            .with_attributes(context[ATTRIBUTES])
            .data(context[DATA])
            .extensions(context[EXTENSIONS])
            .build()
        )

    def build_pipeline(self) -> Pipeline[Wire, CloudEvent]:
        return Pipeline(
            Stage(
                name="map_attribute_headers",
                func=self.map_attribute_headers,
                provides=frozenset({ATTRIBUTES_KV}),
            ),
            Stage(
                name="unmarshal_attributes",
                func=self.unmarshal_attributes,
                requires=frozenset({ATTRIBUTES_KV}),
                provides=frozenset({ATTRIBUTES}),
            ),
            Stage(
                name="decode_payload",
                func=self.decode_payload,
                requires=frozenset({ATTRIBUTES}),
                provides=frozenset({DATA}),
            ),
            Stage(
                name="map_extension_headers",
                func=self.map_extension_headers,
                provides=frozenset({EXTENSIONS_KV}),
            ),
            Stage(
                name="unmarshal_extensions",
                func=self.unmarshal_extensions,
                requires=frozenset({EXTENSIONS_KV}),
                provides=frozenset({EXTENSIONS}),
            ),
            builder=Terminal(
                name="build_event",
                func=self.build_event,
                requires=frozenset({ATTRIBUTES, DATA, EXTENSIONS}),
            ),
        )
