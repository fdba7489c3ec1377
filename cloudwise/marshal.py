"""
Binary mode encoding, `CloudEvent` -> headers and body of a `Wire`

marshal_attributes -> map_attribute_headers -> marshal_extensions
  -> map_extension_headers -> encode_payload => build_wire
"""

from typing import Final

from ._ds import Headers, Wire
from ._itypes import KV, IContext
from .attributes import attributes_to_kv
from .codecs import CodecRegistry
from .config import CONTENT_LENGTH_HEADER, CONTENT_TYPE_HEADER
from .errors import ExtensionCollisionError
from .event import CloudEvent
from .extensions import ExtensionRegistry
from .headers import HeaderMapper
from .pipeline import Pipeline, Stage, Terminal

ATTRIBUTES_KV: Final[str] = "attributes_kv"
HEADERS: Final[str] = "headers"
EXTENSIONS_KV: Final[str] = "extensions_kv"
EXTENSION_HEADERS: Final[str] = "extension_headers"
BODY: Final[str] = "body"


class BinaryMarshaller:
    def __init__(
        self,
        *,
        mapper: HeaderMapper,
        extensions: ExtensionRegistry,
        codecs: CodecRegistry,
        default_content_type: str,
    ):
        self._mapper = mapper
        self._extensions = extensions
        self._codecs = codecs
        self._default_content_type = default_content_type
        self._pipeline = self.build_pipeline()

    @property
    def pipeline(self) -> Pipeline[CloudEvent, Wire]:
        return self._pipeline

    def __call__(self, event: CloudEvent) -> Wire:
        return self._pipeline(event)

    def content_type(self, event: CloudEvent) -> str:
        return event.contenttype or self._default_content_type

    def marshal_attributes(self, event: CloudEvent, context: IContext) -> None:
        context[ATTRIBUTES_KV] = attributes_to_kv(event.attributes)

    def map_attribute_headers(self, _: CloudEvent, context: IContext) -> None:
        context[HEADERS] = self._mapper.attributes_to_headers(context[ATTRIBUTES_KV])

    def marshal_extensions(self, event: CloudEvent, context: IContext) -> None:
        context[EXTENSIONS_KV] = self._extensions.marshal(event.extensions)

    def map_extension_headers(self, _: CloudEvent, context: IContext) -> None:
        headers: Headers = context[HEADERS]
        extension_kv: KV = context[EXTENSIONS_KV]
        for key in extension_kv:
            if (name := self._mapper.extension_header(key)) in headers:
                owner = self._extensions.owner(key) or "unknown"
                raise ExtensionCollisionError(owner, key, f"attribute header `{name}`")

        extension_headers = self._mapper.extensions_to_headers(extension_kv)
        headers.update(extension_headers)
        context[EXTENSION_HEADERS] = extension_headers

    def encode_payload(self, event: CloudEvent, context: IContext) -> None:
        if event.data is None:
            context[BODY] = b""
            return
        context[BODY] = self._codecs.encode(self.content_type(event), event.data)

    def build_wire(self, event: CloudEvent, context: IContext) -> Wire:
        headers: Headers = context[HEADERS].copy()
        headers[CONTENT_TYPE_HEADER] = self.content_type(event)
        body: bytes = context[BODY]
        headers[CONTENT_LENGTH_HEADER] = str(len(body))
        return Wire(headers=headers, body=body)

    def build_pipeline(self) -> Pipeline[CloudEvent, Wire]:
        return Pipeline(
            Stage(
                name="marshal_attributes",
                func=self.marshal_attributes,
                provides=frozenset({ATTRIBUTES_KV}),
            ),
            Stage(
                name="map_attribute_headers",
                func=self.map_attribute_headers,
                requires=frozenset({ATTRIBUTES_KV}),
                provides=frozenset({HEADERS}),
            ),
            Stage(
                name="marshal_extensions",
                func=self.marshal_extensions,
                provides=frozenset({EXTENSIONS_KV}),
            ),
            Stage(
                name="map_extension_headers",
                func=self.map_extension_headers,
                requires=frozenset({HEADERS, EXTENSIONS_KV}),
                provides=frozenset({EXTENSION_HEADERS}),
            ),
            Stage(
                name="encode_payload",
                func=self.encode_payload,
                provides=frozenset({BODY}),
            ),
            builder=Terminal(
                name="build_wire",
                func=self.build_wire,
                requires=frozenset({HEADERS, EXTENSION_HEADERS, BODY}),
            ),
        )
