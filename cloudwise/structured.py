"""
Structured mode, the whole cloudevent as one json document.

```json
{
    "cloudEventsVersion": "0.1",
    "eventID": "1234",
    "eventType": "com.example.test",
    "source": "/test",
    "contentType": "application/json",
    "extensions": {"traceparent": "00-0af7651916cd43dd8448eb211c80319c-b7ad6b7169203331-01"},
    "data": {"x": 1}
}
```
"""

from typing import Any

from loguru import logger
from msgspec import DecodeError, EncodeError, ValidationError, convert, json

from .attributes import attributes_to_kv, kv_to_attributes
from .errors import (
    ExtensionCollisionError,
    MissingBodyError,
    PayloadCodecError,
    StructuredFormatError,
)
from .event import CloudEvent, CloudEventBuilder
from .extensions import ExtensionRegistry
from .headers import HeaderMapper


class StructuredCodec[T]:
    def __init__(
        self,
        data_type: type[T] | Any,
        *,
        mapper: HeaderMapper,
        extensions: ExtensionRegistry,
        media_type: str,
    ):
        self._data_type = data_type
        self._mapper = mapper
        self._extensions = extensions
        self._media_type = media_type

    @property
    def media_type(self) -> str:
        return self._media_type

    def to_document(self, event: CloudEvent) -> dict[str, Any]:
        spec = self._mapper.spec
        document = self._mapper.attributes_to_fields(attributes_to_kv(event.attributes))

        extension_kv = self._extensions.marshal(event.extensions)
        if spec.extensions_field is not None:
            if extension_kv:
                document[spec.extensions_field] = extension_kv
        else:
            for key in extension_kv:
                if key in document or key == spec.data_field:
                    owner = self._extensions.owner(key) or "unknown"
                    raise ExtensionCollisionError(owner, key, f"json field `{key}`")
            document.update(extension_kv)

        if event.data is not None:
            document[spec.data_field] = event.data
        return document

    def encode(self, event: CloudEvent) -> bytes:
        document = self.to_document(event)
        try:
            return json.encode(document)
        except (EncodeError, TypeError) as exc:
            raise PayloadCodecError(self._media_type, str(exc)) from exc

    def decode(self, body: bytes) -> CloudEvent:
        if not body:
            raise MissingBodyError()

        try:
            document = json.decode(body)
        except DecodeError as exc:
            raise StructuredFormatError(str(exc)) from exc

        if not isinstance(document, dict):
            raise StructuredFormatError("document is not a json object")
        return self.from_document(document)

    def from_document(self, document: dict[str, Any]) -> CloudEvent:
        spec = self._mapper.spec
        kv, rest = self._mapper.fields_to_attributes(document)
        attributes = kv_to_attributes(kv, specversion=spec.version)

        data = rest.pop(spec.data_field, None)
        if data is not None:
            data = self.convert_data(data, attributes.contenttype or self._media_type)

        if spec.extensions_field is not None:
            fields = rest.get(spec.extensions_field) or {}
            if not isinstance(fields, dict):
                raise StructuredFormatError(f"`{spec.extensions_field}` is not a json object")
        else:
            fields = rest
        extensions = self._extensions.unmarshal(fields)
        logger.trace(f"structured extensions found: {list(extensions)}")

        return (
            CloudEventBuilder(specversion=spec.version)
            .with_attributes(attributes)
            .data(data)
            .extensions(extensions)
            .build()
        )

    def convert_data(self, data: Any, content_type: str) -> Any:
        """
        `str` and `bytes` bindings receive non-string data as its json text,
        like a binary mode payload would be
        """
        if self._data_type is Any:
            return data
        if self._data_type in (str, bytes) and not isinstance(data, str):
            text = json.encode(data)
            return text if self._data_type is bytes else text.decode("utf-8")
        try:
            return convert(data, self._data_type)
        except ValidationError as exc:
            raise PayloadCodecError(content_type, str(exc)) from exc
