from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping, Self

from msgspec import Struct, field

from ._itypes import MISSING, Maybe, is_provided
from .attributes import ATTRIBUTE_KEYS, Attributes, kv_to_attributes
from .config import V0_1
from .errors import AttributeValidationError


def frozen_mapping(mapping: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


class CloudEvent(Struct, frozen=True, kw_only=True):
    """
    An immutable cloudevent, build it with `CloudEventBuilder`

    - attributes: the context attributes, id, source, type etc.
    - data: the payload, any value the payload codec accepts, or raw bytes
    - extensions: extension name -> extension object
    """

    attributes: Attributes
    data: Any = None
    extensions: Mapping[str, Any] = field(default_factory=frozen_mapping)

    @property
    def id(self) -> str:
        return self.attributes.id

    @property
    def source(self) -> str:
        return self.attributes.source

    @property
    def type(self) -> str:
        return self.attributes.type

    @property
    def specversion(self) -> str:
        return self.attributes.specversion

    @property
    def time(self) -> datetime | None:
        return self.attributes.time

    @property
    def schemaurl(self) -> str | None:
        return self.attributes.schemaurl

    @property
    def contenttype(self) -> str | None:
        return self.attributes.contenttype

    def extension(self, name: str, default: Any = None) -> Any:
        return self.extensions.get(name, default)


class CloudEventBuilder:
    """
    Collects attributes, data and extensions, then validates them once in `build`.

    ```py
    event = (
        CloudEventBuilder()
        .attributes(id="1234", source="/test", type="com.example.test")
        .data({"x": 1})
        .build()
    )
    ```
    """

    def __init__(
        self,
        *,
        specversion: str = V0_1.version,
        default_content_type: str | None = None,
    ):
        self._attributes: dict[str, Any] = {"specversion": specversion}
        self._default_content_type = default_content_type
        self._data: Maybe[Any] = MISSING
        self._extensions: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(attributes={self._attributes})"

    def attributes(self, **attributes: Any) -> Self:
        if unknown := set(attributes).difference(ATTRIBUTE_KEYS):
            raise AttributeValidationError(f"unknown attributes {sorted(unknown)}")
        self._attributes.update(attributes)
        return self

    def with_attributes(self, attributes: Attributes) -> Self:
        self._attributes = {key: getattr(attributes, key) for key in ATTRIBUTE_KEYS}
        return self

    def data(self, data: Any) -> Self:
        "an empty str or bytes payload is no payload, it has no body on the wire"
        if isinstance(data, (str, bytes)) and not data:
            data = None
        self._data = data
        return self

    def extension(self, name: str, extension: Any) -> Self:
        self._extensions[name] = extension
        return self

    def extensions(self, extensions: Mapping[str, Any]) -> Self:
        self._extensions.update(extensions)
        return self

    def build(self) -> CloudEvent:
        """
        raise `AttributeValidationError` if a required attribute was omitted or is invalid,
        an unset contenttype falls back to `default_content_type`
        """
        attributes = dict(self._attributes)
        if attributes.get("contenttype") is None and self._default_content_type:
            attributes["contenttype"] = self._default_content_type

        return CloudEvent(
            attributes=kv_to_attributes(attributes),
            data=self._data if is_provided(self._data) else None,
            extensions=frozen_mapping(self._extensions),
        )
