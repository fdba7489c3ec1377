"""
Header/value mapper, converts canonical key/values to the literal names used
on the wire: http headers in binary mode, json fields in structured mode.

Names are written with the exact casing of the binding version and looked up
case-insensitively.
"""

from typing import Any, Final, Mapping

from ._ds import Headers
from ._itypes import KV
from .config import CONTENT_LENGTH_HEADER, SpecVersion


def media_type(content_type: str | None) -> str | None:
    """
    the bare, lower cased media type of a content-type value

    ```py
    assert media_type("Application/JSON; charset=utf-8") == "application/json"
    ```
    """
    if content_type is None:
        return None
    bare = content_type.split(";", 1)[0].strip().lower()
    return bare or None


TRANSPORT_HEADERS: Final[frozenset[str]] = frozenset({CONTENT_LENGTH_HEADER.lower()})


class HeaderMapper:
    def __init__(self, spec: SpecVersion):
        self._spec = spec
        self._attribute_of: dict[str, str] = {
            header.lower(): key for key, header in spec.headers.items()
        }
        self._key_of: dict[str, str] = {
            field: key for key, field in spec.fields.items()
        }
        self._prefix = spec.extension_prefix.lower()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(version={self._spec.version})"

    @property
    def spec(self) -> SpecVersion:
        return self._spec

    @property
    def reserved_headers(self) -> frozenset[str]:
        "lower cased header names owned by attributes or the transport"
        return frozenset(self._attribute_of) | TRANSPORT_HEADERS

    def header_name(self, key: str) -> str:
        return self._spec.headers[key]

    # binary mode

    def attributes_to_headers(self, kv: Mapping[str, Any]) -> Headers:
        return Headers((self._spec.headers[key], value) for key, value in kv.items())

    def headers_to_attributes(self, headers: Mapping[str, str]) -> KV:
        kv: KV = {}
        for name, value in headers.items():
            if (key := self._attribute_of.get(name.lower())) is not None:
                kv[key] = value
        return kv

    def extension_header(self, key: str) -> str:
        return f"{self._spec.extension_prefix}{key}"

    def extensions_to_headers(self, kv: Mapping[str, Any]) -> Headers:
        return Headers((self.extension_header(key), value) for key, value in kv.items())

    def headers_to_extensions(self, headers: Mapping[str, str]) -> KV:
        """
        every header that is not an attribute becomes an extension candidate,
        the binding prefix is stripped when present
        """
        reserved = self.reserved_headers
        kv: KV = {}
        for name, value in headers.items():
            lowered = name.lower()
            if lowered in reserved:
                continue
            if lowered.startswith(self._prefix):
                name = name[len(self._prefix) :]
            kv[name] = value
        return kv

    # structured mode

    def attributes_to_fields(self, kv: Mapping[str, Any]) -> dict[str, Any]:
        return {self._spec.fields[key]: value for key, value in kv.items()}

    def fields_to_attributes(
        self, document: Mapping[str, Any]
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        "split a json document into attribute key/values and the remaining fields"
        kv: dict[str, Any] = {}
        rest: dict[str, Any] = {}
        for field, value in document.items():
            if (key := self._key_of.get(field)) is not None:
                kv[key] = value
            else:
                rest[field] = value
        return kv, rest
