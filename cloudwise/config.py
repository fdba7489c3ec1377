"""
Named configuration values of a binding.

```py
config = BindingConfig.load({"version": "0.2"})
binding = HTTPBinding(dict[str, int], config=config)
```
"""

from typing import Any, Final, Literal, Mapping

from msgspec import Struct, ValidationError, convert, field, structs

from .errors import InvalidConfigError

VersionName = Literal["0.1", "0.2"]

BINARY_MEDIA_TYPE: Final[str] = "application/json"
STRUCTURED_MEDIA_TYPE: Final[str] = "application/cloudevents+json"
CONTENT_TYPE_HEADER: Final[str] = "Content-Type"
CONTENT_LENGTH_HEADER: Final[str] = "Content-Length"


class SpecVersion(Struct, frozen=True, kw_only=True):
    """
    Naming table of one cloudevents binding version.

    headers: canonical attribute key -> http header name, exact casing
    fields: canonical attribute key -> structured json field name
    extension_prefix: prepended to every extension key in binary mode
    extensions_field: json object extensions are nested under, `None` to flatten
    """

    version: str
    headers: dict[str, str]
    fields: dict[str, str]
    extension_prefix: str
    extensions_field: str | None = None
    data_field: str = "data"


V0_1: Final[SpecVersion] = SpecVersion(
    version="0.1",
    headers={
        "id": "CE-EventID",
        "source": "CE-Source",
        "type": "CE-EventType",
        "specversion": "CE-CloudEventsVersion",
        "time": "CE-EventTime",
        "schemaurl": "CE-SchemaURL",
        "contenttype": CONTENT_TYPE_HEADER,
    },
    fields={
        "id": "eventID",
        "source": "source",
        "type": "eventType",
        "specversion": "cloudEventsVersion",
        "time": "eventTime",
        "schemaurl": "schemaURL",
        "contenttype": "contentType",
    },
    extension_prefix="CE-X-",
    extensions_field="extensions",
)


V0_2: Final[SpecVersion] = SpecVersion(
    version="0.2",
    headers={
        "id": "ce-id",
        "source": "ce-source",
        "type": "ce-type",
        "specversion": "ce-specversion",
        "time": "ce-time",
        "schemaurl": "ce-schemaurl",
        "contenttype": CONTENT_TYPE_HEADER,
    },
    fields={
        "id": "id",
        "source": "source",
        "type": "type",
        "specversion": "specversion",
        "time": "time",
        "schemaurl": "schemaurl",
        "contenttype": "contenttype",
    },
    extension_prefix="ce-",
)


SPEC_VERSIONS: Final[dict[str, SpecVersion]] = {
    V0_1.version: V0_1,
    V0_2.version: V0_2,
}


class BindingConfig(Struct, frozen=True, kw_only=True):
    """
    - version: the binding version, decides header and json field names
    - binary_media_types: content types decoded in binary mode
    - structured_media_type: content type of a structured cloudevent
    - default_content_type: payload content type used when an event has none
    """

    version: VersionName = "0.1"
    binary_media_types: frozenset[str] = field(
        default_factory=lambda: frozenset({BINARY_MEDIA_TYPE})
    )
    structured_media_type: str = STRUCTURED_MEDIA_TYPE
    default_content_type: str = BINARY_MEDIA_TYPE

    def __post_init__(self) -> None:
        # markers are matched against lower cased media types
        structs.force_setattr(
            self,
            "binary_media_types",
            frozenset(marker.lower() for marker in self.binary_media_types),
        )
        structs.force_setattr(
            self, "structured_media_type", self.structured_media_type.lower()
        )

        if self.structured_media_type in self.binary_media_types:
            raise InvalidConfigError(
                f"`{self.structured_media_type}` can't be both binary and structured"
            )

    @property
    def spec(self) -> SpecVersion:
        return SPEC_VERSIONS[self.version]

    @classmethod
    def load(cls, mapping: Mapping[str, Any]) -> "BindingConfig":
        try:
            return convert(mapping, cls)
        except ValidationError as exc:
            raise InvalidConfigError(str(exc)) from exc
