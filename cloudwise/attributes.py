"""
Attribute mapper, converts between `Attributes` and the canonical
key/value mapping shared by binary headers and structured json.

```py
kv = attributes_to_kv(attrs)   # {"id": "1234", "source": "/test", ...}
attrs = kv_to_attributes(kv, specversion="0.1")
```
"""

from datetime import datetime
from typing import Annotated, Any, Final, Mapping

from msgspec import Meta, Struct, ValidationError, convert, to_builtins

from .errors import AttributeValidationError

NonEmptyStr = Annotated[str, Meta(min_length=1)]


class Attributes(Struct, frozen=True, kw_only=True, omit_defaults=True):
    id: NonEmptyStr
    source: NonEmptyStr
    type: NonEmptyStr
    specversion: NonEmptyStr
    time: datetime | None = None
    schemaurl: str | None = None
    contenttype: str | None = None


ATTRIBUTE_KEYS: Final[tuple[str, ...]] = Attributes.__struct_fields__
REQUIRED_KEYS: Final[tuple[str, ...]] = ("id", "source", "type", "specversion")


def missing_keys(mapping: Mapping[str, Any]) -> list[str]:
    return [key for key in REQUIRED_KEYS if mapping.get(key) in (None, "")]


def kv_to_attributes(
    kv: Mapping[str, Any], *, specversion: str | None = None
) -> Attributes:
    """
    build typed attributes from canonical key/values,
    values could be strings read from the wire or already typed values.

    raise `AttributeValidationError` when a required attribute is missing,
    a value can't be parsed, or specversion differs from the expected one.
    """
    if missing := missing_keys(kv):
        raise AttributeValidationError(f"missing required attribute {missing}")

    if specversion is not None and kv["specversion"] != specversion:
        raise AttributeValidationError(
            f"specversion `{kv['specversion']}` is not supported, expected `{specversion}`"
        )

    values = {key: kv[key] for key in ATTRIBUTE_KEYS if kv.get(key) is not None}
    try:
        return convert(values, Attributes)
    except ValidationError as exc:
        raise AttributeValidationError(str(exc)) from exc


def attributes_to_kv(attributes: Attributes) -> dict[str, str]:
    "unset optional attributes are omitted, time is rendered as rfc3339"
    return {key: str(value) for key, value in to_builtins(attributes).items()}
