"""
Extension mapper, an explicit registry of extension formats.

Each format knows how to turn its extension object into flat key/values and back,
adding an extension never touches the pipeline, only the registry.

```py
registry = ExtensionRegistry()


@registry.extension("sampling")
class Sampling(Struct, frozen=True):
    sampledrate: int


registry.marshal({"sampling": Sampling(sampledrate=5)})  # {"sampledrate": "5"}
```
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping

from loguru import logger
from msgspec import Struct, ValidationError, convert, to_builtins

from ._itypes import KV, Marshal, Unmarshal
from .attributes import ATTRIBUTE_KEYS
from .errors import (
    DuplicateExtensionError,
    ExtensionCollisionError,
    ExtensionError,
    RegistryFrozenError,
)


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtensionFormat[X]:
    """
    name: the extension name, key of `CloudEvent.extensions`
    keys: every key the extension reads and writes
    marshal: extension object -> key/values, `None` values are dropped
    unmarshal: key/values -> extension object, `None` if the extension is incomplete
    """

    name: str
    keys: frozenset[str]
    marshal: Marshal[X]
    unmarshal: Unmarshal[X]


def struct_format[S: Struct](name: str, struct_type: type[S]) -> ExtensionFormat[S]:
    "derive a format from a msgspec struct, its encoded field names are the keys"

    def unmarshal(kv: Mapping[str, Any]) -> S | None:
        try:
            return convert(dict(kv), struct_type, strict=False)
        except ValidationError as exc:
            logger.debug(f"extension `{name}` ignored: {exc}")
            return None

    return ExtensionFormat(
        name=name,
        keys=frozenset(struct_type.__struct_encode_fields__),
        marshal=to_builtins,
        unmarshal=unmarshal,
    )


class DistributedTracing(Struct, frozen=True, kw_only=True, omit_defaults=True):
    "w3c trace context, https://www.w3.org/TR/trace-context/"

    traceparent: str
    tracestate: str | None = None


DISTRIBUTED_TRACING = struct_format("distributedTracing", DistributedTracing)


class ExtensionRegistry:
    """
    A mapping of extension name to its format.

    Registration validates that no key is shared with an attribute or with
    another extension, so extensions are encoded independently of each other.
    Registries are populated at start-up, `freeze` makes them read-only.
    """

    def __init__(
        self,
        *formats: ExtensionFormat[Any],
        reserved: tuple[str, ...] = ATTRIBUTE_KEYS,
    ):
        self._formats: dict[str, ExtensionFormat[Any]] = {}
        self._key_owners: dict[str, str] = {}
        self._reserved = frozenset(key.lower() for key in reserved)
        self._frozen = False

        for fmt in formats:
            self.register(fmt)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self._formats)})"

    def __contains__(self, name: object) -> bool:
        return name in self._formats

    def __iter__(self) -> Iterator[str]:
        return iter(self._formats)

    def __len__(self) -> int:
        return len(self._formats)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def keys(self) -> frozenset[str]:
        "every key claimed by a registered extension, lower cased"
        return frozenset(self._key_owners)

    def get(self, name: str) -> ExtensionFormat[Any] | None:
        return self._formats.get(name)

    def owner(self, key: str) -> str | None:
        "name of the extension claiming `key`"
        return self._key_owners.get(key.lower())

    def register[X](self, fmt: ExtensionFormat[X]) -> ExtensionFormat[X]:
        if self._frozen:
            raise RegistryFrozenError(fmt.name)

        if fmt.name in self._formats:
            raise DuplicateExtensionError(fmt.name)

        for key in fmt.keys:
            lowered = key.lower()
            if lowered in self._reserved:
                raise ExtensionCollisionError(fmt.name, key, "a cloudevent attribute")
            if (owner := self._key_owners.get(lowered)) is not None:
                raise ExtensionCollisionError(fmt.name, key, f"extension `{owner}`")

        self._formats[fmt.name] = fmt
        self._key_owners.update({key.lower(): fmt.name for key in fmt.keys})
        return fmt

    def extension[S: Struct](self, name: str) -> Callable[[type[S]], type[S]]:
        "class decorator, registers a msgspec struct as an extension format"

        def wrapper(struct_type: type[S]) -> type[S]:
            self.register(struct_format(name, struct_type))
            return struct_type

        return wrapper

    def freeze(self) -> "ExtensionRegistry":
        self._frozen = True
        return self

    def marshal(self, extensions: Mapping[str, Any]) -> KV:
        kv: KV = {}
        for name, extension in extensions.items():
            if (fmt := self._formats.get(name)) is None:
                logger.warning(f"extension `{name}` is not registered, skipped")
                continue

            for key, value in fmt.marshal(extension).items():
                if key not in fmt.keys:
                    raise ExtensionError(
                        f"extension `{name}` marshalled undeclared key `{key}`"
                    )
                if value is not None:
                    kv[key] = str(value)
        return kv

    def unmarshal(self, kv: Mapping[str, Any]) -> dict[str, Any]:
        "keys no format claims are ignored, so are incomplete extensions"
        lowered = {key.lower(): value for key, value in kv.items()}
        extensions: dict[str, Any] = {}
        for name, fmt in self._formats.items():
            found = {key: lowered[key.lower()] for key in fmt.keys if key.lower() in lowered}
            if not found:
                continue
            if (extension := fmt.unmarshal(found)) is not None:
                extensions[name] = extension
        return extensions


def default_registry() -> ExtensionRegistry:
    return ExtensionRegistry(DISTRIBUTED_TRACING)
