from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, MutableMapping


class Headers(MutableMapping[str, str]):
    """
    A case-insensitive header mapping.

    Lookups ignore casing, iteration yields names with the casing of
    their last write, and writing an existing name replaces its value.

    ```py
    headers = Headers({"CE-EventID": "1234"})
    assert headers["ce-eventid"] == "1234"
    assert list(headers) == ["CE-EventID"]
    ```
    """

    __slots__ = ("_store",)

    def __init__(
        self, items: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None
    ):
        self._store: dict[str, tuple[str, str]] = {}
        if items is None:
            return
        pairs = items.items() if isinstance(items, Mapping) else items
        for key, value in pairs:
            self[key] = value

    def __getitem__(self, key: str) -> str:
        return self._store[key.lower()][1]

    def __setitem__(self, key: str, value: Any) -> None:
        self._store[key.lower()] = (key, str(value))

    def __delitem__(self, key: str) -> None:
        del self._store[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._store

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        return dict(self.lower_items()) == dict(Headers(other).lower_items())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({dict(self.items())})"

    def lower_items(self) -> Iterator[tuple[str, str]]:
        return ((lower, value) for lower, (_, value) in self._store.items())

    def copy(self) -> "Headers":
        return Headers(self.items())


@dataclass(frozen=True, slots=True, kw_only=True)
class Wire:
    """
    headers: the http headers to write, `Content-Type` and `Content-Length` included
    body: the serialized payload, empty when the event carries no data
    """

    headers: Headers = field(default_factory=Headers)
    body: bytes = b""

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int:
        return len(self.body)
