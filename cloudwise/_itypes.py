"Interface, types, type alias, and related stuff"

from typing import Annotated, Any, Callable, Final, Literal, Mapping, TypeGuard

type KV = dict[str, str]
"flat, string only key/value pairs, the shape shared by headers and extensions"

type IContext = dict[str, Any]
"the mutable mapping every pipeline stage reads from and writes to"

type StageFunc[S] = Callable[[S, IContext], None]
type Builder[S, R] = Callable[[S, IContext], R]

type Marshal[X] = Callable[[X], Mapping[str, Any]]
type Unmarshal[X] = Callable[[Mapping[str, Any]], X | None]

type Encoder = Callable[[Any], bytes]
type Decoder = Callable[[bytes, Any], Any]


type Result[R, E] = Annotated[R, E]
"""
A helper type alias to represent a function that can return either a value or an error.

Example:
---
```py
def decode(self, headers: Mapping[str, str], body: bytes) -> Result[CloudEvent, DecodeError]:
    ...
```
"""


class _Missed:

    def __str__(self) -> str:
        return "MISSING"

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> Literal[False]:
        return False


Missed: Final[type[_Missed]] = _Missed
MISSING = _Missed()


type Maybe[T] = T | _Missed


def is_provided[T](obj: Maybe[T]) -> TypeGuard[T]:
    return obj is not MISSING
