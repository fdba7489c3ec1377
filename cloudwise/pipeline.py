"""
An explicit, ordered pipeline of pure transformation stages.

Every stage reads the source message and a shared context, and writes its
results back to the context under the keys it `provides`. The terminal
stage builds the result out of the context.

Ordering is validated when the pipeline is built: a stage can only
`require` keys provided by an earlier stage.

```py
@stage(provides={"kv"})
def map_headers(wire: Wire, context: IContext) -> None:
    context["kv"] = dict(wire.headers)


@terminal(requires={"kv"})
def build(wire: Wire, context: IContext) -> dict[str, str]:
    return context["kv"]


pipeline = Pipeline(map_headers, builder=build)
```
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Sequence

from loguru import logger

from ._itypes import Builder, IContext, StageFunc
from .errors import PipelineError, UnsatisfiedStageError


@dataclass(frozen=True, slots=True, kw_only=True)
class Stage[S]:
    name: str
    func: StageFunc[S]
    requires: frozenset[str] = field(default_factory=frozenset)
    provides: frozenset[str] = field(default_factory=frozenset)

    def __call__(self, source: S, context: IContext) -> None:
        self.func(source, context)


@dataclass(frozen=True, slots=True, kw_only=True)
class Terminal[S, R]:
    name: str
    func: Builder[S, R]
    requires: frozenset[str] = field(default_factory=frozenset)

    def __call__(self, source: S, context: IContext) -> R:
        return self.func(source, context)


def stage[S](
    *, requires: Iterable[str] = (), provides: Iterable[str] = ()
) -> Callable[[StageFunc[S]], Stage[S]]:
    def wrapper(func: StageFunc[S]) -> Stage[S]:
        return Stage(
            name=func.__name__,
            func=func,
            requires=frozenset(requires),
            provides=frozenset(provides),
        )

    return wrapper


def terminal[S, R](
    *, requires: Iterable[str] = ()
) -> Callable[[Builder[S, R]], Terminal[S, R]]:
    def wrapper(func: Builder[S, R]) -> Terminal[S, R]:
        return Terminal(name=func.__name__, func=func, requires=frozenset(requires))

    return wrapper


def check_order(stages: Sequence[Stage[object]], builder: Terminal[object, object]) -> None:
    provided: set[str] = set()
    for st in stages:
        if missing := st.requires - provided:
            raise UnsatisfiedStageError(st.name, missing)
        provided |= st.provides

    if missing := builder.requires - provided:
        raise UnsatisfiedStageError(builder.name, missing)


class Pipeline[S, R]:
    def __init__(self, *stages: Stage[S], builder: Terminal[S, R]):
        names = [st.name for st in stages]
        if len(set(names)) != len(names):
            raise PipelineError(f"duplicated stage names in {names}")

        check_order(stages, builder)  # type: ignore
        self._stages = stages
        self._builder = builder

    def __repr__(self) -> str:
        names = " -> ".join(st.name for st in self._stages)
        return f"{self.__class__.__name__}({names} => {self._builder.name})"

    @property
    def stages(self) -> tuple[Stage[S], ...]:
        return self._stages

    @property
    def builder(self) -> Terminal[S, R]:
        return self._builder

    def __call__(self, source: S) -> R:
        context: IContext = {}
        for st in self._stages:
            st(source, context)
            if missing := st.provides.difference(context):
                raise PipelineError(f"stage `{st.name}` did not provide {sorted(missing)}")
            logger.trace(f"stage `{st.name}` done")
        return self._builder(source, context)

    def replace(self, name: str, new: StageFunc[S]) -> "Pipeline[S, R]":
        "a new pipeline where the stage `name` runs `new`, keeping its position and contract"
        if name not in (st.name for st in self._stages):
            raise PipelineError(f"no stage named `{name}`")
        stages = [replace(st, func=new) if st.name == name else st for st in self._stages]
        return Pipeline(*stages, builder=self._builder)

    def with_builder[T](self, builder: Terminal[S, T]) -> "Pipeline[S, T]":
        return Pipeline(*self._stages, builder=builder)
