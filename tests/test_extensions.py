import pytest
from msgspec import Struct

from cloudwise import DistributedTracing, ExtensionFormat, ExtensionRegistry
from cloudwise.errors import (
    DuplicateExtensionError,
    ExtensionCollisionError,
    ExtensionError,
    RegistryFrozenError,
)
from cloudwise.extensions import DISTRIBUTED_TRACING, default_registry, struct_format

from tests.conftest import TRACEPARENT, TRACESTATE


class Sampling(Struct, frozen=True):
    sampledrate: int


def test_distributed_tracing_round_trip(tracing: DistributedTracing):
    registry = default_registry()
    kv = registry.marshal({"distributedTracing": tracing})
    assert kv == {"traceparent": TRACEPARENT, "tracestate": TRACESTATE}
    assert registry.unmarshal(kv) == {"distributedTracing": tracing}


def test_tracestate_is_optional():
    registry = default_registry()
    extensions = registry.unmarshal({"TraceParent": TRACEPARENT})
    assert extensions == {"distributedTracing": DistributedTracing(traceparent=TRACEPARENT)}


def test_incomplete_extension_ignored():
    registry = default_registry()
    assert registry.unmarshal({"tracestate": TRACESTATE}) == {}


def test_unknown_keys_ignored():
    registry = default_registry()
    assert registry.unmarshal({"comexampleextension1": "value"}) == {}


def test_unregistered_extension_skipped_on_marshal():
    registry = default_registry()
    assert registry.marshal({"sampling": Sampling(sampledrate=1)}) == {}


def test_struct_decorator_registers_format():
    registry = ExtensionRegistry()

    @registry.extension("sampling")
    class Rate(Struct, frozen=True):
        sampledrate: int

    assert "sampling" in registry
    assert registry.marshal({"sampling": Rate(sampledrate=5)}) == {"sampledrate": "5"}
    assert registry.unmarshal({"sampledrate": "5"}) == {"sampling": Rate(sampledrate=5)}


def test_extensions_are_independent(tracing: DistributedTracing):
    registry = ExtensionRegistry(DISTRIBUTED_TRACING, struct_format("sampling", Sampling))
    kv = registry.marshal({"distributedTracing": tracing, "sampling": Sampling(7)})
    assert registry.unmarshal({"sampledrate": kv["sampledrate"]}) == {
        "sampling": Sampling(7)
    }
    without_sampling = {k: v for k, v in kv.items() if k != "sampledrate"}
    assert registry.unmarshal(without_sampling) == {"distributedTracing": tracing}


def test_function_pair_format():
    fmt = ExtensionFormat(
        name="partition",
        keys=frozenset({"partitionkey"}),
        marshal=lambda key: {"partitionkey": key},
        unmarshal=lambda kv: kv.get("partitionkey"),
    )
    registry = ExtensionRegistry(fmt)
    assert registry.unmarshal(registry.marshal({"partition": "p-1"})) == {"partition": "p-1"}


def test_collision_with_attribute_key():
    class Bad(Struct):
        source: str

    with pytest.raises(ExtensionCollisionError):
        ExtensionRegistry(struct_format("bad", Bad))


def test_collision_between_extensions():
    class OtherTracing(Struct):
        traceparent: str

    registry = default_registry()
    with pytest.raises(ExtensionCollisionError):
        registry.register(struct_format("other", OtherTracing))


def test_duplicate_name():
    registry = default_registry()
    with pytest.raises(DuplicateExtensionError):
        registry.register(struct_format("distributedTracing", Sampling))


def test_frozen_registry():
    registry = default_registry().freeze()
    assert registry.frozen
    with pytest.raises(RegistryFrozenError):
        registry.register(struct_format("sampling", Sampling))


def test_undeclared_key():
    fmt = ExtensionFormat(
        name="sneaky",
        keys=frozenset({"a"}),
        marshal=lambda value: {"b": value},
        unmarshal=lambda kv: None,
    )
    registry = ExtensionRegistry(fmt)
    with pytest.raises(ExtensionError):
        registry.marshal({"sneaky": "x"})


def test_owner():
    registry = default_registry()
    assert registry.owner("TraceParent") == "distributedTracing"
    assert registry.owner("unknown") is None


def test_struct_format_builds_a_plain_format():
    fmt = struct_format("sampling", Sampling)
    assert type(fmt) is ExtensionFormat
    assert type(DISTRIBUTED_TRACING) is ExtensionFormat
    assert fmt.keys == frozenset({"sampledrate"})
