from datetime import UTC, datetime
from typing import Any

import pytest

from cloudwise import CloudEvent, CloudEventBuilder, DistributedTracing, HTTPBinding

TRACEPARENT = "00-0af7651916cd43dd8448eb211c80319c-b7ad6b7169203331-01"
TRACESTATE = "rojo=00f067aa0ba902b7"


@pytest.fixture
def binding() -> HTTPBinding[str]:
    return HTTPBinding()


@pytest.fixture
def json_binding() -> HTTPBinding[Any]:
    return HTTPBinding(dict[str, Any])


@pytest.fixture
def example_event() -> CloudEvent:
    return (
        CloudEventBuilder()
        .attributes(
            id="1234",
            source="/test",
            type="com.example.test",
            contenttype="application/json",
        )
        .data('{"x":1}')
        .build()
    )


@pytest.fixture
def tracing() -> DistributedTracing:
    return DistributedTracing(traceparent=TRACEPARENT, tracestate=TRACESTATE)


@pytest.fixture
def full_event(tracing: DistributedTracing) -> CloudEvent:
    return (
        CloudEventBuilder()
        .attributes(
            id="A234-1234-1234",
            source="https://github.com/cloudevents/spec/pull",
            type="com.github.pull_request.opened",
            time=datetime(2018, 4, 5, 17, 31, tzinfo=UTC),
            schemaurl="https://example.com/schema.json",
            contenttype="application/json",
        )
        .data({"comment": "much wow", "lines": 3})
        .extension("distributedTracing", tracing)
        .build()
    )
