from typing import Any

import httpx

from ..binding import HTTPBinding
from ..event import CloudEvent


def build_request(
    client: httpx.Client | httpx.AsyncClient,
    method: str,
    url: httpx.URL | str,
    event: CloudEvent,
    binding: HTTPBinding[Any],
    *,
    binary: bool = True,
    **kwargs: Any,
) -> httpx.Request:
    """
    the event is fully encoded before the request is built

    ```py
    with httpx.Client() as client:
        client.send(build_request(client, "POST", url, event, binding))
    ```
    """
    wire = binding.encode(event, binary=binary)
    headers = httpx.Headers(kwargs.pop("headers", None))
    headers.update(dict(wire.headers))
    return client.build_request(
        method, url, headers=headers, content=wire.body, **kwargs
    )


def read_response(response: httpx.Response, binding: HTTPBinding[Any]) -> CloudEvent:
    "the response body must be read already, see `aread_response` for streams"
    return binding.decode(response.headers, response.content)


async def aread_response(
    response: httpx.Response, binding: HTTPBinding[Any]
) -> CloudEvent:
    body = await response.aread()
    return binding.decode(response.headers, body)
