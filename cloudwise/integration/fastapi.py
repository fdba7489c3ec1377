"""
```py
async def lifespan(app: FastAPI) -> AsyncGenerator[AppState, None]:
    yield {"binding": HTTPBinding(dict[str, Any])}


app = FastAPI(lifespan=lifespan)
add_exception_handlers(app)


@app.post("/events")
async def receive(event: CloudEventBody, binding: Binding) -> Response:
    return event_response(event, binding, binary=False)
```
"""

from typing import Annotated, Any, TypedDict

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from ..binding import HTTPBinding
from ..errors import CloudwiseError, UnsupportedContentTypeError
from ..event import CloudEvent


class InvalidAppStateError(Exception):
    def __init__(self):
        super().__init__("Make sure `binding` exist in app.state")


class AppState(TypedDict):
    binding: HTTPBinding[Any]


def get_binding(r: Request) -> HTTPBinding[Any]:
    try:
        return r.scope["state"]["binding"]
    except KeyError:
        pass

    try:
        return r.app.state.binding
    except AttributeError:
        raise InvalidAppStateError()


Binding = Annotated[HTTPBinding[Any], Depends(get_binding)]


async def read_event(request: Request, binding: HTTPBinding[Any]) -> CloudEvent:
    "decoding starts once the whole body is buffered"
    body = await request.body()
    return binding.decode(request.headers, body)


async def get_event(request: Request, binding: Binding) -> CloudEvent:
    return await read_event(request, binding)


CloudEventBody = Annotated[CloudEvent, Depends(get_event)]


def event_response(
    event: CloudEvent,
    binding: HTTPBinding[Any],
    *,
    binary: bool = True,
    status_code: int = 200,
) -> Response:
    wire = binding.encode(event, binary=binary)
    return Response(content=wire.body, status_code=status_code, headers=dict(wire.headers))


async def unsupported_content_type(_: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=415, content={"detail": str(exc)})


async def invalid_cloudevent(_: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UnsupportedContentTypeError, unsupported_content_type)
    app.add_exception_handler(CloudwiseError, invalid_cloudevent)
