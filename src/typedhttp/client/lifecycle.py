"""Socket lifecycle resolver.

Three awaitable stages, taken in order for every request:

1. `socket_assigned(request)`: a socket was given to the request
2. `socket_connected(socket)`: that socket finished connecting
3. `response_received(request)`: response headers arrived

Each stage resolves on the first of two events (its success event or
`"error"`) and removes both listeners before it settles. State already
recorded on the request or socket is checked first, so a stage whose event
fired before it was awaited settles at once.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typedhttp.runtime.events import EventEmitter
    from typedhttp.transport import ClientRequest, IncomingResponse, Socket


async def _first_of(emitter: EventEmitter, event: str, default: Any = None) -> Any:
    """Wait for `event` or `"error"` on `emitter`, whichever fires first.

    Resolves with the event's first argument (or `default` when it has none);
    raises the error's argument.
    """
    settled: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

    def on_event(*args: object) -> None:
        registration.release()
        if not settled.done():
            settled.set_result(args[0] if args else default)

    def on_error(error: BaseException) -> None:
        registration.release()
        if not settled.done():
            settled.set_exception(error)

    registration = emitter.listening({event: on_event, "error": on_error})
    with registration:
        return await settled


async def socket_assigned(request: ClientRequest) -> Socket:
    if request.socket is not None:
        return request.socket
    if request.error is not None:
        raise request.error
    return await _first_of(request, "socket")


async def socket_connected(socket: Socket) -> Socket:
    """Connection refused and resets during connect surface here."""
    if socket.connected:
        return socket
    if socket.error is not None:
        raise socket.error
    return await _first_of(socket, "connect", socket)


async def response_received(request: ClientRequest) -> IncomingResponse:
    """Peer resets, hang-ups and body streaming failures surface here."""
    if request.response is not None:
        return request.response
    if request.error is not None:
        raise request.error
    return await _first_of(request, "response")
