"""Event-emitting view of one HTTP exchange.

`ClientRequest` drives `httpx.AsyncClient.send(stream=True)` in a task and
reports what happens to it through events, observed via httpx's `trace`
request extension:

- `"socket"` (on the request): a socket was assigned, either because a new
  TCP connect started or because a pooled connection started sending headers
- `"connect"` (on the socket): the TCP connect completed
- `"response"` (on the request): response headers arrived
- `"error"` (on the request, and on the socket while it is still connecting)

Every state change is recorded on the object before it is emitted, so a
listener attached late can check `socket`, `connected`, `response` and
`error` instead of waiting for an event that already fired.

The request body is written with `write()` and finished with `end()`. Chunks
pass through a one-slot queue that httpx pulls from while sending, so each
write waits until the transport has taken the previous chunk.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from typing import Any

import httpx

from typedhttp.foundation.errors import HttpClientError, TransportError
from typedhttp.runtime.events import EventEmitter

from .errors import classify_transport_error

_END = None


class Socket(EventEmitter):
    """The connection an exchange runs over.

    Attributes:
        host: Peer host
        port: Peer port
        reused: Taken from the pool rather than newly connected
        connected: TCP connect completed
        error: Failure recorded while connecting
    """

    def __init__(self, host: str, port: int | None, *, reused: bool = False) -> None:
        super().__init__()
        self.host = host
        self.port = port
        self.reused = reused
        self.connected = False
        self.error: BaseException | None = None

    @property
    def peer_address(self) -> str:
        return f"{self.host}:{self.port}" if self.port else self.host

    def __repr__(self) -> str:
        state = "connected" if self.connected else "failed" if self.error else "connecting"
        return f"Socket({self.peer_address}, {state}{', reused' if self.reused else ''})"


class IncomingResponse:
    """Status, headers and body stream of a received response."""

    __slots__ = ("_response", "status_code", "headers")

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self.status_code = response.status_code
        self.headers: dict[str, str] = {k.lower(): v for k, v in response.headers.items()}

    @property
    def http_version(self) -> str:
        return self._response.http_version

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Decoded body chunks. Transport failures are raised as TransportError."""
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.TransportError as exc:
            raise classify_transport_error(exc) from exc

    async def drain(self) -> None:
        """Read and discard the body so the connection can return to the pool."""
        async for _ in self.aiter_bytes():
            pass

    async def aclose(self) -> None:
        await self._response.aclose()

    @property
    def is_closed(self) -> bool:
        return self._response.is_closed

    def __repr__(self) -> str:
        return f"IncomingResponse({self.status_code})"


class ClientRequest(EventEmitter):
    """One in-flight exchange. Created and started by `Agent.request()`.

    Args:
        client: The pool the exchange runs on
        method: Upper-case HTTP method
        url: Absolute URL
        headers: Request headers
        content_length: Body size in bytes, or None for a request without a body
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        headers: Mapping[str, str],
        *,
        content_length: int | None = None,
    ) -> None:
        super().__init__()
        self.method = method
        self.url = httpx.URL(url)
        self.content_length = content_length
        self.socket: Socket | None = None
        self.response: IncomingResponse | None = None
        self.error: BaseException | None = None
        self.finished = content_length is None
        self._body: asyncio.Queue[bytes | None] = asyncio.Queue(maxsize=1)

        request_headers = dict(headers)
        if content_length is not None:
            # An explicit length keeps httpx from switching to chunked encoding
            request_headers["Content-Length"] = str(content_length)
        self._request = client.build_request(
            method, self.url, headers=request_headers,
            content=self._body_chunks() if content_length is not None else None,
            extensions={"trace": self._on_trace},
        )
        self._client = client
        self._task: asyncio.Task[None] | None = None

    def start(self) -> ClientRequest:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run(), name=f"{self.method} {self.url}")
        return self

    # ─── Body ──────────────────────────────────────────────────────────

    async def write(self, chunk: bytes) -> None:
        """Queue one body chunk; returns once the transport can take more."""
        if self.finished:
            raise RuntimeError("write after end")
        await self._put(chunk)

    async def end(self) -> None:
        """Finish the body. Requests without a body are already finished."""
        if self.finished:
            return
        self.finished = True
        await self._put(_END)

    async def _put(self, item: bytes | None) -> None:
        if self.error is not None:
            raise self.error
        if self._task is None or self._task.done():
            raise TransportError("request is no longer in flight")
        put = asyncio.ensure_future(self._body.put(item))
        await asyncio.wait((put, self._task), return_when=asyncio.FIRST_COMPLETED)
        if not put.done():
            put.cancel()
            raise self.error or TransportError("request finished before its body was written")

    async def _body_chunks(self) -> AsyncIterator[bytes]:
        while (chunk := await self._body.get()) is not _END:
            yield chunk

    # ─── Lifecycle ─────────────────────────────────────────────────────

    def destroy(self, error: BaseException | None = None) -> None:
        """Abort the exchange, recording and emitting `error` if given."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if error is not None:
            self._fail(error)

    async def _run(self) -> None:
        try:
            response = await self._client.send(self._request, stream=True)
        except Exception as exc:
            self._fail(exc if isinstance(exc, HttpClientError) else classify_transport_error(exc))
            return
        self.response = IncomingResponse(response)
        self.emit("response", self.response)

    def _fail(self, error: BaseException) -> None:
        if self.error is not None:
            return
        self.error = error
        if (socket := self.socket) is not None and not socket.connected:
            socket.error = error
            socket.emit("error", error)
        self.emit("error", error)

    def _assign(self, socket: Socket) -> None:
        self.socket = socket
        self.emit("socket", socket)

    async def _on_trace(self, event: str, info: dict[str, Any]) -> None:
        match event:
            case "connection.connect_tcp.started" if self.socket is None:
                self._assign(Socket(str(info.get("host", self.url.host)), info.get("port", self.url.port)))
            case "connection.connect_tcp.complete" if self.socket is not None and not self.socket.connected:
                self.socket.connected = True
                self.socket.emit("connect")
            case "http11.send_request_headers.started" if self.socket is None:
                socket = Socket(self.url.host, self.url.port, reused=True)
                socket.connected = True
                self._assign(socket)
                socket.emit("connect")

    def __repr__(self) -> str:
        return f"ClientRequest({self.method} {self.url})"
