"""Shared fixtures: a local HTTP/1.1 server and default agent cleanup."""

from __future__ import annotations

import asyncio
import socket
import struct
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

import orjson
import pytest
import pytest_asyncio

from typedhttp.transport import default_agents

# Handler verdicts that end the connection instead of replying
RESET = "reset"
HANG_UP = "hang-up"
# Passed as the handler: close every connection as soon as it is accepted
CLOSE_ON_ACCEPT = "close-on-accept"


@dataclass(slots=True)
class ReceivedRequest:
    method: str
    path: str
    headers: dict[str, str]
    body: bytes

    def json(self) -> Any:
        return orjson.loads(self.body)


@dataclass(slots=True)
class Reply:
    """Response to send. Bodies that are not bytes are JSON-encoded."""

    status: int = 200
    body: Any = b""
    headers: dict[str, str] = field(default_factory=dict)


Handler = Callable[[ReceivedRequest], Any] | str


class LocalServer:
    """HTTP/1.1 server on 127.0.0.1 that records every request it reads.

    The handler returns a `Reply`, or `RESET` to abort the connection with a
    TCP reset, or `HANG_UP` to close it without answering.
    """

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.requests: list[ReceivedRequest] = []
        self.connections = 0
        self._server: asyncio.Server | None = None
        self._writers: set[asyncio.StreamWriter] = set()

    @property
    def base_url(self) -> str:
        assert self._server is not None
        host, port = self._server.sockets[0].getsockname()[:2]
        return f"http://{host}:{port}"

    @property
    def last(self) -> ReceivedRequest:
        return self.requests[-1]

    async def start(self) -> LocalServer:
        self._server = await asyncio.start_server(self._serve, "127.0.0.1", 0)
        return self

    async def close(self) -> None:
        if self._server is None:
            return
        self._server.close()
        for writer in list(self._writers):
            writer.close()
        await self._server.wait_closed()

    async def _serve(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        self._writers.add(writer)
        try:
            if self.handler is CLOSE_ON_ACCEPT:
                return
            while (request := await _read_request(reader)) is not None:
                self.requests.append(request)
                reply = self.handler(request)
                if reply is RESET:
                    writer.get_extra_info("socket").setsockopt(
                        socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0),
                    )
                    writer.transport.abort()
                    return
                if reply is HANG_UP:
                    return
                writer.write(_render(reply, head=request.method == "HEAD"))
                await writer.drain()
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            self._writers.discard(writer)
            writer.close()


async def _read_request(reader: asyncio.StreamReader) -> ReceivedRequest | None:
    try:
        head = await reader.readuntil(b"\r\n\r\n")
    except asyncio.IncompleteReadError:
        return None
    request_line, *lines = head.decode("latin-1").split("\r\n")
    method, path, _ = request_line.split(" ", 2)
    headers: dict[str, str] = {}
    for line in lines:
        if line:
            name, _, value = line.partition(":")
            headers[name.strip().lower()] = value.strip()
    body = await reader.readexactly(int(headers.get("content-length", 0)))
    return ReceivedRequest(method, path, headers, body)


def _render(reply: Reply, *, head: bool) -> bytes:
    body = reply.body if isinstance(reply.body, bytes) else orjson.dumps(reply.body)
    headers = {"Content-Type": "application/json", "Content-Length": str(len(body)), **reply.headers}
    lines = [f"HTTP/1.1 {reply.status} {HTTPStatus(reply.status).phrase}"]
    lines += [f"{name}: {value}" for name, value in headers.items()]
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1") + (b"" if head else body)


def reply_json(body: Any, status: int = 200) -> Handler:
    """Handler answering every request with the same JSON body."""
    return lambda request: Reply(status, body)


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest_asyncio.fixture(autouse=True)
async def _close_default_agents() -> AsyncIterator[None]:
    # Pools are bound to the event loop that opened their connections
    yield
    await default_agents.aclose()


@pytest_asyncio.fixture
async def serve() -> AsyncIterator[Callable[[Handler], Awaitable[LocalServer]]]:
    """Start local servers for one test; all of them are closed afterwards."""
    servers: list[LocalServer] = []

    async def start(handler: Handler) -> LocalServer:
        server = await LocalServer(handler).start()
        servers.append(server)
        return server

    yield start
    for server in servers:
        await server.close()


@pytest.fixture
def refused_url() -> str:
    """URL of a local port nothing listens on."""
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}"
