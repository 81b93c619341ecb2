"""Request executor: one typed HTTP request, end to end.

A request function is configured once (base URL, default headers, codecs,
logger, tracer, agent) and then called per request:

    >>> fetch_user = create_request_function(
    ...     base_url="http://users.internal:8080",
    ...     response_codec=codec(User),
    ... )
    >>> response = await fetch_user("GET", "/users/42")
    >>> response.payload.name
    'Ada'

Each call:

1. builds a request context (id, URL, merged headers, bound logger, timer);
2. checks the payload against the request codec before any I/O;
3. encodes the payload to JSON;
4. picks an agent for the URL's scheme;
5. starts a client span when a tracer is configured;
6. walks the socket lifecycle (assigned, connected), streams the body,
   and waits for the response headers;
7. reads and decodes the body with the response codec, or drains it;
8. returns a `Response`.

Nothing is retried and no timeouts are set; every failure propagates to the
caller. Lifecycle breadcrumbs are logged at the `trace` level when a logger
is supplied.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Mapping
from contextlib import suppress
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import httpx

from typedhttp.foundation.errors import (
    ConfigurationError,
    EncodeError,
    HttpClientError,
    InvalidPayloadError,
    UnsupportedProtocolError,
)
from typedhttp.io.streaming import CONTENT_TYPE, PayloadStream, encode_json, read_payload
from typedhttp.runtime.observability import NULL_LOGGER, NOOP_TRACER, LogSink, SpanTracer, Timer, TracerSpan
from typedhttp.transport import SUPPORTED_SCHEMES, Agent, ClientRequest, default_agents

from .lifecycle import response_received, socket_assigned, socket_connected

if TYPE_CHECKING:
    from typedhttp.foundation.codecs import Codec
    from typedhttp.runtime.observability import SpanContext

T = TypeVar("T")
I = TypeVar("I")  # noqa: E741
O = TypeVar("O")  # noqa: E741


class HttpMethod(StrEnum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"

    @classmethod
    def parse(cls, method: str) -> HttpMethod:
        """Case-insensitive lookup. Raises ValueError for unknown verbs."""
        return cls(method.upper())


DEFAULT_HEADERS: Mapping[str, str] = MappingProxyType({
    "Accept": "application/json",
    "Content-Type": CONTENT_TYPE,
})

# Process-wide: a request id is "{started_ms}:{function_id}:{call_number}"
_function_ids = itertools.count()
_call_numbers = itertools.count()


def merge_headers(*layers: Mapping[str, Any] | None) -> dict[str, str]:
    """Merge header mappings case-insensitively; later layers win and keep their spelling.

    >>> merge_headers({"accept": "text/plain"}, {"Accept": "application/json"})
    {'Accept': 'application/json'}
    """
    merged: dict[str, tuple[str, str]] = {}
    for layer in layers:
        for name, value in (layer or {}).items():
            merged[name.lower()] = (name, str(value))
    return dict(merged.values())


def resolve_url(path: str, base_url: str | None = None) -> httpx.URL:
    """Join `path` onto `base_url` the way a browser resolves a link."""
    return httpx.URL(base_url).join(path) if base_url else httpx.URL(path)


def _peer_address(url: httpx.URL) -> str:
    return f"{url.host}:{url.port}" if url.port else url.host


@dataclass(frozen=True, slots=True)
class Response(Generic[T]):
    """Outcome of a request.

    Attributes:
        status_code: HTTP status
        headers: Response headers with lower-cased names
        payload: Decoded body, or None when no response codec is configured
    """

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    payload: T | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(slots=True)
class RequestContext:
    """State of one call, from context creation until the call returns or raises."""

    id: str
    method: HttpMethod
    url: httpx.URL
    headers: dict[str, str]
    logger: LogSink
    timer: Timer
    breadcrumbs: bool = False
    parent_span: TracerSpan | SpanContext | None = None
    span: TracerSpan | None = None

    def breadcrumb(self, event: str) -> None:
        """Trace-level progress record. Never raises."""
        if self.breadcrumbs:
            with suppress(Exception):
                self.logger.trace(event, latency=self.timer.elapsed_ms())

    def warn(self, event: str, error: HttpClientError) -> None:
        if self.breadcrumbs:
            with suppress(Exception):
                failure = error.to_trace(f"{self.method} {self.url}")
                self.logger.warning(event, error=failure.message, error_code=failure.error_code, stage=failure.stage)


class RequestFunction(Generic[I, O]):
    """Callable that performs typed requests with fixed defaults.

    Args:
        agent: Connection agent; takes precedence over a per-call agent
        base_url: URL that request paths are resolved against
        headers: Default headers (override DEFAULT_HEADERS, overridden per call)
        logger: Default logger for breadcrumbs
        request_codec: Validates and encodes request payloads
        response_codec: Decodes response bodies; without one the body is discarded
        tracer: Starts one client span per request
    """

    __slots__ = (
        "agent", "base_url", "headers", "logger", "request_codec", "response_codec", "tracer", "function_id",
    )

    def __init__(
        self,
        *,
        agent: Agent | None = None,
        base_url: str | None = None,
        headers: Mapping[str, str] | None = None,
        logger: LogSink | None = None,
        request_codec: Codec[I] | None = None,
        response_codec: Codec[O] | None = None,
        tracer: SpanTracer | None = None,
    ) -> None:
        self.agent = agent
        self.base_url = base_url
        self.headers: Mapping[str, str] = MappingProxyType(dict(headers or {}))
        self.logger = logger
        self.request_codec = request_codec
        self.response_codec = response_codec
        self.tracer: SpanTracer = tracer or NOOP_TRACER
        self.function_id = next(_function_ids)

    async def __call__(
        self,
        method: HttpMethod | str,
        path: str,
        *,
        agent: Agent | None = None,
        headers: Mapping[str, str] | None = None,
        payload: I | None = None,
        span: TracerSpan | SpanContext | None = None,
        logger: LogSink | None = None,
    ) -> Response[O]:
        """Perform a request, encoding `payload` with the request codec.

        Raises:
            InvalidPayloadError: payload fails the request codec (no I/O happens)
            ConfigurationError: payload given without a request codec
            EncodeError: the payload could not be encoded as JSON
            UnsupportedProtocolError: the URL scheme is not http or https
            TransportError: the exchange failed at the socket level
            ResponseJsonError / ResponseDecodeError: the body could not be decoded
        """
        ctx = self._context(method, path, headers, logger, span)
        body = self._encode(payload, ctx)
        return await self._execute(ctx, body, agent)

    async def send(
        self,
        method: HttpMethod | str,
        path: str,
        *,
        body: bytes | str | None = None,
        agent: Agent | None = None,
        headers: Mapping[str, str] | None = None,
        span: TracerSpan | SpanContext | None = None,
        logger: LogSink | None = None,
    ) -> Response[O]:
        """Perform a request with an already-encoded JSON body, skipping the request codec."""
        ctx = self._context(method, path, headers, logger, span)
        return await self._execute(ctx, body.encode("utf-8") if isinstance(body, str) else body, agent)

    def with_defaults(self, **overrides: Any) -> RequestFunction[Any, Any]:
        """New request function with these options replaced; headers are merged, overrides winning."""
        options: dict[str, Any] = {
            "agent": self.agent, "base_url": self.base_url, "logger": self.logger,
            "request_codec": self.request_codec, "response_codec": self.response_codec,
            "tracer": None if self.tracer is NOOP_TRACER else self.tracer,
        }
        headers = merge_headers(self.headers, overrides.pop("headers", None))
        options.update(overrides)
        return RequestFunction(headers=headers, **options)

    # ─── Steps ─────────────────────────────────────────────────────────

    def _context(
        self,
        method: HttpMethod | str,
        path: str,
        headers: Mapping[str, str] | None,
        logger: LogSink | None,
        span: TracerSpan | SpanContext | None,
    ) -> RequestContext:
        timer = Timer()
        request_id = f"{timer.started_ms}:{self.function_id}:{next(_call_numbers)}"
        url = resolve_url(path, self.base_url)
        sink = logger or self.logger
        return RequestContext(
            id=request_id,
            method=HttpMethod.parse(method),
            url=url,
            headers=merge_headers(DEFAULT_HEADERS, self.headers, headers),
            logger=(sink or NULL_LOGGER).bind(request_id=request_id, url=str(url)),
            timer=timer,
            breadcrumbs=sink is not None,
            parent_span=span,
        )

    def _encode(self, payload: I | None, ctx: RequestContext) -> bytes | None:
        if self.request_codec is None:
            if payload is not None:
                raise ConfigurationError("A payload cannot be supplied without defining a request codec")
            return None
        if not self.request_codec.is_valid(payload):
            err = InvalidPayloadError()
            ctx.warn("invalid request payload", err)
            raise err
        try:
            return encode_json(self.request_codec.encode(payload))
        except Exception as exc:
            err = EncodeError(exc)
            ctx.warn("error encoding request payload", err)
            raise err from exc

    def _agent_for(self, scheme: str, agent: Agent | None) -> Agent:
        if scheme not in SUPPORTED_SCHEMES:
            raise UnsupportedProtocolError(scheme)
        return self.agent or agent or default_agents.get(scheme)

    async def _execute(self, ctx: RequestContext, body: bytes | None, agent: Agent | None) -> Response[O]:
        selected = self._agent_for(ctx.url.scheme, agent)
        ctx.span = self.tracer.start_span(
            f"{ctx.method} {ctx.url}",
            child_of=ctx.parent_span,
            tags={"span.kind": "client", "peer.address": _peer_address(ctx.url)},
        )
        request: ClientRequest | None = None
        body_task: asyncio.Task[None] | None = None
        try:
            request = selected.request(
                ctx.method, str(ctx.url), ctx.headers, content_length=len(body) if body is not None else None,
            )
            socket = await socket_assigned(request)
            ctx.breadcrumb("socket assigned")
            await socket_connected(socket)
            ctx.breadcrumb("socket connected")

            if body is not None:
                body_task = asyncio.create_task(_stream_body(request, PayloadStream(body)))
            else:
                await request.end()

            response = await response_received(request)
            ctx.breadcrumb("response headers received")
            try:
                if self.response_codec is None:
                    await response.drain()
                    return Response(response.status_code, response.headers)
                payload = await read_payload(response.aiter_bytes(), self.response_codec)
                ctx.breadcrumb("response payload received")
                return Response(response.status_code, response.headers, payload)
            finally:
                await response.aclose()
        except Exception:
            with suppress(Exception):
                ctx.span.add_tags({"error": True, "sampling.priority": 1})
            raise
        finally:
            if body_task is not None and not body_task.done():
                body_task.cancel()
            if request is not None and request.response is None:
                request.destroy()
            with suppress(Exception):
                ctx.span.finish()


async def _stream_body(request: ClientRequest, stream: PayloadStream) -> None:
    """Pipe the payload into the request; failures are handed to the request as its error."""
    try:
        async for chunk in stream:
            await request.write(chunk)
        await request.end()
    except Exception as exc:
        request.destroy(exc)


def create_request_function(
    *,
    agent: Agent | None = None,
    base_url: str | None = None,
    headers: Mapping[str, str] | None = None,
    logger: LogSink | None = None,
    request_codec: Codec[I] | None = None,
    response_codec: Codec[O] | None = None,
    tracer: SpanTracer | None = None,
) -> RequestFunction[I, O]:
    """Build a RequestFunction. See RequestFunction for the options."""
    return RequestFunction(
        agent=agent,
        base_url=base_url,
        headers=headers,
        logger=logger,
        request_codec=request_codec,
        response_codec=response_codec,
        tracer=tracer,
    )
