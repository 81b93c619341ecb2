"""typedhttp - Typed HTTP client for JSON APIs.

Request and response payloads are described by codecs built on pydantic; the
transport is httpx. Every request walks an explicit socket lifecycle so
failures surface at the stage they happen, classified and never retried.

Single Requests:
    >>> from pydantic import BaseModel
    >>> from typedhttp import codec, create_request_function
    >>>
    >>> class User(BaseModel):
    ...     id: int
    ...     name: str
    >>>
    >>> fetch_user = create_request_function(
    ...     base_url="http://users.internal:8080",
    ...     response_codec=codec(User),
    ... )
    >>> response = await fetch_user("GET", "/users/42")
    >>> response.payload
    User(id=42, name='Ada')

Service Manifests:
    >>> from typedhttp import Operation, ServiceManifest, create_service_client, exact
    >>>
    >>> manifest = ServiceManifest(
    ...     base_url="http://users.internal:8080",
    ...     operations={
    ...         "rename": Operation(
    ...             method="PATCH",
    ...             path_template="/users/{id}",
    ...             input_codec=exact(Rename),
    ...             output_codec=codec(User),
    ...         ),
    ...     },
    ... )
    >>> client = create_service_client(manifest)
    >>> await client.rename(params={"id": 42}, data={"name": "Grace"})

Observability:
    >>> from typedhttp import configure_observability, get_logger, get_tracer
    >>> configure_observability()  # from TYPEDHTTP_* environment settings
    >>> fetch = create_request_function(logger=get_logger("users"), tracer=get_tracer())
"""

from __future__ import annotations

__version__ = "0.1.0"

# Codecs
from .foundation.codecs import ANY, Codec, CodecIssue, TypeCodec, codec, exact

# Errors
from .foundation.errors import (
    ConfigurationError,
    ConnectionRefused,
    ConnectionReset,
    EncodeError,
    ErrorCode,
    HttpClientError,
    InvalidPayloadError,
    ResponseDecodeError,
    ResponseJsonError,
    SocketHangUp,
    TransportError,
    TransportTimeout,
    UnsupportedProtocolError,
    classify_exception,
    Err,
    Ok,
    Result,
)

# Configuration
from .foundation.config import TypedHttpSettings, get_settings

# Byte streams
from .io.streaming import ChunkAccumulator, PayloadStream, read_body, read_payload

# Events
from .runtime.events import EventEmitter, Registration

# Observability
from .runtime.observability import (
    NULL_LOGGER,
    NOOP_TRACER,
    LogSink,
    SpanTracer,
    TracerSpan,
    configure_observability,
    get_logger,
    get_tracer,
)

# Transport
from .transport import Agent, ClientRequest, DefaultAgents, IncomingResponse, Socket, default_agents

# Client
from .client import (
    DEFAULT_HEADERS,
    HttpMethod,
    Operation,
    OperationArguments,
    RequestFunction,
    Response,
    ServiceClient,
    ServiceManifest,
    create_request_function,
    create_service_client,
    response_received,
    socket_assigned,
    socket_connected,
)

__all__ = [
    "__version__",
    # Codecs
    "Codec",
    "CodecIssue",
    "TypeCodec",
    "codec",
    "exact",
    "ANY",
    # Errors
    "ErrorCode",
    "classify_exception",
    "HttpClientError",
    "InvalidPayloadError",
    "ConfigurationError",
    "UnsupportedProtocolError",
    "EncodeError",
    "TransportError",
    "ConnectionRefused",
    "ConnectionReset",
    "SocketHangUp",
    "TransportTimeout",
    "ResponseJsonError",
    "ResponseDecodeError",
    "Result",
    "Ok",
    "Err",
    # Configuration
    "TypedHttpSettings",
    "get_settings",
    # Byte streams
    "PayloadStream",
    "ChunkAccumulator",
    "read_body",
    "read_payload",
    # Events
    "EventEmitter",
    "Registration",
    # Observability
    "LogSink",
    "NULL_LOGGER",
    "SpanTracer",
    "TracerSpan",
    "NOOP_TRACER",
    "configure_observability",
    "get_logger",
    "get_tracer",
    # Transport
    "Agent",
    "DefaultAgents",
    "default_agents",
    "ClientRequest",
    "IncomingResponse",
    "Socket",
    # Executor
    "HttpMethod",
    "Response",
    "RequestFunction",
    "create_request_function",
    "DEFAULT_HEADERS",
    "socket_assigned",
    "socket_connected",
    "response_received",
    # Dispatcher
    "Operation",
    "OperationArguments",
    "ServiceManifest",
    "ServiceClient",
    "create_service_client",
]
