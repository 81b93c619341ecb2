"""Client: request executor, socket lifecycle and manifest dispatcher."""

from .executor import (
    DEFAULT_HEADERS,
    HttpMethod,
    RequestContext,
    RequestFunction,
    Response,
    create_request_function,
    merge_headers,
    resolve_url,
)
from .lifecycle import response_received, socket_assigned, socket_connected
from .service import (
    USER_AGENT,
    Operation,
    OperationArguments,
    ServiceClient,
    ServiceManifest,
    create_service_client,
)

__all__ = [
    # Executor
    "HttpMethod", "Response", "RequestContext", "RequestFunction", "create_request_function",
    "DEFAULT_HEADERS", "merge_headers", "resolve_url",
    # Lifecycle
    "socket_assigned", "socket_connected", "response_received",
    # Dispatcher
    "Operation", "OperationArguments", "ServiceManifest", "ServiceClient", "create_service_client", "USER_AGENT",
]
