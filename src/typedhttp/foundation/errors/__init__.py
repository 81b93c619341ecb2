"""Error handling for typedhttp.

- ErrorCode / classify_exception: classification of failures
- HttpClientError and subclasses: the exceptions the client raises
- Result/Ok/Err: codec decode outcomes
- ErrorTrace: structured failure records for logs and spans
"""

from .errors import (
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
)
from .result import Err, Ok, Result
from .types import (
    ErrorTrace,
    JsonDict,
    JsonPrimitive,
    JsonValue,
    trace,
    trace_from_exc,
)

__all__ = [
    # Classification
    "ErrorCode", "classify_exception",
    # Exceptions
    "HttpClientError", "InvalidPayloadError", "ConfigurationError", "UnsupportedProtocolError",
    "EncodeError", "TransportError", "ConnectionRefused", "ConnectionReset", "SocketHangUp",
    "TransportTimeout", "ResponseJsonError", "ResponseDecodeError",
    # Result
    "Result", "Ok", "Err",
    # Records
    "ErrorTrace", "trace", "trace_from_exc",
    # JSON aliases
    "JsonDict", "JsonPrimitive", "JsonValue",
]
