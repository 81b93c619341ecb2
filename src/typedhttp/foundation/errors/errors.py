"""Error taxonomy for request execution.

Every failure the client raises derives from `HttpClientError` and carries an
`ErrorCode`. The concrete classes also derive from the builtin exception a
caller would naturally catch (`TypeError` for local contract violations,
`ValueError` for payloads that fail to encode or decode, `ConnectionError`
for transport failures).

Nothing here is retried; the codes exist for logging, span tagging and
callers' own decisions.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import TYPE_CHECKING, ClassVar

from .types import ErrorTrace, trace

if TYPE_CHECKING:
    from collections.abc import Sequence

    from typedhttp.foundation.codecs import CodecIssue


class ErrorCode(StrEnum):
    """Machine-readable classification of request failures."""
    INVALID_PAYLOAD = "INVALID_PAYLOAD"
    CONFIGURATION = "CONFIGURATION"
    UNSUPPORTED_PROTOCOL = "UNSUPPORTED_PROTOCOL"
    ENCODE_ERROR = "ENCODE_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    CONNECTION_RESET = "CONNECTION_RESET"
    SOCKET_HANG_UP = "SOCKET_HANG_UP"
    TIMEOUT = "TIMEOUT"
    RESPONSE_JSON = "RESPONSE_JSON"
    RESPONSE_DECODE = "RESPONSE_DECODE"
    UNKNOWN = "UNKNOWN"


# Pattern -> code for exceptions raised outside this package
_PATTERN_CODES: dict[str, ErrorCode] = {
    "refused": ErrorCode.CONNECTION_REFUSED,
    "reset": ErrorCode.CONNECTION_RESET,
    "hang up": ErrorCode.SOCKET_HANG_UP,
    "disconnected": ErrorCode.SOCKET_HANG_UP,
    "timeout": ErrorCode.TIMEOUT,
    "timed out": ErrorCode.TIMEOUT,
    "connection": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "json": ErrorCode.RESPONSE_JSON,
    "decode": ErrorCode.RESPONSE_DECODE,
    "validation": ErrorCode.RESPONSE_DECODE,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES)


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map an exception to an error code.

    Exceptions from this package report their own code; anything else is
    matched by pattern on its type name and message.
    """
    if isinstance(exc, HttpClientError):
        return exc.code
    return _classify_cached(f"{type(exc).__name__} {exc}")


# ═══════════════════════════════════════════════════════════════════════════════
# Exceptions
# ═══════════════════════════════════════════════════════════════════════════════


class HttpClientError(Exception):
    """Base class for all errors raised by the client."""

    default_code: ClassVar[ErrorCode] = ErrorCode.UNKNOWN
    default_message: ClassVar[str] = "HTTP client error"

    def __init__(self, message: str | None = None, *, code: ErrorCode | None = None) -> None:
        self.code = code or self.default_code
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.default_message

    def to_trace(self, operation: str = "") -> ErrorTrace:
        """Structured record of this error for logs and spans."""
        return trace(self.message, code=self.code.value, details=type(self).__name__, stage=operation)


class InvalidPayloadError(HttpClientError, TypeError):
    """A payload failed its codec's validity check. Raised before any I/O."""

    default_code = ErrorCode.INVALID_PAYLOAD
    default_message = "Invalid request payload"


class ConfigurationError(HttpClientError, TypeError):
    """The client was used in a way its configuration does not allow."""

    default_code = ErrorCode.CONFIGURATION
    default_message = "Invalid client configuration"


class UnsupportedProtocolError(ConfigurationError):
    """The resolved URL uses a scheme other than http or https."""

    default_code = ErrorCode.UNSUPPORTED_PROTOCOL

    def __init__(self, protocol: str) -> None:
        self.protocol = protocol
        super().__init__(f"Unsupported protocol '{protocol}:'")


class EncodeError(HttpClientError, ValueError):
    """Encoding the request payload or serialising it to JSON failed."""

    default_code = ErrorCode.ENCODE_ERROR

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Error encoding request payload as JSON: {cause}")


class TransportError(HttpClientError, ConnectionError):
    """The transport failed at some stage of the exchange."""

    default_code = ErrorCode.NETWORK_ERROR
    default_message = "network error"


class ConnectionRefused(TransportError):
    default_code = ErrorCode.CONNECTION_REFUSED
    default_message = "connect ECONNREFUSED"


class ConnectionReset(TransportError):
    """The peer reset the connection."""

    default_code = ErrorCode.CONNECTION_RESET
    default_message = "read ECONNRESET"


class SocketHangUp(ConnectionReset):
    """The peer closed the connection without sending a response.

    A connection reset as far as callers are concerned: `except ConnectionReset`
    also catches it, while the code and message keep the two apart.
    """

    default_code = ErrorCode.SOCKET_HANG_UP
    default_message = "socket hang up"


class TransportTimeout(TransportError):
    default_code = ErrorCode.TIMEOUT
    default_message = "transport timed out"


class ResponseJsonError(HttpClientError, ValueError):
    """The response body is not valid JSON text."""

    default_code = ErrorCode.RESPONSE_JSON

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Error parsing response payload as JSON: {cause}")


class ResponseDecodeError(HttpClientError, ValueError):
    """The response JSON does not satisfy the output codec.

    Attributes:
        issues: Structured diagnostics from the codec (never empty)
        codec_name: Name of the codec that rejected the payload
    """

    default_code = ErrorCode.RESPONSE_DECODE

    def __init__(self, issues: Sequence[CodecIssue], *, codec_name: str = "") -> None:
        self.issues = tuple(issues)
        self.codec_name = codec_name
        target = f" as {codec_name}" if codec_name else ""
        super().__init__(f"Error decoding response payload{target}: {len(self.issues)} issue(s)")

    def to_trace(self, operation: str = "") -> ErrorTrace:
        details = "\n".join(str(i) for i in self.issues)
        return trace(self.message, code=self.code.value, details=details, stage=operation)
