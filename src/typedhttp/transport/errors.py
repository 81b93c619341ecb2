"""Classification of transport failures.

httpx wraps OS-level socket errors in its own exception types, which in turn
wrap httpcore's. Classification walks the whole cause chain (including
exception groups raised by multi-address connects) and picks the most
specific `TransportError` subclass; the original exception becomes the
`__cause__` of the result.
"""

from __future__ import annotations

import errno
from collections.abc import Callable, Iterator

import httpx

from typedhttp.foundation.errors import (
    ConnectionRefused,
    ConnectionReset,
    SocketHangUp,
    TransportError,
    TransportTimeout,
)


def _chain(exc: BaseException) -> Iterator[BaseException]:
    """Every exception reachable from `exc` through causes, contexts and groups."""
    seen: set[int] = set()
    stack = [exc]
    while stack:
        e = stack.pop()
        if id(e) in seen:
            continue
        seen.add(id(e))
        yield e
        if isinstance(e, BaseExceptionGroup):
            stack.extend(reversed(e.exceptions))
        stack.extend(c for c in (e.__context__, e.__cause__) if c is not None)


def _refused(e: BaseException) -> bool:
    return isinstance(e, ConnectionRefusedError) or (
        isinstance(e, OSError) and e.errno == errno.ECONNREFUSED
    ) or (isinstance(e, httpx.ConnectError) and "refused" in str(e).lower())


def _reset(e: BaseException) -> bool:
    return isinstance(e, (ConnectionResetError, BrokenPipeError)) or (
        isinstance(e, OSError) and e.errno in (errno.ECONNRESET, errno.EPIPE)
    )


# Most specific first
_RULES: tuple[tuple[Callable[[BaseException], bool], type[TransportError]], ...] = (
    (_refused, ConnectionRefused),
    (_reset, ConnectionReset),
    (lambda e: isinstance(e, httpx.TimeoutException), TransportTimeout),
    (lambda e: isinstance(e, httpx.RemoteProtocolError), SocketHangUp),
    (lambda e: isinstance(e, (httpx.ReadError, httpx.WriteError)), ConnectionReset),
)


def classify_transport_error(exc: BaseException) -> TransportError:
    """Map a transport exception onto a TransportError, chained to the original.

    >>> classify_transport_error(ConnectionRefusedError(111, "refused")).message
    'connect ECONNREFUSED'
    """
    if isinstance(exc, TransportError):
        return exc
    chain = tuple(_chain(exc))
    for matches, cls in _RULES:
        if any(matches(e) for e in chain):
            err: TransportError = cls()
            break
    else:
        err = TransportError(str(exc) or None)
    err.__cause__ = exc
    return err
