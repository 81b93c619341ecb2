"""Span identity and the active-span context variable."""

from __future__ import annotations

import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass


def _trace_id() -> str:
    return secrets.token_hex(16)


def _span_id() -> str:
    return secrets.token_hex(8)


@dataclass(slots=True, frozen=True)
class SpanContext:
    """Identity of one span within one trace.

    Attributes:
        trace_id: 32 hex chars, shared by every span of a trace
        span_id: 16 hex chars, unique per span
        parent_id: span_id of the parent, None for a root span
    """

    trace_id: str
    span_id: str
    parent_id: str | None = None

    @classmethod
    def new(cls) -> SpanContext:
        """Root context of a new trace."""
        return cls(trace_id=_trace_id(), span_id=_span_id())

    def child(self) -> SpanContext:
        return SpanContext(trace_id=self.trace_id, span_id=_span_id(), parent_id=self.span_id)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


_active: ContextVar[SpanContext | None] = ContextVar("active_span", default=None)


class TraceContext:
    """Access to the active span context of the current task."""

    __slots__ = ()

    @staticmethod
    def get() -> SpanContext | None:
        return _active.get()

    @staticmethod
    def current() -> SpanContext:
        """Active context, or a fresh root when none is active."""
        return _active.get() or SpanContext.new()


@contextmanager
def trace_context(span_context: SpanContext) -> Iterator[SpanContext]:
    """Make `span_context` the active one for the duration of the block."""
    token = _active.set(span_context)
    try:
        yield span_context
    finally:
        _active.reset(token)
