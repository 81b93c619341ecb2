"""Tracers.

The request executor needs only `SpanTracer`: `start_span(name, *, child_of,
tags)` returning something with `add_tags`, `finish` and `context`.
`Tracer` is the in-tree implementation, `NoOpTracer` the default.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from typedhttp.foundation.errors import JsonDict

from .context import SpanContext, TraceContext, trace_context
from .exporter import ConsoleExporter, Exporter, InMemoryExporter, JsonExporter, NoOpExporter
from .span import Span, SpanKind

_global_tracer: ContextVar[Tracer | None] = ContextVar("typedhttp_tracer", default=None)


# ─────────────────────────────────────────────────────────────────────────────
# What the request core depends on
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class TracerSpan(Protocol):
    @property
    def context(self) -> SpanContext | None: ...
    def add_tags(self, tags: JsonDict) -> object: ...
    def finish(self) -> None: ...


@runtime_checkable
class SpanTracer(Protocol):
    def start_span(
        self, name: str, *, child_of: TracerSpan | SpanContext | None = None, tags: JsonDict | None = None,
    ) -> TracerSpan: ...


class NoOpSpan:
    __slots__ = ()

    context: SpanContext | None = None

    def add_tags(self, tags: JsonDict) -> NoOpSpan:
        return self

    def finish(self) -> None:
        pass


NOOP_SPAN = NoOpSpan()


class NoOpTracer:
    __slots__ = ()

    def start_span(
        self, name: str, *, child_of: TracerSpan | SpanContext | None = None, tags: JsonDict | None = None,
    ) -> NoOpSpan:
        return NOOP_SPAN


NOOP_TRACER = NoOpTracer()


# ─────────────────────────────────────────────────────────────────────────────
# Tracer
# ─────────────────────────────────────────────────────────────────────────────


def _parent_of(child_of: TracerSpan | SpanContext | None) -> SpanContext | None:
    if child_of is None:
        return TraceContext.get()
    return child_of if isinstance(child_of, SpanContext) else child_of.context


@dataclass(slots=True)
class Tracer:
    """Starts spans and hands finished ones to an exporter.

    >>> tracer = Tracer(service_name="billing", exporter=ConsoleExporter())
    >>> with tracer.span("sync invoices") as span:
    ...     span.add_tags({"invoices": 3})

    Every span is tagged with `service.name`. A disabled tracer still builds
    spans but exports nothing.
    """

    service_name: str = "typedhttp"
    exporter: Exporter = field(default_factory=ConsoleExporter)
    enabled: bool = True

    def start_span(
        self,
        name: str,
        *,
        child_of: TracerSpan | SpanContext | None = None,
        tags: JsonDict | None = None,
        kind: SpanKind | None = None,
    ) -> Span:
        """Span under `child_of`, else under the active span, else a new trace. Caller finishes it.

        Without `kind`, a `span.kind` tag of "client" makes a client span.
        """
        if kind is None:
            kind = SpanKind.CLIENT if (tags or {}).get("span.kind") == SpanKind.CLIENT else SpanKind.INTERNAL
        parent = _parent_of(child_of)
        return Span(
            name,
            parent.child() if parent is not None else SpanContext.new(),
            kind=kind,
            tags={"service.name": self.service_name, **(tags or {})},
            on_finish=self._finished,
        )

    @contextmanager
    def span(self, name: str, kind: SpanKind = SpanKind.INTERNAL, tags: JsonDict | None = None) -> Iterator[Span]:
        """Span active for the block; an escaping exception marks it failed."""
        span = self.start_span(name, tags=tags, kind=kind)
        try:
            with trace_context(span.context):
                yield span
        except BaseException as exc:
            span.fail(exc)
            raise
        finally:
            span.finish()

    def _finished(self, span: Span) -> None:
        if self.enabled:
            self.exporter.export([span])

    def install(self) -> Tracer:
        """Make this the tracer `get_tracer()` returns in the current context."""
        _global_tracer.set(self)
        return self

    def shutdown(self) -> None:
        self.exporter.shutdown()


def get_tracer() -> Tracer:
    """Installed tracer, or a disabled one."""
    return _global_tracer.get() or Tracer(exporter=NoOpExporter(), enabled=False)


_EXPORTERS: dict[str, Callable[[bool], Exporter]] = {
    "console": lambda verbose: ConsoleExporter(verbose=verbose),
    "json": lambda _: JsonExporter(),
    "memory": lambda _: InMemoryExporter(),
    "noop": lambda _: NoOpExporter(),
    "none": lambda _: NoOpExporter(),
}


def configure_tracing(
    service_name: str = "typedhttp",
    exporter: str | Exporter = "console",
    *,
    verbose: bool = False,
) -> Tracer:
    """Install a tracer exporting to `exporter`: a name from console/json/memory/noop, or an instance.

    Raises:
        ValueError: unknown exporter name
    """
    if isinstance(exporter, str):
        if exporter not in _EXPORTERS:
            raise ValueError(f"Unknown exporter {exporter!r}; expected one of {', '.join(_EXPORTERS)}")
        exporter = _EXPORTERS[exporter](verbose)
    return Tracer(service_name=service_name, exporter=exporter).install()
