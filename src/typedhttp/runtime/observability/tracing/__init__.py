"""Tracing: span identity, spans, tracer and exporters."""

from .context import SpanContext, TraceContext, trace_context
from .exporter import ConsoleExporter, Exporter, InMemoryExporter, JsonExporter, NoOpExporter, format_span
from .span import Span, SpanKind, SpanLog, SpanStatus
from .tracer import (
    NOOP_SPAN,
    NOOP_TRACER,
    NoOpSpan,
    NoOpTracer,
    SpanTracer,
    Tracer,
    TracerSpan,
    configure_tracing,
    get_tracer,
)

__all__ = [
    # Context
    "SpanContext", "TraceContext", "trace_context",
    # Span
    "Span", "SpanLog", "SpanKind", "SpanStatus",
    # Tracer
    "Tracer", "configure_tracing", "get_tracer",
    "SpanTracer", "TracerSpan", "NoOpTracer", "NoOpSpan", "NOOP_TRACER", "NOOP_SPAN",
    # Exporters
    "Exporter", "ConsoleExporter", "JsonExporter", "InMemoryExporter", "NoOpExporter", "format_span",
]
