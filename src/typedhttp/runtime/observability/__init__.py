"""Observability: structured logging, tracing and timing.

Logging and tracing are configured once per process (or from settings with
`configure_observability`); records emitted inside an active span carry its
trace and span ids.
"""

from .logging import (
    NULL_LOGGER,
    TRACE,
    BoundLogger,
    CaptureRenderer,
    ConsoleRenderer,
    JsonRenderer,
    LogEntry,
    LogRenderer,
    LogSink,
    NoOpRenderer,
    NullLogger,
    configure_logging,
    get_logger,
)
from .setup import configure_observability
from .timer import Timer
from .tracing import (
    NOOP_TRACER,
    ConsoleExporter,
    Exporter,
    InMemoryExporter,
    JsonExporter,
    NoOpExporter,
    NoOpTracer,
    Span,
    SpanContext,
    SpanKind,
    SpanStatus,
    SpanTracer,
    TraceContext,
    Tracer,
    TracerSpan,
    configure_tracing,
    get_tracer,
    trace_context,
)

__all__ = [
    # Logging
    "TRACE", "LogSink", "NullLogger", "NULL_LOGGER", "BoundLogger", "LogEntry", "LogRenderer",
    "ConsoleRenderer", "JsonRenderer", "NoOpRenderer", "CaptureRenderer", "configure_logging", "get_logger",
    # Tracing
    "SpanTracer", "TracerSpan", "NoOpTracer", "NOOP_TRACER", "Tracer", "Span", "SpanContext", "SpanKind",
    "SpanStatus", "TraceContext", "trace_context", "configure_tracing", "get_tracer",
    "Exporter", "ConsoleExporter", "JsonExporter", "InMemoryExporter", "NoOpExporter",
    # Setup & timing
    "configure_observability", "Timer",
]
