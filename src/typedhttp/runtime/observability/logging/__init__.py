"""Structured logging: bound context, renderers, trace correlation."""

from .logger import (
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
    level_number,
)

__all__ = [
    "TRACE",
    "LogSink",
    "NullLogger",
    "NULL_LOGGER",
    "BoundLogger",
    "LogEntry",
    "LogRenderer",
    "ConsoleRenderer",
    "JsonRenderer",
    "NoOpRenderer",
    "CaptureRenderer",
    "configure_logging",
    "get_logger",
    "level_number",
]
