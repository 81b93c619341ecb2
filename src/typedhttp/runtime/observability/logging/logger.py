"""Structured logging with bound context and trace correlation.

Request breadcrumbs are logged at `trace`, one step below `debug`, so the
default level stays quiet and `TYPEDHTTP_LOG_LEVEL=TRACE` shows every
lifecycle stage:

    >>> configure_logging(format="console", level="TRACE")
    >>> get_logger("billing").bind(request_id="1700000000000:1:1").trace("socket assigned", latency=0.4)

The request executor takes any `LogSink`; `NULL_LOGGER` is its silent default.
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Protocol, TextIO, runtime_checkable

import orjson

from typedhttp.foundation.errors import JsonDict, JsonValue

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def level_number(level: str | int) -> int:
    """`"trace"`, `"INFO"`, ... to the stdlib level number. Raises ValueError for unknown names."""
    if isinstance(level, int):
        return level
    number = logging.getLevelNamesMapping().get(level.upper())
    if number is None:
        raise ValueError(f"Unknown log level: {level}")
    return number


# ─────────────────────────────────────────────────────────────────────────────
# Sink protocol
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogSink(Protocol):
    def bind(self, **kw: JsonValue) -> LogSink: ...
    def trace(self, event: str, **kw: JsonValue) -> None: ...
    def warning(self, event: str, **kw: JsonValue) -> None: ...


class NullLogger:
    __slots__ = ()

    def bind(self, **kw: JsonValue) -> NullLogger:
        return self

    def trace(self, event: str, **kw: JsonValue) -> None:
        pass

    def warning(self, event: str, **kw: JsonValue) -> None:
        pass


NULL_LOGGER = NullLogger()


# ─────────────────────────────────────────────────────────────────────────────
# Entries and renderers
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class LogEntry:
    timestamp: float
    level: str
    event: str
    context: JsonDict

    def as_record(self) -> JsonDict:
        stamp = time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(self.timestamp))
        return {"timestamp": f"{stamp}.{int(self.timestamp * 1e6) % 1_000_000:06d}Z",
                "level": self.level, "event": self.event, **self.context}


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


_TINTS = {"trace": "\033[2m", "debug": "\033[2m", "info": "\033[32m", "warning": "\033[33m",
          "error": "\033[31m", "critical": "\033[31;1m"}


def _console_value(value: object) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value) if isinstance(value, int | float) else repr(value)


@dataclass(slots=True)
class ConsoleRenderer:
    """`HH:MM:SS.mmm [level] event key="value" ...`, keys sorted; tracebacks on their own lines."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None
    show_timestamp: bool = True

    def render(self, entry: LogEntry) -> None:
        tint = self.output.isatty() if self.colors is None else self.colors
        level = f"[{entry.level}]"
        if tint:
            level = f"{_TINTS.get(entry.level, '')}{level}\033[0m"
        words = [level, entry.event]
        if self.show_timestamp:
            words.insert(0, time.strftime("%H:%M:%S", time.localtime(entry.timestamp))
                         + f".{int(entry.timestamp * 1000) % 1000:03d}")
        words += [f"{k}={_console_value(v)}" for k, v in sorted(entry.context.items()) if k != "exc_info"]
        lines = [" ".join(words)]
        if "exc_info" in entry.context:
            lines.append(str(entry.context["exc_info"]).rstrip())
        self.output.write("\n".join(lines) + "\n")


@dataclass(slots=True)
class JsonRenderer:
    """One orjson line per entry."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        line = orjson.dumps(entry.as_record(), default=str, option=orjson.OPT_NON_STR_KEYS | orjson.OPT_APPEND_NEWLINE)
        self.output.write(line.decode())


class NoOpRenderer:
    __slots__ = ()

    def render(self, entry: LogEntry) -> None:
        pass


@dataclass(slots=True)
class CaptureRenderer:
    """Keeps entries in memory.

    >>> capture = CaptureRenderer()
    >>> BoundLogger(_renderer=capture, _level=TRACE).trace("socket assigned")
    >>> capture.events()
    ['socket assigned']
    """

    entries: list[LogEntry] = field(default_factory=list)

    def render(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def events(self, level: str | None = None) -> list[str]:
        return [e.event for e in self.entries if level in (None, e.level)]

    def clear(self) -> None:
        self.entries.clear()


# ─────────────────────────────────────────────────────────────────────────────
# Bound logger
# ─────────────────────────────────────────────────────────────────────────────


_installed_renderer: ContextVar[LogRenderer | None] = ContextVar("typedhttp_log_renderer", default=None)
_installed_level: ContextVar[int] = ContextVar("typedhttp_log_level", default=logging.INFO)


def _span_fields() -> JsonDict:
    """Ids of the active span so records can be joined with traces."""
    from ..tracing import TraceContext

    active = TraceContext.get()
    if active is None:
        return {}
    fields: JsonDict = {"trace_id": active.trace_id, "span_id": active.span_id}
    if active.parent_id:
        fields["parent_span_id"] = active.parent_id
    return fields


@dataclass(slots=True, frozen=True)
class BoundLogger:
    """Logger carrying a fixed context; `bind` and `unbind` return new loggers.

    Without an explicit renderer, records go to the one installed by
    `configure_logging` (a stderr console renderer if none is).
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int = logging.DEBUG

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return BoundLogger({**self.context, **kw}, self._renderer, self._level)

    def unbind(self, *keys: str) -> BoundLogger:
        return BoundLogger({k: v for k, v in self.context.items() if k not in keys}, self._renderer, self._level)

    def is_enabled_for(self, level: int) -> bool:
        return level >= self._level

    def log(self, level: int, event: str, **kw: JsonValue) -> None:
        if not self.is_enabled_for(level):
            return
        renderer = self._renderer or _installed_renderer.get()
        if renderer is None:
            renderer = ConsoleRenderer()
            _installed_renderer.set(renderer)
        name = logging.getLevelName(level).lower()
        renderer.render(LogEntry(time.time(), name, event, {**self.context, **kw, **_span_fields()}))

    def trace(self, event: str, **kw: JsonValue) -> None:
        self.log(TRACE, event, **kw)

    def debug(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.DEBUG, event, **kw)

    def info(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.INFO, event, **kw)

    def warning(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.WARNING, event, **kw)

    def error(self, event: str, **kw: JsonValue) -> None:
        self.log(logging.ERROR, event, **kw)

    def exception(self, event: str, **kw: JsonValue) -> None:
        """`error` plus the traceback of the exception being handled, under `exc_info`."""
        self.log(logging.ERROR, event, exc_info=traceback.format_exc(), **kw)


# ─────────────────────────────────────────────────────────────────────────────
# Global configuration
# ─────────────────────────────────────────────────────────────────────────────


def configure_logging(
    format: str = "console",  # noqa: A002
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Install the renderer and level used by `get_logger` loggers.

    Raises:
        ValueError: unknown format ("console", "json" and "none" are known) or level
    """
    number = level_number(level)
    renderer: LogRenderer
    if format == "console":
        renderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
    elif format == "json":
        renderer = JsonRenderer(output=output or sys.stdout)
    elif format == "none":
        renderer = NoOpRenderer()
    else:
        raise ValueError(f"Unknown log format {format!r}; expected console, json or none")
    _installed_level.set(number)
    _installed_renderer.set(renderer)
    return renderer


def get_logger(name: str | None = None, **context: JsonValue) -> BoundLogger:
    """Logger at the configured level; `name` is bound as `logger`."""
    if name:
        context["logger"] = name
    return BoundLogger(context, None, _installed_level.get())
