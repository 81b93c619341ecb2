"""Where finished spans go.

`ConsoleExporter` writes one readable line per span, `JsonExporter` one
orjson line per span, `InMemoryExporter` keeps them for assertions and
`NoOpExporter` drops them.
"""

from __future__ import annotations

import sys
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

import orjson

if TYPE_CHECKING:
    from .span import Span

_ANSI = {"ok": "\033[32m", "error": "\033[31m", "unset": "\033[2m", "end": "\033[0m"}


@runtime_checkable
class Exporter(Protocol):
    def export(self, spans: Iterable[Span]) -> None: ...
    def shutdown(self) -> None: ...


def format_span(span: Span, *, colors: bool = False, with_tags: bool = False) -> str:
    """`12:00:01.250 ok GET http://host/ [client] 3.2ms` plus optional tags."""
    clock = time.strftime("%H:%M:%S", time.localtime(span.started_at)) + f".{int(span.started_at * 1000) % 1000:03d}"
    status = str(span.status)
    if colors:
        status = f"{_ANSI[status]}{status}{_ANSI['end']}"
    elapsed = "open" if span.elapsed_ms is None else f"{span.elapsed_ms:.1f}ms"
    nesting = "  " if span.context.parent_id else ""
    line = f"{clock} {status} {nesting}{span.name} [{span.kind}] {elapsed}"
    if span.failure is not None:
        line += f" error={span.failure.message!r}"
    if with_tags:
        line += "".join(f" {k}={v!r}" for k, v in span.tags.items())
    return line


class NoOpExporter:
    __slots__ = ()

    def export(self, spans: Iterable[Span]) -> None:
        pass

    def shutdown(self) -> None:
        pass


@dataclass(slots=True)
class ConsoleExporter:
    """Readable span lines, coloured when `output` is a terminal."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    verbose: bool = False

    def export(self, spans: Iterable[Span]) -> None:
        colors = self.output.isatty()
        for span in spans:
            self.output.write(format_span(span, colors=colors, with_tags=self.verbose) + "\n")

    def shutdown(self) -> None:
        self.output.flush()


@dataclass(slots=True)
class JsonExporter:
    output: TextIO = field(default_factory=lambda: sys.stdout)

    def export(self, spans: Iterable[Span]) -> None:
        for span in spans:
            self.output.write(orjson.dumps(span.to_dict(), default=str, option=orjson.OPT_APPEND_NEWLINE).decode())

    def shutdown(self) -> None:
        self.output.flush()


@dataclass(slots=True)
class InMemoryExporter:
    """Keeps finished spans, in finishing order.

    >>> exporter = InMemoryExporter()
    >>> Tracer(exporter=exporter).start_span("GET /").finish()
    >>> exporter.names()
    ['GET /']
    """

    spans: list[Span] = field(default_factory=list)

    def export(self, spans: Iterable[Span]) -> None:
        self.spans.extend(spans)

    def names(self) -> list[str]:
        return [s.name for s in self.spans]

    def find(self, name: str) -> Span | None:
        return next((s for s in self.spans if s.name == name), None)

    def clear(self) -> None:
        self.spans.clear()

    def shutdown(self) -> None:
        pass
