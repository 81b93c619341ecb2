"""Spans: timed records of one unit of work.

A span carries OpenTracing-style tags and logs. The request executor tags
its client span with `span.kind` and `peer.address`, and adds `error` and
`sampling.priority` when the request fails. Finishing a span hands it to
whatever the tracer registered as its sink; a span finishes once.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from typedhttp.foundation.errors import ErrorTrace, HttpClientError, JsonDict, classify_exception, trace_from_exc

if TYPE_CHECKING:
    from .context import SpanContext


class SpanKind(StrEnum):
    CLIENT = "client"
    INTERNAL = "internal"


class SpanStatus(StrEnum):
    UNSET = "unset"
    OK = "ok"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class SpanLog:
    """A timestamped log line attached to a span."""

    event: str
    at: float
    fields: JsonDict


@dataclass(slots=True)
class Span:
    """A started span. Mutable until finish().

    >>> span = Span("GET /users", SpanContext.new(), kind=SpanKind.CLIENT)
    >>> span.add_tags({"peer.address": "localhost:8080"}).finish()
    >>> span.status
    <SpanStatus.OK: 'ok'>
    """

    name: str
    context: SpanContext
    kind: SpanKind = SpanKind.INTERNAL
    tags: JsonDict = field(default_factory=dict)
    logs: list[SpanLog] = field(default_factory=list)
    started_at: float = field(default_factory=time.time)
    finished_at: float | None = None
    status: SpanStatus = SpanStatus.UNSET
    failure: ErrorTrace | None = None
    on_finish: Callable[[Span], None] | None = field(default=None, repr=False, compare=False)

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    @property
    def elapsed_ms(self) -> float | None:
        return None if self.finished_at is None else (self.finished_at - self.started_at) * 1000

    def add_tags(self, tags: JsonDict) -> Span:
        self.tags.update(tags)
        return self

    def log(self, event: str, **fields: object) -> Span:
        self.logs.append(SpanLog(event, time.time(), dict(fields)))
        return self

    def fail(self, exc: BaseException) -> Span:
        """Mark the span failed with a structured record of `exc`."""
        if isinstance(exc, HttpClientError):
            self.failure = exc.to_trace(self.name)
        else:
            self.failure = trace_from_exc(exc, operation=self.name, code=classify_exception(exc).value)
        self.status = SpanStatus.ERROR
        self.log("error", code=self.failure.error_code, message=self.failure.message)
        return self

    def finish(self) -> None:
        if self.finished:
            return
        self.finished_at = time.time()
        if self.status is SpanStatus.UNSET:
            # Tag-only failures (the executor's error tag) still count
            self.status = SpanStatus.ERROR if self.tags.get("error") else SpanStatus.OK
        if self.on_finish is not None:
            self.on_finish(self)

    def to_dict(self) -> JsonDict:
        """Flat JSON-ready view, one object per span."""
        ctx = self.context
        record: JsonDict = {
            "trace_id": ctx.trace_id,
            "span_id": ctx.span_id,
            "parent_id": ctx.parent_id,
            "name": self.name,
            "kind": str(self.kind),
            "status": str(self.status),
            "started_at": self.started_at,
            "elapsed_ms": self.elapsed_ms,
            "tags": dict(self.tags),
            "logs": [{"event": entry.event, "at": entry.at, **entry.fields} for entry in self.logs],
        }
        if self.failure is not None:
            record["failure"] = self.failure.model_dump(mode="json")
        return record
