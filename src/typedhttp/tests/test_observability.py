"""Tests for structured logging, tracing and timing."""

from __future__ import annotations

import io
import time
from contextvars import copy_context

import orjson
import pytest

from typedhttp.foundation.codecs import CodecIssue
from typedhttp.foundation.errors import ConnectionReset, ResponseDecodeError
from typedhttp.runtime.observability import (
    NOOP_TRACER,
    NULL_LOGGER,
    TRACE,
    BoundLogger,
    CaptureRenderer,
    ConsoleExporter,
    ConsoleRenderer,
    InMemoryExporter,
    JsonExporter,
    JsonRenderer,
    LogSink,
    NoOpRenderer,
    SpanKind,
    SpanStatus,
    SpanTracer,
    Timer,
    Tracer,
    configure_logging,
    configure_tracing,
    get_logger,
    get_tracer,
)
from typedhttp.runtime.observability.logging import level_number


class TestLogging:
    def test_bind_is_immutable(self) -> None:
        capture = CaptureRenderer()
        base = BoundLogger(context={"service": "billing"}, _renderer=capture)
        bound = base.bind(request_id="1:2:3")

        bound.info("sent")
        base.info("plain")
        assert capture.entries[0].context == {"service": "billing", "request_id": "1:2:3"}
        assert capture.entries[1].context == {"service": "billing"}
        assert bound.unbind("service").context == {"request_id": "1:2:3"}

    def test_levels_filter(self) -> None:
        capture = CaptureRenderer()
        log = BoundLogger(_renderer=capture, _level=level_number("info"))
        log.trace("hidden")
        log.debug("hidden")
        log.warning("shown")
        assert capture.events() == ["shown"]
        assert capture.entries[0].level == "warning"
        assert not log.is_enabled_for(TRACE)

    def test_trace_level(self) -> None:
        assert level_number("trace") == TRACE == 5
        capture = CaptureRenderer()
        BoundLogger(_renderer=capture, _level=TRACE).trace("socket assigned", latency=0.5)
        assert capture.events("trace") == ["socket assigned"]
        with pytest.raises(ValueError):
            level_number("loud")

    def test_json_renderer(self) -> None:
        out = io.StringIO()
        BoundLogger(_renderer=JsonRenderer(output=out)).info("response", status=200)
        record = orjson.loads(out.getvalue())
        assert record["event"] == "response"
        assert record["level"] == "info"
        assert record["status"] == 200

    def test_console_renderer(self) -> None:
        out = io.StringIO()
        BoundLogger(_renderer=ConsoleRenderer(output=out, show_timestamp=False)).info("sent", url="http://x")
        assert out.getvalue() == '[info] sent url="http://x"\n'

    def test_exception_includes_traceback(self) -> None:
        capture = CaptureRenderer()
        try:
            raise ConnectionReset()
        except ConnectionReset:
            BoundLogger(_renderer=capture).exception("failed")
        assert "ConnectionReset" in capture.entries[0].context["exc_info"]

    def test_null_logger_satisfies_sink(self) -> None:
        assert isinstance(NULL_LOGGER, LogSink)
        assert isinstance(BoundLogger(), LogSink)
        assert NULL_LOGGER.bind(a=1) is NULL_LOGGER

    def test_configure_logging(self) -> None:
        def configure() -> BoundLogger:
            renderer = configure_logging(format="none", level="TRACE")
            assert isinstance(renderer, NoOpRenderer)
            return get_logger("client", region="eu")

        log = copy_context().run(configure)
        assert log.context == {"region": "eu", "logger": "client"}
        assert log.is_enabled_for(TRACE)
        with pytest.raises(ValueError):
            copy_context().run(configure_logging, "xml")

    def test_records_inside_a_span_carry_its_ids(self) -> None:
        capture = CaptureRenderer()
        tracer = Tracer(exporter=InMemoryExporter())
        with tracer.span("batch") as span:
            BoundLogger(_renderer=capture).info("inside")
        BoundLogger(_renderer=capture).info("outside")

        inside, outside = capture.entries
        assert inside.context["trace_id"] == span.context.trace_id
        assert inside.context["span_id"] == span.context.span_id
        assert "trace_id" not in outside.context


class TestTracing:
    def test_tracer_satisfies_span_tracer(self) -> None:
        assert isinstance(Tracer(exporter=InMemoryExporter()), SpanTracer)
        assert isinstance(NOOP_TRACER, SpanTracer)
        assert NOOP_TRACER.start_span("x").add_tags({"a": 1}).context is None

    def test_parenting_and_export(self) -> None:
        exporter = InMemoryExporter()
        tracer = Tracer(service_name="svc", exporter=exporter)
        with tracer.span("outer", kind=SpanKind.CLIENT) as outer:
            inner = tracer.start_span("inner", tags={"peer.address": "localhost:80"})
            inner.finish()
            inner.finish()

        assert [s.name for s in exporter.spans] == ["inner", "outer"]
        assert inner.context.parent_id == outer.context.span_id
        assert inner.tags == {"service.name": "svc", "peer.address": "localhost:80"}
        assert inner.status is SpanStatus.OK
        assert inner.elapsed_ms is not None

    def test_exception_in_span_is_recorded(self) -> None:
        exporter = InMemoryExporter()
        with pytest.raises(ConnectionReset), Tracer(exporter=exporter).span("call"):
            raise ConnectionReset()
        [span] = exporter.spans
        assert span.status is SpanStatus.ERROR
        assert span.failure is not None
        assert span.failure.error_code == "CONNECTION_RESET"
        assert span.to_dict()["logs"][0]["event"] == "error"

    def test_client_errors_keep_their_own_record(self) -> None:
        exporter = InMemoryExporter()
        issue = CodecIssue(loc=("name",), msg="Field required", type="missing")
        with pytest.raises(ResponseDecodeError), Tracer(exporter=exporter).span("decode"):
            raise ResponseDecodeError([issue], codec_name="Webtask")
        [span] = exporter.spans
        assert span.failure is not None
        assert span.failure.error_code == "RESPONSE_DECODE"
        assert span.failure.details == "name: Field required [missing]"
        assert span.failure.stage == "decode"

    def test_disabled_tracer_does_not_export(self) -> None:
        exporter = InMemoryExporter()
        Tracer(exporter=exporter, enabled=False).start_span("quiet").finish()
        assert exporter.spans == []

    def test_exporters_write_one_line_per_span(self) -> None:
        console, lines = io.StringIO(), io.StringIO()
        span = Tracer(exporter=ConsoleExporter(output=console)).start_span("GET /", kind=SpanKind.CLIENT)
        span.add_tags({"error": True})
        span.finish()
        JsonExporter(output=lines).export([span])

        assert " error GET / [client] " in console.getvalue()
        record = orjson.loads(lines.getvalue())
        assert record["status"] == "error"
        assert record["tags"]["error"] is True
        assert record["span_id"] == span.context.span_id

    def test_configure_tracing(self) -> None:
        def configure() -> Tracer:
            configure_tracing("svc", "memory")
            return get_tracer()

        tracer = copy_context().run(configure)
        assert tracer.service_name == "svc"
        assert isinstance(tracer.exporter, InMemoryExporter)
        assert not get_tracer().enabled
        with pytest.raises(ValueError):
            configure_tracing("svc", "zipkin")


def test_timer() -> None:
    timer = Timer()
    time.sleep(0.01)
    assert timer.elapsed_ms() >= 10
    assert abs(timer.started_ms - time.time() * 1000) < 5000
