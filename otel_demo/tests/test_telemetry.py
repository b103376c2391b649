from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import INVALID_SPAN, INVALID_SPAN_CONTEXT, NonRecordingSpan, StatusCode

from otel_demo.domain.users.exceptions import SessionNotFoundError
from otel_demo.infrastructure.telemetry import (
    NullTelemetrySink,
    OtelTelemetrySink,
    Severity,
    annotate,
    create_telemetry,
    mark_error,
    mark_ok,
    safe_emit,
    traced,
)
from otel_demo.shared.config import AppConfig, TelemetryConfig, TelemetryMode


class _Capture(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture()
def exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture()
def tracer_provider(exporter: InMemorySpanExporter) -> Iterator[TracerProvider]:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    yield provider
    provider.shutdown()


@pytest.fixture()
def capture() -> Iterator[_Capture]:
    handler = _Capture()
    event_logger = logging.getLogger("otel_demo.tests.events")
    event_logger.setLevel(logging.DEBUG)
    event_logger.propagate = False
    event_logger.addHandler(handler)
    yield handler
    event_logger.removeHandler(handler)


def _sink(
    tracer_provider: TracerProvider, include_attributes: bool = True
) -> OtelTelemetrySink:
    return OtelTelemetrySink(
        tracer=tracer_provider.get_tracer("tests"),
        event_logger=logging.getLogger("otel_demo.tests.events"),
        include_attributes=include_attributes,
    )


def test_traced_ends_span_once_and_makes_it_current(
    tracer_provider: TracerProvider, exporter: InMemorySpanExporter
) -> None:
    sink = _sink(tracer_provider)

    with traced(sink, "user.list", {"operation.type": "list_users"}) as span:
        assert trace.get_current_span() is span
        span.set_attribute("users.count", 0)

    (finished,) = exporter.get_finished_spans()
    assert finished.name == "user.list"
    assert finished.attributes["operation.type"] == "list_users"
    assert finished.attributes["users.count"] == 0
    assert trace.get_current_span() is INVALID_SPAN


def test_traced_leaves_expected_errors_to_the_caller(
    tracer_provider: TracerProvider, exporter: InMemorySpanExporter
) -> None:
    sink = _sink(tracer_provider)

    with pytest.raises(SessionNotFoundError):
        with traced(sink, "user.logout") as span:
            error = SessionNotFoundError()
            mark_error(span, error, {"session.id": "sess_1_aaaaaaaaa", "error.field": None})
            raise error

    (finished,) = exporter.get_finished_spans()
    assert finished.status.status_code is StatusCode.ERROR
    assert finished.status.description == "Session 不存在或已過期"
    assert finished.attributes["error.type"] == "session_not_found"
    assert "error.field" not in finished.attributes
    assert list(finished.events) == []


def test_traced_records_unexpected_errors(
    tracer_provider: TracerProvider, exporter: InMemorySpanExporter
) -> None:
    sink = _sink(tracer_provider)

    with pytest.raises(KeyError):
        with traced(sink, "user.current"):
            raise KeyError("sessionId")

    (finished,) = exporter.get_finished_spans()
    assert finished.status.status_code is StatusCode.ERROR
    assert [event.name for event in finished.events] == ["exception"]


def test_traced_survives_a_failing_sink() -> None:
    class BrokenSink(NullTelemetrySink):
        def start_span(self, name, attributes=None):
            raise RuntimeError("no tracer")

    with traced(BrokenSink(), "user.register") as span:
        assert span is INVALID_SPAN


def test_null_sink_is_inert() -> None:
    sink = NullTelemetrySink()

    span = sink.start_span("user.login", {"http.method": "POST"})
    sink.emit(Severity.INFO, "ignored", {"user.username": "alice"})

    assert span is INVALID_SPAN
    assert not span.is_recording()


def test_safe_emit_swallows_sink_errors() -> None:
    class BrokenSink(NullTelemetrySink):
        def emit(self, severity, message, attributes=None):
            raise ConnectionError("collector down")

    safe_emit(BrokenSink(), Severity.ERROR, "登入失敗")


def test_manual_events_carry_attributes(
    tracer_provider: TracerProvider, capture: _Capture
) -> None:
    sink = _sink(tracer_provider)

    sink.emit(Severity.WARN, "用戶登入成功: alice", {"user.username": "alice", "session.id": None})

    (record,) = capture.records
    assert record.levelno == logging.WARNING
    assert record.getMessage() == "用戶登入成功: alice"
    assert getattr(record, "user.username") == "alice"
    assert getattr(record, "log.level") == "warn"
    assert hasattr(record, "timestamp")
    assert not hasattr(record, "session.id")


def test_auto_events_are_message_only(
    tracer_provider: TracerProvider, capture: _Capture
) -> None:
    sink = _sink(tracer_provider, include_attributes=False)

    sink.emit(Severity.INFO, "收到 HTTP 請求", {"http.method": "GET"})

    (record,) = capture.records
    assert record.levelno == logging.INFO
    assert not hasattr(record, "http.method")
    assert not hasattr(record, "log.level")


def test_create_telemetry_off_is_null() -> None:
    telemetry = create_telemetry(AppConfig(telemetry=TelemetryConfig(mode=TelemetryMode.OFF)))

    assert isinstance(telemetry.sink, NullTelemetrySink)
    assert telemetry.tracer_provider is None
    assert telemetry.logger_provider is None


def test_create_telemetry_manual_builds_providers() -> None:
    telemetry = create_telemetry(
        AppConfig(telemetry=TelemetryConfig(mode=TelemetryMode.MANUAL, service_name="svc"))
    )
    try:
        assert isinstance(telemetry.sink, OtelTelemetrySink)
        assert telemetry.tracer_provider is not None
        assert telemetry.logger_provider is not None
        resource = telemetry.tracer_provider.resource
        assert resource.attributes["service.name"] == "svc"
    finally:
        telemetry.shutdown()


class _ExplodingSpan(NonRecordingSpan):
    def is_recording(self) -> bool:
        raise RuntimeError("span exporter gone")

    def set_attribute(self, key, value) -> None:
        raise RuntimeError("span exporter gone")

    def set_status(self, status, description=None) -> None:
        raise RuntimeError("span exporter gone")

    def record_exception(self, exception, attributes=None, timestamp=None, escaped=False) -> None:
        raise RuntimeError("span exporter gone")

    def end(self, end_time=None) -> None:
        raise RuntimeError("span exporter gone")


class _ExplodingSpanSink(NullTelemetrySink):
    def start_span(self, name, attributes=None):
        return _ExplodingSpan(INVALID_SPAN_CONTEXT)


def test_span_helpers_swallow_span_errors() -> None:
    span = _ExplodingSpan(INVALID_SPAN_CONTEXT)

    annotate(span, {"user.username": "alice"})
    mark_ok(span)
    mark_error(span, SessionNotFoundError(), {"session.id": "sess_1_aaaaaaaaa"})


def test_traced_keeps_the_original_exception_when_the_span_fails() -> None:
    with pytest.raises(KeyError):
        with traced(_ExplodingSpanSink(), "user.current"):
            raise KeyError("sessionId")

    with traced(_ExplodingSpanSink(), "user.list") as span:
        annotate(span, {"users.count": 0})
