# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Telemetry sink used by the HTTP layer.

Handlers talk to a :class:`TelemetrySink` instead of the OpenTelemetry SDK
directly, so the service runs (and is tested) with the no-op sink and only
the application factory decides whether spans and log events are exported.

Sink failures are never allowed to change a response: :func:`safe_emit` and
:func:`traced` catch and log them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol

from opentelemetry import trace
from opentelemetry.trace import INVALID_SPAN, Span, Status, StatusCode, Tracer

from otel_demo.shared.errors.base import AppError
from otel_demo.shared.logging import logger

Attributes = Mapping[str, Any]


class Severity(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


_LEVELS = {
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class TelemetrySink(Protocol):
    def emit(
        self, severity: Severity, message: str, attributes: Attributes | None = None
    ) -> None: ...

    def start_span(self, name: str, attributes: Attributes | None = None) -> Span: ...


class NullTelemetrySink(TelemetrySink):
    def emit(
        self, severity: Severity, message: str, attributes: Attributes | None = None
    ) -> None:
        return None

    def start_span(self, name: str, attributes: Attributes | None = None) -> Span:
        return INVALID_SPAN


class OtelTelemetrySink(TelemetrySink):
    """Spans from an OpenTelemetry tracer, events through an OTel-bound logger.

    With ``include_attributes`` off only the message is exported, which is
    how the auto-instrumented variant logs.
    """

    def __init__(
        self,
        *,
        tracer: Tracer,
        event_logger: logging.Logger,
        include_attributes: bool = True,
    ) -> None:
        self._tracer = tracer
        self._event_logger = event_logger
        self._include_attributes = include_attributes

    def emit(
        self, severity: Severity, message: str, attributes: Attributes | None = None
    ) -> None:
        extra: dict[str, Any] = {}
        if self._include_attributes:
            extra = {key: value for key, value in (attributes or {}).items() if value is not None}
            extra["log.level"] = severity.value
            extra["timestamp"] = datetime.now(UTC).isoformat()
        self._event_logger.log(_LEVELS[severity], message, extra=extra)

    def start_span(self, name: str, attributes: Attributes | None = None) -> Span:
        return self._tracer.start_span(name, attributes=dict(attributes or {}))


def safe_emit(
    sink: TelemetrySink,
    severity: Severity,
    message: str,
    attributes: Attributes | None = None,
) -> None:
    try:
        sink.emit(severity, message, attributes)
    except Exception as exc:
        logger.warning(f"telemetry.emit: dropped event {message!r}: {type(exc).__name__}: {exc}")


@contextmanager
def traced(
    sink: TelemetrySink, name: str, attributes: Attributes | None = None
) -> Iterator[Span]:
    """Run the block inside a span that is ended exactly once.

    :class:`AppError` is an expected outcome and is left for the caller to
    annotate; anything else is recorded on the span with ERROR status.
    """
    try:
        span = sink.start_span(name, attributes)
    except Exception as exc:
        logger.warning(f"telemetry.span: could not start {name}: {type(exc).__name__}: {exc}")
        span = INVALID_SPAN

    try:
        recording = span.is_recording()
    except Exception as exc:
        logger.warning(f"telemetry.span: {name} is unusable: {type(exc).__name__}: {exc}")
        recording = False

    try:
        if recording:
            with trace.use_span(
                span,
                end_on_exit=False,
                record_exception=False,
                set_status_on_exception=False,
            ):
                yield span
        else:
            yield span
    except AppError:
        raise
    except Exception as exc:
        with _span_guard("record", name):
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, type(exc).__name__))
        raise
    finally:
        with _span_guard("end", name):
            span.end()


@contextmanager
def _span_guard(action: str, name: str = "span") -> Iterator[None]:
    try:
        yield
    except Exception as exc:
        logger.warning(f"telemetry.span: could not {action} {name}: {type(exc).__name__}: {exc}")


def annotate(span: Span, attributes: Attributes) -> None:
    """Set attributes on ``span``, skipping ``None`` values."""
    with _span_guard("annotate"):
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)


def mark_error(span: Span, error: AppError, attributes: Attributes | None = None) -> None:
    annotate(span, {"error.type": error.code, **(attributes or {})})
    with _span_guard("set status on"):
        span.set_status(Status(StatusCode.ERROR, error.message))


def mark_ok(span: Span) -> None:
    with _span_guard("set status on"):
        span.set_status(Status(StatusCode.OK))


__all__ = [
    "Attributes",
    "NullTelemetrySink",
    "OtelTelemetrySink",
    "Severity",
    "TelemetrySink",
    "annotate",
    "mark_error",
    "mark_ok",
    "safe_emit",
    "traced",
]
