# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from flask import Flask
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.flask import FlaskInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor, SimpleLogRecordProcessor
from opentelemetry.sdk.resources import (
    DEPLOYMENT_ENVIRONMENT,
    SERVICE_NAME,
    SERVICE_VERSION,
    Resource,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from sqlalchemy.engine import Engine

from otel_demo.shared.config import AppConfig, TelemetryMode
from otel_demo.shared.logging import logger

from .sink import NullTelemetrySink, OtelTelemetrySink, TelemetrySink

EVENT_LOGGER_NAME = "otel_demo.events"


@dataclass
class Telemetry:
    mode: TelemetryMode
    sink: TelemetrySink = field(default_factory=NullTelemetrySink)
    tracer_provider: TracerProvider | None = None
    logger_provider: LoggerProvider | None = None

    def instrument(self, app: Flask, engine: Engine | None = None) -> None:
        if self.mode is not TelemetryMode.AUTO:
            return
        FlaskInstrumentor().instrument_app(app, tracer_provider=self.tracer_provider)
        if engine is not None:
            SQLAlchemyInstrumentor().instrument(
                engine=engine, tracer_provider=self.tracer_provider
            )
        logger.info("telemetry: flask/sqlalchemy auto-instrumentation enabled")

    def shutdown(self) -> None:
        try:
            if self.tracer_provider is not None:
                self.tracer_provider.shutdown()
                logger.info("telemetry: tracer provider shut down")
            if self.logger_provider is not None:
                self.logger_provider.shutdown()
                logger.info("telemetry: logger provider shut down")
        except Exception as exc:
            logger.error(f"telemetry: shutdown failed: {type(exc).__name__}: {exc}")


def build_resource(config: AppConfig) -> Resource:
    return Resource.create(
        {
            SERVICE_NAME: config.telemetry.service_name,
            SERVICE_VERSION: config.telemetry.service_version,
            DEPLOYMENT_ENVIRONMENT: config.app_env,
        }
    )


def build_event_logger(
    logger_provider: LoggerProvider, name: str = EVENT_LOGGER_NAME
) -> logging.Logger:
    event_logger = logging.getLogger(name)
    event_logger.setLevel(logging.DEBUG)
    # Events go to the OTel exporter only, never back through the root handler.
    event_logger.propagate = False
    for handler in list(event_logger.handlers):
        if isinstance(handler, LoggingHandler):
            event_logger.removeHandler(handler)
    event_logger.addHandler(LoggingHandler(level=logging.DEBUG, logger_provider=logger_provider))
    return event_logger


def create_telemetry(config: AppConfig) -> Telemetry:
    mode = config.telemetry.mode
    if mode is TelemetryMode.OFF:
        return Telemetry(mode=mode)

    resource = build_resource(config)

    tracer_provider = TracerProvider(resource=resource, shutdown_on_exit=False)
    tracer_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=config.telemetry.traces_endpoint))
    )

    logger_provider = LoggerProvider(resource=resource, shutdown_on_exit=False)
    log_exporter = OTLPLogExporter(endpoint=config.telemetry.logs_endpoint)
    processor: SimpleLogRecordProcessor | BatchLogRecordProcessor
    if mode is TelemetryMode.MANUAL:
        processor = SimpleLogRecordProcessor(log_exporter)
    else:
        processor = BatchLogRecordProcessor(log_exporter)
    logger_provider.add_log_record_processor(processor)

    if mode is TelemetryMode.MANUAL:
        tracer = tracer_provider.get_tracer(
            config.telemetry.service_name, config.telemetry.service_version
        )
    else:
        # Request and query spans come from the instrumentors.
        tracer = trace.NoOpTracer()

    sink = OtelTelemetrySink(
        tracer=tracer,
        event_logger=build_event_logger(logger_provider),
        include_attributes=mode is TelemetryMode.MANUAL,
    )
    logger.info(
        f"telemetry: mode={mode.value} traces={config.telemetry.traces_endpoint} "
        f"logs={config.telemetry.logs_endpoint}"
    )
    return Telemetry(
        mode=mode,
        sink=sink,
        tracer_provider=tracer_provider,
        logger_provider=logger_provider,
    )


__all__ = [
    "EVENT_LOGGER_NAME",
    "Telemetry",
    "build_event_logger",
    "build_resource",
    "create_telemetry",
]
