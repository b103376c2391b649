# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import secrets
import time

from flask import Flask, Response, g, request

from otel_demo.infrastructure.observability import record_request
from otel_demo.infrastructure.telemetry import Severity, TelemetrySink, safe_emit
from otel_demo.shared.logging import (
    clear_correlation_id,
    get_correlation_id,
    logger,
    set_correlation_id,
)

REQUEST_ID_HEADER = "X-Request-ID"


def _get_client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    return request.remote_addr or "unknown"


def _endpoint_label() -> str:
    rule = request.url_rule
    return rule.rule if rule is not None else "unmatched"


def _log_request_start(debug_mode: bool) -> None:
    ip_address = _get_client_ip()

    if debug_mode:
        logger.info(
            f"Request started: {request.method} {request.path} "
            f"from {ip_address}, query_keys={sorted(request.args.keys())}, "
            f"body_size={len(request.data)}"
        )
    else:
        logger.info(f"Request: {request.method} {request.path} from {ip_address}")


def _log_request_end(debug_mode: bool, status_code: int, duration: float) -> None:
    if debug_mode:
        logger.info(
            f"Request completed: {request.method} {request.path} "
            f"status={status_code}, duration={duration:.3f}s, "
            f"from {_get_client_ip()}"
        )
    else:
        logger.info(
            f"Response: {request.method} {request.path} "
            f"status={status_code}, duration={duration:.3f}s"
        )


def configure_request_logging(
    app: Flask,
    *,
    telemetry: TelemetrySink,
    debug_mode: bool = False,
    metrics_enabled: bool = True,
) -> None:
    @app.before_request
    def _before_request() -> None:
        request_id = request.headers.get(REQUEST_ID_HEADER) or secrets.token_urlsafe(8)
        set_correlation_id(request_id)
        g.request_id = request_id
        g.request_start_time = time.perf_counter()

        _log_request_start(debug_mode)
        safe_emit(
            telemetry,
            Severity.INFO,
            "收到 HTTP 請求",
            {
                "http.method": request.method,
                "http.url": request.full_path.rstrip("?"),
                "http.target": request.path,
                "http.user_agent": request.headers.get("User-Agent") or "unknown",
                "request.id": request_id,
            },
        )

    @app.after_request
    def _after_request(response: Response) -> Response:
        start_time = getattr(g, "request_start_time", time.perf_counter())
        duration = time.perf_counter() - start_time
        _log_request_end(debug_mode, response.status_code, duration)
        if metrics_enabled:
            record_request(_endpoint_label(), response.status_code, duration)

        response.headers.setdefault(REQUEST_ID_HEADER, get_correlation_id())
        return response

    @app.teardown_request
    def _teardown_request(exc: BaseException | None) -> None:
        if exc is not None:
            if debug_mode:
                logger.opt(exception=exc).error(
                    f"Request error: {request.method} {request.path} "
                    f"from {_get_client_ip()}"
                )
            else:
                logger.error(
                    f"Request error: {type(exc).__name__} on "
                    f"{request.method} {request.path}"
                )

        clear_correlation_id()


__all__ = ["REQUEST_ID_HEADER", "configure_request_logging"]
