# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from otel_demo.shared.logging import get_correlation_id, logger

from .base import AppError

INTERNAL_ERROR = "internal_error"


def handle_app_error(error: AppError) -> tuple[Response, HTTPStatus]:
    response = jsonify(error.to_dict())
    return response, error.status


def _where() -> str:
    return f"{request.method} {request.path} request_id={get_correlation_id()}"


def register_error_handler(
    app: Flask,
    *,
    debug_mode: bool = False,
    default_status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR,
) -> None:
    """Render every error as ``{"error": ...}``.

    Routing errors (404, 405) keep their status and use the Werkzeug name
    as the message. Anything that is not an :class:`AppError` becomes
    ``internal_error``.
    """

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        if exc.status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            logger.error(f"{exc.code} ({int(exc.status)}) on {_where()}: {exc.message}")
        else:
            logger.info(f"{exc.code} ({int(exc.status)}) on {_where()}")
        return handle_app_error(exc)

    @app.errorhandler(HTTPException)
    def _handle_http(exc: HTTPException):
        name = (exc.name or "http_error").lower().replace(" ", "_")
        return jsonify({"error": name}), exc.code or default_status

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        if debug_mode:
            logger.opt(exception=exc).error(
                f"Unhandled exception on {_where()} "
                f"query={dict(request.args)} body_size={len(request.data)}"
            )
        else:
            logger.error(f"Unhandled {type(exc).__name__} on {_where()}")
        return jsonify({"error": INTERNAL_ERROR}), default_status
