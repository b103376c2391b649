# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import importlib
from typing import Any, Protocol, cast

from flask import Flask

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization", "traceparent", "tracestate"]


class _CORSCallable(Protocol):
    def __call__(self, app: Flask, **kwargs: Any) -> Any: ...


_flask_cors = importlib.import_module("flask_cors")
CORS = cast(_CORSCallable, _flask_cors.CORS)


def configure_cors(app: Flask, *, allowed_origins: list[str]) -> None:
    """Let the browser front-ends call the API and propagate trace context."""
    cors_kwargs: dict[str, object] = {
        "origins": allowed_origins,
        "methods": ALLOWED_METHODS,
        "allow_headers": ALLOWED_HEADERS,
    }
    if any(origin != "*" for origin in allowed_origins):
        cors_kwargs["supports_credentials"] = True
    CORS(app, **cors_kwargs)


__all__ = ["ALLOWED_HEADERS", "ALLOWED_METHODS", "configure_cors"]
