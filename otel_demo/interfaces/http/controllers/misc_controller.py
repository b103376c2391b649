# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable

from flask import Blueprint, Response, jsonify

from otel_demo.application.use_cases.users.get_user_stats import GetUserStatsUseCase
from otel_demo.infrastructure.observability import render_metrics
from otel_demo.shared.logging import logger


class MiscController:
    def __init__(
        self,
        *,
        stats_use_case: GetUserStatsUseCase,
        storage: str,
        check_storage: Callable[[], str] | None = None,
    ) -> None:
        self._stats_use_case = stats_use_case
        self._storage = storage
        self._check_storage = check_storage

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("misc", __name__)
        bp.add_url_rule("/health", view_func=self.health, methods=["GET"])
        bp.add_url_rule("/metrics", view_func=self.metrics, methods=["GET"])
        return bp

    def health(self) -> tuple[Response, int]:
        status: dict[str, object] = {"ok": True, "storage": self._storage}
        try:
            if self._check_storage is not None:
                status["database"] = self._check_storage()
            stats = self._stats_use_case.execute()
            status["totalUsers"] = stats.total_users
            status["activeSessions"] = stats.active_sessions
        except Exception as exc:
            logger.error(f"health: storage check failed: {type(exc).__name__}: {exc}")
            status["ok"] = False
            status["error"] = type(exc).__name__
            return jsonify(status), 503
        return jsonify(status), 200

    def metrics(self) -> Response:
        body, content_type = render_metrics()
        return Response(body, content_type=content_type)
