# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from otel_demo.domain.users.entities import UserStats
from otel_demo.domain.users.repositories import SessionRepository, UserRepository


class GetUserStatsUseCase:
    def __init__(self, *, users: UserRepository, sessions: SessionRepository) -> None:
        self._users = users
        self._sessions = sessions

    def execute(self) -> UserStats:
        return UserStats(
            total_users=self._users.count(),
            active_sessions=self._sessions.count(),
        )


__all__ = ["GetUserStatsUseCase"]
