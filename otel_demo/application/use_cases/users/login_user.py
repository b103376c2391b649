# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from otel_demo.domain.users.entities import LoginResult, Session
from otel_demo.domain.users.exceptions import InvalidPasswordError, UserNotFoundError
from otel_demo.domain.users.repositories import (
    PasswordHasher,
    SessionRepository,
    UserRepository,
)


class LoginUserUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        sessions: SessionRepository,
        password_hasher: PasswordHasher,
        session_ttl: timedelta | None = None,
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._password_hasher = password_hasher
        self._session_ttl = session_ttl

    def execute(self, username: str, password: str, session_id: str) -> LoginResult:
        user = self._users.get(username)
        if user is None:
            raise UserNotFoundError()

        if not self._password_hasher.verify(password, user.password):
            raise InvalidPasswordError()

        now = datetime.now(UTC)
        # Written for reference only; nothing reads expires_at back.
        expires_at = now + self._session_ttl if self._session_ttl else None
        self._sessions.add(
            Session(
                session_id=session_id,
                username=user.username,
                created_at=now,
                expires_at=expires_at,
            )
        )
        return LoginResult(
            user=user,
            session_id=session_id,
            active_sessions=self._sessions.count(),
        )
