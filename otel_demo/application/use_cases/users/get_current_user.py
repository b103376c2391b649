# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from otel_demo.domain.users.entities import CurrentUser
from otel_demo.domain.users.exceptions import SessionNotFoundError
from otel_demo.domain.users.repositories import SessionRepository


class GetCurrentUserUseCase:
    """Resolve a session id to the username that owns it.

    ``expires_at`` is not consulted, so a session stays valid until logout.
    """

    def __init__(self, *, sessions: SessionRepository) -> None:
        self._sessions = sessions

    def execute(self, session_id: str) -> CurrentUser:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError()
        return CurrentUser(username=session.username, session_id=session_id)


__all__ = ["GetCurrentUserUseCase"]
