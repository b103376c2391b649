"""Use-case for ending a login session."""

from __future__ import annotations

from otel_demo.domain.users.entities import LogoutResult
from otel_demo.domain.users.exceptions import SessionNotFoundError
from otel_demo.domain.users.repositories import SessionRepository


class LogoutUserUseCase:
    def __init__(self, *, sessions: SessionRepository) -> None:
        self._sessions = sessions

    def execute(self, session_id: str) -> LogoutResult:
        session = self._sessions.get(session_id)
        if session is None or not self._sessions.delete(session_id):
            raise SessionNotFoundError()
        return LogoutResult(
            username=session.username,
            remaining_sessions=self._sessions.count(),
        )
