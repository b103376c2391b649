# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import replace

from otel_demo.domain.users.entities import Session, User
from otel_demo.domain.users.exceptions import UserAlreadyExistsError
from otel_demo.domain.users.repositories import SessionRepository, UserRepository


class InMemoryUserRepository(UserRepository):
    """Users keyed by username, listed in registration order."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._seq = 1

    def get(self, username: str) -> User | None:
        return self._users.get(username)

    def add(self, user: User) -> User:
        if user.username in self._users:
            raise UserAlreadyExistsError()
        stored = replace(user, id=self._seq)
        self._seq += 1
        self._users[stored.username] = stored
        return stored

    def count(self) -> int:
        return len(self._users)

    def list(self) -> list[User]:
        return list(self._users.values())


class InMemorySessionRepository(SessionRepository):
    """Sessions keyed by id. Adding an existing id replaces the old session."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def add(self, session: Session) -> Session:
        self._sessions[session.session_id] = session
        return session

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def count(self) -> int:
        return len(self._sessions)
