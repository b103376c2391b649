# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime

from otel_demo.domain.users.entities import RegisterResult, User
from otel_demo.domain.users.exceptions import UserAlreadyExistsError
from otel_demo.domain.users.repositories import PasswordHasher, UserRepository


class RegisterUserUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        password_hasher: PasswordHasher,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher

    def execute(self, username: str, password: str) -> RegisterResult:
        existing = self._users.get(username)
        if existing:
            raise UserAlreadyExistsError()
        now = datetime.now(UTC)
        hashed = self._password_hasher.hash(password)
        user = User(id=0, username=username, password=hashed, created_at=now)
        persisted = self._users.add(user)
        return RegisterResult(user=persisted, total_users=self._users.count())
