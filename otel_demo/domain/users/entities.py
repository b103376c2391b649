# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from otel_demo.domain.exceptions import InvariantViolationError

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50


@dataclass(slots=True, frozen=True)
class User:

    id: int
    username: str
    password: str
    created_at: datetime

    def __post_init__(self) -> None:
        if not USERNAME_MIN_LENGTH <= len(self.username) <= USERNAME_MAX_LENGTH:
            raise InvariantViolationError(
                f"帳號長度需介於 {USERNAME_MIN_LENGTH} 到 {USERNAME_MAX_LENGTH} 個字元",
                field="username",
            )
        if not self.password:
            raise InvariantViolationError("請提供帳號和密碼", field="password")


@dataclass(slots=True, frozen=True)
class Session:

    session_id: str
    username: str
    created_at: datetime
    expires_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class RegisterResult:
    user: User
    total_users: int


@dataclass(slots=True, frozen=True)
class LoginResult:
    user: User
    session_id: str
    active_sessions: int


@dataclass(slots=True, frozen=True)
class LogoutResult:
    username: str
    remaining_sessions: int


@dataclass(slots=True, frozen=True)
class CurrentUser:
    username: str
    session_id: str


@dataclass(slots=True, frozen=True)
class UserStats:
    total_users: int
    active_sessions: int
