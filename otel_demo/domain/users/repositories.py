# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Protocol

from .entities import Session, User


class UserRepository(Protocol):
    def get(self, username: str) -> User | None: ...
    def add(self, user: User) -> User: ...
    def count(self) -> int: ...
    def list(self) -> list[User]: ...


class SessionRepository(Protocol):
    def get(self, session_id: str) -> Session | None: ...
    def add(self, session: Session) -> Session: ...
    def delete(self, session_id: str) -> bool: ...
    def count(self) -> int: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...
