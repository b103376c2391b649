# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from otel_demo.domain.users.repositories import UserRepository


class ListUsersUseCase:
    def __init__(self, *, users: UserRepository) -> None:
        self._users = users

    def execute(self) -> list[str]:
        return [user.username for user in self._users.list()]


__all__ = ["ListUsersUseCase"]
