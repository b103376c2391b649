# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .exceptions import InvariantViolation, InvariantViolationError
from .users.entities import (
    CurrentUser,
    LoginResult,
    LogoutResult,
    RegisterResult,
    Session,
    User,
    UserStats,
)

__all__ = [
    "CurrentUser",
    "InvariantViolation",
    "InvariantViolationError",
    "LoginResult",
    "LogoutResult",
    "RegisterResult",
    "Session",
    "User",
    "UserStats",
]
