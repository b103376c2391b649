# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .use_cases.users.get_current_user import GetCurrentUserUseCase
from .use_cases.users.get_user_stats import GetUserStatsUseCase
from .use_cases.users.list_users import ListUsersUseCase
from .use_cases.users.login_user import LoginUserUseCase
from .use_cases.users.logout_user import LogoutUserUseCase
from .use_cases.users.register_user import RegisterUserUseCase

__all__ = [
    "GetCurrentUserUseCase",
    "GetUserStatsUseCase",
    "ListUsersUseCase",
    "LoginUserUseCase",
    "LogoutUserUseCase",
    "RegisterUserUseCase",
]
