# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from otel_demo.shared.errors.base import DomainError


class UserAlreadyExistsError(DomainError):
    code = "conflict"
    status = HTTPStatus.CONFLICT
    message = "帳號已存在"


class AuthenticationFailedError(DomainError):
    code = "authentication_failed"
    status = HTTPStatus.UNAUTHORIZED
    message = "帳號或密碼錯誤"
    reason = "authentication_failed"


class UserNotFoundError(AuthenticationFailedError):
    reason = "user_not_found"


class InvalidPasswordError(AuthenticationFailedError):
    reason = "invalid_password"


class SessionNotFoundError(DomainError):
    code = "session_not_found"
    status = HTTPStatus.NOT_FOUND
    message = "Session 不存在或已過期"
