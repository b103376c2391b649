# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any, TypeVar

from flask import Blueprint, Response, jsonify, request
from opentelemetry.trace import Span
from pydantic import BaseModel, ValidationError

from otel_demo.application.services.session_ids import (
    SessionIdGenerator,
    generate_session_id,
)
from otel_demo.application.use_cases.users.get_current_user import GetCurrentUserUseCase
from otel_demo.application.use_cases.users.list_users import ListUsersUseCase
from otel_demo.application.use_cases.users.login_user import LoginUserUseCase
from otel_demo.application.use_cases.users.logout_user import LogoutUserUseCase
from otel_demo.application.use_cases.users.register_user import RegisterUserUseCase
from otel_demo.domain.exceptions import InvariantViolationError
from otel_demo.domain.users.exceptions import (
    AuthenticationFailedError,
    SessionNotFoundError,
    UserAlreadyExistsError,
)
from otel_demo.infrastructure.telemetry import (
    Severity,
    TelemetrySink,
    annotate,
    mark_error,
    mark_ok,
    safe_emit,
    traced,
)
from otel_demo.interfaces.http.dto.users import (
    CredentialsRequestDTO,
    CurrentUserResponseDTO,
    LoginResponseDTO,
    LogoutResponseDTO,
    RegisterResponseDTO,
    SessionRequestDTO,
    UserListResponseDTO,
    UserSummaryDTO,
)
from otel_demo.shared.errors.base import (
    AppError,
    MissingFieldError,
    OperationFailedError,
    StoreError,
)
from otel_demo.shared.logging import get_correlation_id, logger

CREDENTIALS_REQUIRED = "請提供帳號和密碼"
SESSION_ID_REQUIRED = "請提供 sessionId"

_DTO = TypeVar("_DTO", bound=BaseModel)


def _validate(model: type[_DTO], payload: Any) -> _DTO:
    # Anything that is not an object, or has non-string fields, counts as missing.
    try:
        return model.model_validate(payload if isinstance(payload, dict) else {})
    except ValidationError:
        return model()


def _span_attributes(operation: str, method: str, route: str) -> dict[str, str]:
    return {
        "operation.type": operation,
        "http.method": method,
        "http.route": route,
        "request.id": get_correlation_id(),
    }


class UserController:
    def __init__(
        self,
        *,
        register_use_case: RegisterUserUseCase,
        login_use_case: LoginUserUseCase,
        logout_use_case: LogoutUserUseCase,
        list_users_use_case: ListUsersUseCase,
        current_user_use_case: GetCurrentUserUseCase,
        telemetry: TelemetrySink,
        session_ids: SessionIdGenerator = generate_session_id,
    ) -> None:
        self._register_use_case = register_use_case
        self._login_use_case = login_use_case
        self._logout_use_case = logout_use_case
        self._list_users_use_case = list_users_use_case
        self._current_user_use_case = current_user_use_case
        self._telemetry = telemetry
        self._session_ids = session_ids

    def _emit(
        self, severity: Severity, message: str, attributes: dict[str, Any] | None = None
    ) -> None:
        safe_emit(
            self._telemetry,
            severity,
            message,
            {**(attributes or {}), "request.id": get_correlation_id()},
        )

    def _reject(
        self,
        span: Span,
        error: AppError,
        message: str,
        attributes: dict[str, Any] | None = None,
    ) -> AppError:
        mark_error(span, error, attributes)
        logger.warning(message)
        self._emit(Severity.ERROR, message, {"error.type": error.code, **(attributes or {})})
        return error

    def register(self) -> tuple[Response, int]:
        with traced(
            self._telemetry,
            "user.register",
            _span_attributes("user_registration", "POST", "/register"),
        ) as span:
            dto = _validate(CredentialsRequestDTO, request.get_json(silent=True))
            username, password = dto.username or "", dto.password or ""
            if username:
                annotate(span, {"user.username": username})

            missing = dto.missing_field()
            if missing:
                raise self._reject(
                    span,
                    MissingFieldError(CREDENTIALS_REQUIRED, field=missing),
                    "註冊失敗：缺少必要欄位",
                    {"user.username": username or "undefined", "error.field": missing},
                )

            try:
                result = self._register_use_case.execute(username, password)
            except UserAlreadyExistsError as exc:
                raise self._reject(
                    span, exc, f"註冊失敗：帳號已存在 - {username}", {"user.username": username}
                )
            except InvariantViolationError as exc:
                raise self._reject(
                    span,
                    exc,
                    f"註冊失敗：{exc.message}",
                    {"user.username": username, "error.field": exc.field},
                )
            except StoreError as exc:
                raise self._reject(
                    span,
                    OperationFailedError("註冊"),
                    f"註冊失敗：數據庫錯誤 - {exc.message}",
                    {"user.username": username},
                ) from exc

            annotate(span, {"user.action": "register", "users.total_count": result.total_users})
            mark_ok(span)
            logger.info(f"user.register: ok username={username} total={result.total_users}")
            self._emit(
                Severity.INFO,
                f"用戶註冊成功: {username}",
                {
                    "user.username": username,
                    "user.action": "register",
                    "users.total_count": result.total_users,
                },
            )
            payload = RegisterResponseDTO(username=result.user.username).model_dump()
            return jsonify(payload), 201

    def login(self) -> tuple[Response, int]:
        with traced(
            self._telemetry,
            "user.login",
            _span_attributes("user_authentication", "POST", "/login"),
        ) as span:
            dto = _validate(CredentialsRequestDTO, request.get_json(silent=True))
            username, password = dto.username or "", dto.password or ""
            if username:
                annotate(span, {"user.username": username})
            self._emit(Severity.INFO, "開始處理登入請求", {"user.username": username or None})

            missing = dto.missing_field()
            if missing:
                raise self._reject(
                    span,
                    MissingFieldError(CREDENTIALS_REQUIRED, field=missing),
                    "登入失敗：缺少必要欄位",
                    {"error.field": missing},
                )

            session_id = self._session_ids()
            try:
                result = self._login_use_case.execute(username, password, session_id)
            except AuthenticationFailedError as exc:
                raise self._reject(
                    span,
                    exc,
                    f"登入失敗：帳號或密碼錯誤 - {username}",
                    {"user.username": username, "error.reason": exc.reason},
                )
            except StoreError as exc:
                raise self._reject(
                    span,
                    OperationFailedError("登入"),
                    f"登入失敗：數據庫錯誤 - {exc.message}",
                    {"user.username": username},
                ) from exc

            annotate(
                span,
                {
                    "user.action": "login",
                    "session.id": result.session_id,
                    "sessions.active_count": result.active_sessions,
                },
            )
            mark_ok(span)
            logger.info(f"user.login: ok username={username} active={result.active_sessions}")
            self._emit(
                Severity.INFO,
                f"用戶登入成功: {username}",
                {
                    "user.username": username,
                    "user.action": "login",
                    "session.id": result.session_id,
                    "sessions.active_count": result.active_sessions,
                },
            )
            payload = LoginResponseDTO(
                session_id=result.session_id, username=result.user.username
            ).model_dump(by_alias=True)
            return jsonify(payload), 200

    def logout(self) -> tuple[Response, int]:
        with traced(
            self._telemetry,
            "user.logout",
            _span_attributes("user_logout", "POST", "/logout"),
        ) as span:
            dto = _validate(SessionRequestDTO, request.get_json(silent=True))
            session_id = dto.session_id or ""
            if not session_id:
                raise self._reject(
                    span,
                    MissingFieldError(SESSION_ID_REQUIRED, field="sessionId"),
                    "登出失敗：缺少 sessionId",
                )
            annotate(span, {"session.id": session_id})

            try:
                result = self._logout_use_case.execute(session_id)
            except SessionNotFoundError as exc:
                raise self._reject(
                    span,
                    exc,
                    "登出失敗：Session 不存在或已過期",
                    {"session.id": session_id},
                )
            except StoreError as exc:
                raise self._reject(
                    span,
                    OperationFailedError("登出"),
                    f"登出失敗：數據庫錯誤 - {exc.message}",
                    {"session.id": session_id},
                ) from exc

            annotate(
                span,
                {
                    "user.username": result.username,
                    "user.action": "logout",
                    "sessions.remaining_count": result.remaining_sessions,
                },
            )
            mark_ok(span)
            logger.info(
                f"user.logout: ok username={result.username} "
                f"remaining={result.remaining_sessions}"
            )
            self._emit(
                Severity.INFO,
                f"用戶登出: {result.username}",
                {
                    "user.username": result.username,
                    "user.action": "logout",
                    "session.id": session_id,
                    "sessions.remaining_count": result.remaining_sessions,
                },
            )
            return jsonify(LogoutResponseDTO().model_dump()), 200

    def list_users(self) -> tuple[Response, int]:
        with traced(
            self._telemetry,
            "user.list",
            _span_attributes("list_users", "GET", "/users"),
        ) as span:
            try:
                usernames = self._list_users_use_case.execute()
            except StoreError as exc:
                raise self._reject(
                    span,
                    OperationFailedError("查詢"),
                    f"查詢用戶列表失敗：數據庫錯誤 - {exc.message}",
                ) from exc

            annotate(span, {"users.count": len(usernames)})
            mark_ok(span)
            self._emit(
                Severity.INFO,
                f"查詢用戶列表，共 {len(usernames)} 位用戶",
                {"operation": "list_users", "users.count": len(usernames)},
            )
            payload = UserListResponseDTO(
                count=len(usernames),
                users=[UserSummaryDTO(username=name) for name in usernames],
            ).model_dump()
            return jsonify(payload), 200

    def current_user(self) -> tuple[Response, int]:
        with traced(
            self._telemetry,
            "user.current",
            _span_attributes("get_current_user", "GET", "/user"),
        ) as span:
            dto = _validate(SessionRequestDTO, request.args.to_dict())
            session_id = dto.session_id or ""
            if not session_id:
                raise self._reject(
                    span,
                    MissingFieldError(SESSION_ID_REQUIRED, field="sessionId"),
                    "查詢失敗：缺少 sessionId",
                )
            annotate(span, {"session.id": session_id})

            try:
                current = self._current_user_use_case.execute(session_id)
            except SessionNotFoundError as exc:
                raise self._reject(
                    span,
                    exc,
                    "查詢失敗：Session 不存在或已過期",
                    {"session.id": session_id},
                )
            except StoreError as exc:
                raise self._reject(
                    span,
                    OperationFailedError("查詢"),
                    f"查詢用戶失敗：數據庫錯誤 - {exc.message}",
                    {"session.id": session_id},
                ) from exc

            annotate(span, {"user.username": current.username})
            mark_ok(span)
            self._emit(
                Severity.INFO,
                f"查詢當前用戶: {current.username}",
                {
                    "operation": "get_current_user",
                    "user.username": current.username,
                    "session.id": session_id,
                },
            )
            payload = CurrentUserResponseDTO(
                username=current.username, session_id=current.session_id
            ).model_dump(by_alias=True)
            return jsonify(payload), 200

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("users", __name__)
        bp.add_url_rule("/register", view_func=self.register, methods=["POST"])
        bp.add_url_rule("/login", view_func=self.login, methods=["POST"])
        bp.add_url_rule("/logout", view_func=self.logout, methods=["POST"])
        bp.add_url_rule("/users", view_func=self.list_users, methods=["GET"])
        bp.add_url_rule("/user", view_func=self.current_user, methods=["GET"])
        return bp
