# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import timedelta
from functools import cached_property, partial

from sqlalchemy.engine import Engine

from otel_demo.application.services.password_hashing import (
    PlaintextPasswordHasher,
    WerkzeugPasswordHasher,
)
from otel_demo.application.services.session_ids import (
    SessionIdGenerator,
    generate_session_id,
)
from otel_demo.application.use_cases.users.get_current_user import GetCurrentUserUseCase
from otel_demo.application.use_cases.users.get_user_stats import GetUserStatsUseCase
from otel_demo.application.use_cases.users.list_users import ListUsersUseCase
from otel_demo.application.use_cases.users.login_user import LoginUserUseCase
from otel_demo.application.use_cases.users.logout_user import LogoutUserUseCase
from otel_demo.application.use_cases.users.register_user import RegisterUserUseCase
from otel_demo.domain.users.repositories import (
    PasswordHasher,
    SessionRepository,
    UserRepository,
)
from otel_demo.infrastructure.db import (
    SessionFactory,
    create_db_engine,
    create_session_factory,
    init_db,
)
from otel_demo.infrastructure.health import check_database
from otel_demo.infrastructure.repositories.users.memory_user_repository import (
    InMemorySessionRepository,
    InMemoryUserRepository,
)
from otel_demo.infrastructure.repositories.users.sqlalchemy_user_repository import (
    SqlAlchemySessionRepository,
    SqlAlchemyUserRepository,
)
from otel_demo.infrastructure.telemetry import Telemetry, create_telemetry
from otel_demo.interfaces.http.controllers.misc_controller import MiscController
from otel_demo.interfaces.http.controllers.user_controller import UserController
from otel_demo.shared.config import AppConfig, PasswordHashing, StorageBackend


class Container:
    def __init__(self, config: AppConfig) -> None:
        self.config = config

    @cached_property
    def telemetry(self) -> Telemetry:
        return create_telemetry(self.config)

    @cached_property
    def engine(self) -> Engine | None:
        if self.config.storage.backend is not StorageBackend.DATABASE:
            return None
        engine = create_db_engine(self.config.storage)
        init_db(engine)
        return engine

    @cached_property
    def session_factory(self) -> SessionFactory | None:
        if self.engine is None:
            return None
        return create_session_factory(self.engine)

    @cached_property
    def password_hasher(self) -> PasswordHasher:
        if self.config.security.password_hashing is PasswordHashing.WERKZEUG:
            return WerkzeugPasswordHasher()
        return PlaintextPasswordHasher()

    @cached_property
    def session_id_generator(self) -> SessionIdGenerator:
        return generate_session_id

    @cached_property
    def user_repository(self) -> UserRepository:
        if self.session_factory is None:
            return InMemoryUserRepository()
        return SqlAlchemyUserRepository(self.session_factory)

    @cached_property
    def session_repository(self) -> SessionRepository:
        if self.session_factory is None:
            return InMemorySessionRepository()
        return SqlAlchemySessionRepository(self.session_factory)

    @cached_property
    def session_ttl(self) -> timedelta | None:
        # Only persisted sessions carry an expiry.
        if self.config.storage.backend is StorageBackend.DATABASE:
            return timedelta(hours=self.config.storage.session_ttl_hours)
        return None

    @cached_property
    def register_user_use_case(self) -> RegisterUserUseCase:
        return RegisterUserUseCase(
            users=self.user_repository,
            password_hasher=self.password_hasher,
        )

    @cached_property
    def login_user_use_case(self) -> LoginUserUseCase:
        return LoginUserUseCase(
            users=self.user_repository,
            sessions=self.session_repository,
            password_hasher=self.password_hasher,
            session_ttl=self.session_ttl,
        )

    @cached_property
    def logout_user_use_case(self) -> LogoutUserUseCase:
        return LogoutUserUseCase(sessions=self.session_repository)

    @cached_property
    def list_users_use_case(self) -> ListUsersUseCase:
        return ListUsersUseCase(users=self.user_repository)

    @cached_property
    def current_user_use_case(self) -> GetCurrentUserUseCase:
        return GetCurrentUserUseCase(sessions=self.session_repository)

    @cached_property
    def user_stats_use_case(self) -> GetUserStatsUseCase:
        return GetUserStatsUseCase(users=self.user_repository, sessions=self.session_repository)

    @cached_property
    def user_controller(self) -> UserController:
        return UserController(
            register_use_case=self.register_user_use_case,
            login_use_case=self.login_user_use_case,
            logout_use_case=self.logout_user_use_case,
            list_users_use_case=self.list_users_use_case,
            current_user_use_case=self.current_user_use_case,
            telemetry=self.telemetry.sink,
            session_ids=self.session_id_generator,
        )

    @cached_property
    def misc_controller(self) -> MiscController:
        check_storage = partial(check_database, self.engine) if self.engine is not None else None
        return MiscController(
            stats_use_case=self.user_stats_use_case,
            storage=self.config.storage.backend.value,
            check_storage=check_storage,
        )
