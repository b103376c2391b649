# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from otel_demo.domain.users.entities import Session as DomainSession
from otel_demo.domain.users.entities import User as DomainUser
from otel_demo.domain.users.exceptions import UserAlreadyExistsError
from otel_demo.domain.users.repositories import SessionRepository, UserRepository
from otel_demo.infrastructure.db.models import Session, User
from otel_demo.infrastructure.db.session import SessionFactory, session_scope
from otel_demo.shared.errors.base import StoreError
from otel_demo.shared.logging import logger


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        # SQLite drops the offset on the way back.
        return value.replace(tzinfo=UTC)
    return value


def _to_domain_user(row: User) -> DomainUser:
    return DomainUser(
        id=row.id,
        username=row.username,
        password=row.password,
        created_at=_as_utc(row.created_at) or datetime.now(UTC),
    )


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"{operation}: {type(exc).__name__}: {exc}")
        raise StoreError(f"{operation} failed", context={"operation": operation}) from exc


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get(self, username: str) -> DomainUser | None:
        with _store_errors("users.get"), session_scope(self._session_factory) as session:
            row = session.query(User).filter(User.username == username).first()
            if not row:
                return None
            return _to_domain_user(row)

    def add(self, user: DomainUser) -> DomainUser:
        try:
            with session_scope(self._session_factory) as session:
                row = User(
                    username=user.username,
                    password=user.password,
                    created_at=user.created_at,
                )
                session.add(row)
                session.flush()
                session.refresh(row)
                return _to_domain_user(row)
        except IntegrityError as exc:
            # Lost a registration race; the unique index decides.
            raise UserAlreadyExistsError() from exc
        except SQLAlchemyError as exc:
            logger.error(f"users.add: {type(exc).__name__}: {exc}")
            raise StoreError("users.add failed", context={"operation": "users.add"}) from exc

    def count(self) -> int:
        with _store_errors("users.count"), session_scope(self._session_factory) as session:
            return int(session.query(func.count(User.id)).scalar() or 0)

    def list(self) -> list[DomainUser]:
        with _store_errors("users.list"), session_scope(self._session_factory) as session:
            rows = session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
            return [_to_domain_user(row) for row in rows]


class SqlAlchemySessionRepository(SessionRepository):
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get(self, session_id: str) -> DomainSession | None:
        with _store_errors("sessions.get"), session_scope(self._session_factory) as session:
            found = (
                session.query(Session, User.username)
                .join(User, Session.user_id == User.id)
                .filter(Session.session_id == session_id)
                .first()
            )
            if not found:
                return None
            row, username = found
            return DomainSession(
                session_id=row.session_id,
                username=username,
                created_at=_as_utc(row.created_at) or datetime.now(UTC),
                expires_at=_as_utc(row.expires_at),
            )

    def add(self, session_record: DomainSession) -> DomainSession:
        with _store_errors("sessions.add"), session_scope(self._session_factory) as session:
            user_id = (
                session.query(User.id)
                .filter(User.username == session_record.username)
                .scalar()
            )
            if user_id is None:
                raise StoreError(
                    "sessions.add failed: owner does not exist",
                    context={"operation": "sessions.add"},
                )
            session.add(
                Session(
                    session_id=session_record.session_id,
                    user_id=user_id,
                    expires_at=session_record.expires_at,
                    created_at=session_record.created_at,
                )
            )
            return session_record

    def delete(self, session_id: str) -> bool:
        with _store_errors("sessions.delete"), session_scope(self._session_factory) as session:
            deleted = (
                session.query(Session)
                .filter(Session.session_id == session_id)
                .delete(synchronize_session=False)
            )
            return deleted > 0

    def count(self) -> int:
        with _store_errors("sessions.count"), session_scope(self._session_factory) as session:
            return int(session.query(func.count(Session.id)).scalar() or 0)
