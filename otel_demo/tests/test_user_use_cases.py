from __future__ import annotations

import pytest

from otel_demo.application.services.password_hashing import (
    PlaintextPasswordHasher,
    WerkzeugPasswordHasher,
)
from otel_demo.application.use_cases.users.get_current_user import GetCurrentUserUseCase
from otel_demo.application.use_cases.users.get_user_stats import GetUserStatsUseCase
from otel_demo.application.use_cases.users.list_users import ListUsersUseCase
from otel_demo.application.use_cases.users.login_user import LoginUserUseCase
from otel_demo.application.use_cases.users.logout_user import LogoutUserUseCase
from otel_demo.application.use_cases.users.register_user import RegisterUserUseCase
from otel_demo.domain.exceptions import InvariantViolationError
from otel_demo.domain.users.exceptions import (
    AuthenticationFailedError,
    InvalidPasswordError,
    SessionNotFoundError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from otel_demo.infrastructure.repositories.users.memory_user_repository import (
    InMemorySessionRepository,
    InMemoryUserRepository,
)


class UseCases:
    def __init__(self, hasher=None) -> None:
        self.users = InMemoryUserRepository()
        self.sessions = InMemorySessionRepository()
        hasher = hasher or PlaintextPasswordHasher()
        self.register = RegisterUserUseCase(users=self.users, password_hasher=hasher)
        self.login = LoginUserUseCase(
            users=self.users, sessions=self.sessions, password_hasher=hasher
        )
        self.logout = LogoutUserUseCase(sessions=self.sessions)
        self.list_users = ListUsersUseCase(users=self.users)
        self.current_user = GetCurrentUserUseCase(sessions=self.sessions)
        self.stats = GetUserStatsUseCase(users=self.users, sessions=self.sessions)


@pytest.fixture()
def use_cases() -> UseCases:
    return UseCases()


def test_register_then_duplicate_conflicts(use_cases: UseCases) -> None:
    result = use_cases.register.execute("alice", "pw1")

    assert result.user.username == "alice"
    assert result.user.id == 1
    assert result.total_users == 1

    with pytest.raises(UserAlreadyExistsError) as exc_info:
        use_cases.register.execute("alice", "other")
    assert exc_info.value.status == 409
    assert exc_info.value.message == "帳號已存在"
    assert use_cases.users.count() == 1


@pytest.mark.parametrize("username", ["ab", "x" * 51])
def test_register_rejects_username_outside_length_bounds(
    use_cases: UseCases, username: str
) -> None:
    with pytest.raises(InvariantViolationError) as exc_info:
        use_cases.register.execute(username, "pw1")

    assert exc_info.value.field == "username"
    assert exc_info.value.message == "帳號長度需介於 3 到 50 個字元"
    assert use_cases.users.count() == 0


def test_login_issues_distinct_sessions(use_cases: UseCases) -> None:
    use_cases.register.execute("alice", "pw1")

    first = use_cases.login.execute("alice", "pw1", "sess_1_aaaaaaaaa")
    second = use_cases.login.execute("alice", "pw1", "sess_2_bbbbbbbbb")

    assert first.session_id != second.session_id
    assert first.active_sessions == 1
    assert second.active_sessions == 2
    assert first.user.username == "alice"


def test_login_wrong_password_is_invalid_password(use_cases: UseCases) -> None:
    use_cases.register.execute("alice", "pw1")

    with pytest.raises(InvalidPasswordError) as exc_info:
        use_cases.login.execute("alice", "PW1", "sess_1_aaaaaaaaa")

    assert exc_info.value.reason == "invalid_password"
    assert exc_info.value.status == 401
    assert use_cases.sessions.count() == 0


def test_login_unknown_user_is_user_not_found(use_cases: UseCases) -> None:
    with pytest.raises(UserNotFoundError) as exc_info:
        use_cases.login.execute("ghost", "pw1", "sess_1_aaaaaaaaa")

    assert isinstance(exc_info.value, AuthenticationFailedError)
    assert exc_info.value.reason == "user_not_found"
    assert exc_info.value.message == "帳號或密碼錯誤"


def test_session_resolves_until_logout(use_cases: UseCases) -> None:
    use_cases.register.execute("alice", "pw1")
    session_id = use_cases.login.execute("alice", "pw1", "sess_1_aaaaaaaaa").session_id

    current = use_cases.current_user.execute(session_id)
    assert current.username == "alice"
    assert current.session_id == session_id

    logout = use_cases.logout.execute(session_id)
    assert logout.username == "alice"
    assert logout.remaining_sessions == 0

    with pytest.raises(SessionNotFoundError):
        use_cases.current_user.execute(session_id)
    with pytest.raises(SessionNotFoundError):
        use_cases.logout.execute(session_id)


def test_memory_sessions_have_no_expiry(use_cases: UseCases) -> None:
    use_cases.register.execute("alice", "pw1")
    use_cases.login.execute("alice", "pw1", "sess_1_aaaaaaaaa")

    stored = use_cases.sessions.get("sess_1_aaaaaaaaa")
    assert stored is not None
    assert stored.expires_at is None


def test_reused_session_id_overwrites_in_memory(use_cases: UseCases) -> None:
    use_cases.register.execute("alice", "pw1")
    use_cases.register.execute("bob", "pw2")

    use_cases.login.execute("alice", "pw1", "sess_1_aaaaaaaaa")
    result = use_cases.login.execute("bob", "pw2", "sess_1_aaaaaaaaa")

    assert result.active_sessions == 1
    assert use_cases.current_user.execute("sess_1_aaaaaaaaa").username == "bob"


def test_list_users_counts_distinct_registrations(use_cases: UseCases) -> None:
    for name in ("alice", "bob", "carol"):
        use_cases.register.execute(name, "pw1")
    with pytest.raises(UserAlreadyExistsError):
        use_cases.register.execute("bob", "pw1")

    usernames = use_cases.list_users.execute()

    assert usernames == ["alice", "bob", "carol"]
    assert use_cases.list_users.execute() == usernames


def test_stats_track_users_and_sessions(use_cases: UseCases) -> None:
    use_cases.register.execute("alice", "pw1")
    use_cases.register.execute("bob", "pw2")
    use_cases.login.execute("alice", "pw1", "sess_1_aaaaaaaaa")

    stats = use_cases.stats.execute()

    assert stats.total_users == 2
    assert stats.active_sessions == 1


def test_werkzeug_hasher_stores_hash_and_verifies() -> None:
    use_cases = UseCases(hasher=WerkzeugPasswordHasher())

    result = use_cases.register.execute("alice", "pw1")

    assert result.user.password != "pw1"
    assert use_cases.login.execute("alice", "pw1", "sess_1_aaaaaaaaa").session_id
    with pytest.raises(InvalidPasswordError):
        use_cases.login.execute("alice", "pw2", "sess_2_aaaaaaaaa")
