from __future__ import annotations

import pytest

from otel_demo.shared.config import (
    AppConfig,
    PasswordHashing,
    SecurityConfig,
    StorageBackend,
    StorageConfig,
    TelemetryConfig,
    TelemetryMode,
    load_config,
)

_ENV_VARS = (
    "APP_ENV",
    "PORT",
    "STORAGE_BACKEND",
    "DATABASE_URL",
    "SESSION_TTL_HOURS",
    "TELEMETRY_MODE",
    "SERVICE_NAME",
    "ALLOWED_ORIGINS",
    "PASSWORD_HASHING",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    load_config.cache_clear()


def test_defaults() -> None:
    config = AppConfig()

    assert config.port == 3000
    assert config.storage.backend is StorageBackend.MEMORY
    assert config.storage.session_ttl_hours == 24
    assert config.telemetry.mode is TelemetryMode.OFF
    assert config.telemetry.traces_endpoint == "http://localhost:4318/v1/traces"
    assert config.telemetry.logs_endpoint == "http://localhost:4318/v1/logs"
    assert config.security.allowed_origins == ["*"]
    assert config.security.password_hashing is PasswordHashing.PLAINTEXT
    assert not config.is_production()


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("STORAGE_BACKEND", "database")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("TELEMETRY_MODE", "manual")
    monkeypatch.setenv("SERVICE_NAME", "user-service-manual")

    config = load_config()

    assert config.port == 8080
    assert config.storage.backend is StorageBackend.DATABASE
    assert config.storage.database_url == "sqlite://"
    assert config.telemetry.mode is TelemetryMode.MANUAL
    assert config.telemetry.service_name == "user-service-manual"
    assert load_config() is config


def test_allowed_origins_are_comma_separated(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:5173, http://localhost:8080,")

    assert SecurityConfig().allowed_origins == [
        "http://localhost:5173",
        "http://localhost:8080",
    ]


def test_fields_accept_python_names() -> None:
    storage = StorageConfig(backend=StorageBackend.DATABASE, session_ttl_hours=2)
    telemetry = TelemetryConfig(mode="auto")

    assert storage.backend is StorageBackend.DATABASE
    assert storage.session_ttl_hours == 2
    assert telemetry.mode is TelemetryMode.AUTO


def test_invalid_mode_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TELEMETRY_MODE", "verbose")

    with pytest.raises(ValueError):
        TelemetryConfig()


def test_production_warnings(capsys: pytest.CaptureFixture[str]) -> None:
    config = AppConfig(app_env="production")

    assert config.is_production()
    assert "PLAINTEXT" in capsys.readouterr().err
