# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import sys
from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_SETTINGS = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    validate_by_name=True,
)


class StorageBackend(str, Enum):
    MEMORY = "memory"
    DATABASE = "database"


class TelemetryMode(str, Enum):
    OFF = "off"
    AUTO = "auto"
    MANUAL = "manual"


class PasswordHashing(str, Enum):
    PLAINTEXT = "plaintext"
    WERKZEUG = "werkzeug"


class StorageConfig(BaseSettings):
    backend: StorageBackend = Field(StorageBackend.MEMORY, alias="STORAGE_BACKEND")
    database_url: str = Field("sqlite:///otel_demo.db", alias="DATABASE_URL")
    pool_size: int = Field(5, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(0, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")
    session_ttl_hours: int = Field(24, ge=1, alias="SESSION_TTL_HOURS")

    model_config = _SETTINGS


class TelemetryConfig(BaseSettings):
    mode: TelemetryMode = Field(TelemetryMode.OFF, alias="TELEMETRY_MODE")
    service_name: str = Field("otel-demo", alias="SERVICE_NAME")
    service_version: str = Field("0.1.0", alias="SERVICE_VERSION")
    traces_endpoint: str = Field(
        "http://localhost:4318/v1/traces", alias="OTLP_TRACES_ENDPOINT"
    )
    logs_endpoint: str = Field("http://localhost:4318/v1/logs", alias="OTLP_LOGS_ENDPOINT")
    metrics_enabled: bool = Field(True, alias="METRICS_ENABLED")

    model_config = _SETTINGS


class SecurityConfig(BaseSettings):
    # CORS
    allowed_origins: Annotated[list[str], NoDecode] = Field(["*"], alias="ALLOWED_ORIGINS")

    # Credentials are compared as stored unless a hasher is selected
    password_hashing: PasswordHashing = Field(
        PasswordHashing.PLAINTEXT, alias="PASSWORD_HASHING"
    )

    model_config = _SETTINGS

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


def _storage_config_factory() -> StorageConfig:
    return StorageConfig()  # type: ignore[call-arg]


def _telemetry_config_factory() -> TelemetryConfig:
    return TelemetryConfig()  # type: ignore[call-arg]


def _security_config_factory() -> SecurityConfig:
    return SecurityConfig()  # type: ignore[call-arg]


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    port: int = Field(3000, ge=1, le=65535, alias="PORT")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str | None = Field(None, alias="LOG_FILE")

    storage: StorageConfig = Field(default_factory=_storage_config_factory)
    telemetry: TelemetryConfig = Field(default_factory=_telemetry_config_factory)
    security: SecurityConfig = Field(default_factory=_security_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_by_name=True,
        validate_assignment=True,
    )

    @model_validator(mode="after")
    def _warn_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        warnings = []
        if self.security.password_hashing is PasswordHashing.PLAINTEXT:
            warnings.append("⚠️  Passwords are stored in PLAINTEXT (set PASSWORD_HASHING=werkzeug)")
        if "*" in self.security.allowed_origins:
            warnings.append("⚠️  CORS allows wildcard (*) origins")
        if self.storage.backend is StorageBackend.MEMORY:
            warnings.append("⚠️  Users and sessions are kept in process memory")

        if warnings:
            print("\n⚠️  PRODUCTION SETTINGS WARNINGS:", file=sys.stderr)
            for warning in warnings:
                print(f"   {warning}", file=sys.stderr)

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()  # type: ignore[call-arg]


__all__ = [
    "AppConfig",
    "PasswordHashing",
    "SecurityConfig",
    "StorageBackend",
    "StorageConfig",
    "TelemetryConfig",
    "TelemetryMode",
    "load_config",
]
