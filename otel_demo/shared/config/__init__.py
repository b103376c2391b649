# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .settings import (
    AppConfig,
    PasswordHashing,
    SecurityConfig,
    StorageBackend,
    StorageConfig,
    TelemetryConfig,
    TelemetryMode,
    load_config,
)

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
