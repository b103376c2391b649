# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .providers import Telemetry, create_telemetry
from .sink import (
    NullTelemetrySink,
    OtelTelemetrySink,
    Severity,
    TelemetrySink,
    annotate,
    mark_error,
    mark_ok,
    safe_emit,
    traced,
)

__all__ = [
    "NullTelemetrySink",
    "OtelTelemetrySink",
    "Severity",
    "Telemetry",
    "TelemetrySink",
    "annotate",
    "create_telemetry",
    "mark_error",
    "mark_ok",
    "safe_emit",
    "traced",
]
