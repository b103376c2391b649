# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
from typing import Any

REDACTED = "***REDACTED***"

# Credentials only; usernames and session ids stay readable.
_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    # JSON bodies: "password": "pw1"
    (re.compile(r"(['\"]password['\"]\s*:\s*['\"])([^'\"]*)(['\"])", re.IGNORECASE), rf"\1{REDACTED}\3"),
    # form / query / kwargs: password=pw1
    (re.compile(r"\b(password|passwd|pwd)(\s*=\s*)([^&\s,;)]+)", re.IGNORECASE), rf"\1\2{REDACTED}"),
    # werkzeug hashes, should one end up in a message
    (re.compile(r"\b((?:scrypt|pbkdf2):[^$\s]+\$)[^$\s]+\$[0-9a-f]+"), rf"\1{REDACTED}"),
    (re.compile(r"(bearer\s+)([A-Za-z0-9_\-.=]{16,})", re.IGNORECASE), rf"\1{REDACTED}"),
    (re.compile(r"(authorization\s*[:=]\s*['\"]?)([^'\",\s]{10,})", re.IGNORECASE), rf"\1{REDACTED}"),
    # DATABASE_URL credentials
    (re.compile(r"\b([a-z][a-z0-9+]*://[^:/@\s]+):([^@\s]+)@"), rf"\1:{REDACTED}@"),
)


def sanitize_message(message: str) -> str:
    for pattern, replacement in _RULES:
        message = pattern.sub(replacement, message)
    return message


def sanitize_record(record: dict[str, Any]) -> bool:
    """Loguru filter: scrub the message in place, never drop the record."""
    message = record.get("message")
    if message:
        record["message"] = sanitize_message(message)
    return True


__all__ = ["REDACTED", "sanitize_message", "sanitize_record"]
