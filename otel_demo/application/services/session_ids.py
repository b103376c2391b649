# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import secrets
import string
import time
from collections.abc import Callable

SESSION_ID_PREFIX = "sess"
RANDOM_PART_LENGTH = 9

_BASE36 = string.digits + string.ascii_lowercase

SessionIdGenerator = Callable[[], str]


def generate_session_id() -> str:
    """Return ``sess_<epoch ms>_<base-36 suffix>``.

    Uniqueness is probabilistic; callers do not check for collisions.
    """
    timestamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(RANDOM_PART_LENGTH))
    return f"{SESSION_ID_PREFIX}_{timestamp}_{suffix}"


__all__ = ["SessionIdGenerator", "generate_session_id"]
