from __future__ import annotations

import re
import time

from otel_demo.application.services.session_ids import generate_session_id

SESSION_ID_PATTERN = re.compile(r"^sess_(\d+)_([0-9a-z]{9})$")


def test_session_id_format() -> None:
    before = int(time.time() * 1000)
    session_id = generate_session_id()
    after = int(time.time() * 1000)

    match = SESSION_ID_PATTERN.match(session_id)
    assert match is not None
    assert before <= int(match.group(1)) <= after


def test_session_ids_are_unique_within_a_burst() -> None:
    issued = {generate_session_id() for _ in range(500)}

    assert len(issued) == 500
