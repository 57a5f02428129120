from __future__ import annotations

import uuid
from typing import NewType

MessageKey = NewType("MessageKey", str)

TEMP_PREFIX = "temp-"


def new_temp_id() -> MessageKey:
    """Client-side key for a message the store has not acknowledged yet."""
    return MessageKey(f"{TEMP_PREFIX}{uuid.uuid4().hex}")


def is_temp_id(key: str) -> bool:
    return key.startswith(TEMP_PREFIX)
