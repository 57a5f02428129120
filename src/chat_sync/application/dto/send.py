"""Outcomes of a single user-initiated send."""
from __future__ import annotations

from dataclasses import dataclass

from chat_sync.domain.entities.message import Message


@dataclass(frozen=True, slots=True)
class SendSkipped:
    reason: str  # "empty" | "too_long"


@dataclass(frozen=True, slots=True)
class SendDelivered:
    message: Message
    temp_id: str


@dataclass(frozen=True, slots=True)
class SendBlocked:
    code: str
    body: str
    detail: str = ""


@dataclass(frozen=True, slots=True)
class SendFailed:
    body: str
    detail: str = ""


SendOutcome = SendSkipped | SendDelivered | SendBlocked | SendFailed
