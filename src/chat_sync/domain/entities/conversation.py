from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from chat_sync.domain.value_objects.enums import SenderRole
from chat_sync.domain.value_objects.seq import Seq


@dataclass(frozen=True, slots=True)
class Peer:
    """The other participant of a 1:1 conversation."""

    id: str | None
    name: str
    photo_url: str | None = None
    role: SenderRole | None = None
    last_read_seq: Seq | None = None
    is_online: bool = False


@dataclass(frozen=True, slots=True)
class Conversation:
    id: str
    created_at: datetime
    peer: Peer


@dataclass(frozen=True, slots=True)
class LastMessagePreview:
    id: str | None
    body: str
    created_at: datetime
    is_read: bool


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    id: str
    created_at: datetime
    peer: Peer
    last_message: LastMessagePreview | None
    unread_count: int = 0
