from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from chat_sync.domain.value_objects.enums import MessageState, SenderRole
from chat_sync.domain.value_objects.ids import MessageKey
from chat_sync.domain.value_objects.seq import Seq


@dataclass(frozen=True, slots=True)
class Sender:
    id: str
    name: str
    photo_url: str | None = None
    role: SenderRole | None = None


@dataclass(frozen=True, slots=True)
class Message:
    body: str
    sender: Sender
    created_at: datetime
    id: str | None = None
    temp_id: str | None = None
    seq: Seq | None = None
    state: MessageState = MessageState.CONFIRMED
    is_from_me: bool = False

    def __post_init__(self) -> None:
        if self.id is None and self.temp_id is None:
            raise ValueError("Message needs a server id or a temp id")

    @property
    def key(self) -> MessageKey:
        """The authoritative identity: server id once known, temp id before."""
        return MessageKey(self.id if self.id is not None else self.temp_id)  # type: ignore[arg-type]

    @property
    def is_pending(self) -> bool:
        return self.state == MessageState.PENDING

    def confirmed_as(self, server: Message) -> Message:
        """Return the server's copy, flagged confirmed, keeping local ownership."""
        return replace(
            server,
            temp_id=None,
            state=MessageState.CONFIRMED,
            is_from_me=self.is_from_me or server.is_from_me,
        )
