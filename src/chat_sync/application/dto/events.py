"""Broadcast channel payloads (camelCase on the wire)."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from chat_sync.domain.entities.message import Message, Sender
from chat_sync.domain.value_objects.enums import SenderRole
from chat_sync.domain.value_objects.seq import parse_seq


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class NewMessagePayload(_Payload):
    id: str
    body: str
    sender_id: str
    sender_name: str = ""
    sender_photo: str | None = None
    sender_role: SenderRole | None = None
    created_at: datetime

    @field_validator("id", "sender_id", mode="before")
    @classmethod
    def _ids_as_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    def to_message(self) -> Message:
        return Message(
            id=self.id,
            body=self.body,
            sender=Sender(
                id=self.sender_id,
                name=self.sender_name,
                photo_url=self.sender_photo,
                role=self.sender_role,
            ),
            created_at=self.created_at,
            is_from_me=False,
        )


class ReadStatusPayload(_Payload):
    reader_id: str
    last_read_seq: str

    @field_validator("reader_id", mode="before")
    @classmethod
    def _reader_as_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("last_read_seq", mode="before")
    @classmethod
    def _seq_as_str(cls, v: Any) -> Any:
        # Validates digits; keeps the decimal string form for the wire
        seq = parse_seq(v)
        if seq is None:
            raise ValueError("lastReadSeq is required")
        return str(seq)
