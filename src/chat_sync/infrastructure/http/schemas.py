"""Wire shapes of the message store's JSON API."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _id_as_str(v: Any) -> Any:
    return str(v) if isinstance(v, int) and not isinstance(v, bool) else v


# Numeric ids from the store are kept as strings
WireId = Annotated[str, BeforeValidator(_id_as_str)]


class SenderSchema(_Schema):
    id: WireId
    name: str = ""
    photo_url: str | None = None
    role: str | None = None


class MessageSchema(_Schema):
    id: WireId
    body: str
    seq: str | int | None = None
    created_at: datetime
    is_from_me: bool = False
    sender: SenderSchema


class PeerSchema(_Schema):
    id: WireId | None = None
    name: str = ""
    photo_url: str | None = None
    role: str | None = None
    last_read_seq: str | int | None = None
    is_online: bool = False


class ConversationSchema(_Schema):
    id: WireId
    created_at: datetime
    other_participant: PeerSchema


class PaginationSchema(_Schema):
    has_more: bool = False
    next_cursor: str | None = None


class ConversationPageSchema(_Schema):
    conversation: ConversationSchema
    messages: list[MessageSchema] = []
    pagination: PaginationSchema = PaginationSchema()


class SendMessageRequest(_Schema):
    body: str
    client_msg_id: str | None = None


class SendMessageResponse(_Schema):
    message: MessageSchema


class MarkReadRequest(_Schema):
    message_ids: list[str] | None = None
    mark_all_as_read: bool | None = None


class MarkReadResponse(_Schema):
    success: bool = True
    last_read_at: datetime | None = None
    last_read_seq: str | int | None = None


class ErrorResponse(_Schema):
    error: str = ""
    code: str | None = None
    conversations_used: int | None = None
    conversation_limit: int | None = None


class LastMessageSchema(_Schema):
    id: WireId | None = None
    body: str
    is_read: bool = False
    created_at: datetime
    is_from_me: bool = False


class ConversationSummarySchema(_Schema):
    id: WireId
    created_at: datetime
    updated_at: datetime | None = None
    other_participant: PeerSchema
    last_message: LastMessageSchema | None = None
    unread_count: int = 0


class ConversationListResponse(_Schema):
    conversations: list[ConversationSummarySchema] = []


class StartConversationRequest(_Schema):
    recipient_nanny_id: int | None = None
    recipient_family_id: int | None = None


class StartedConversationSchema(_Schema):
    id: WireId
    is_existing: bool = False


class StartConversationResponse(_Schema):
    conversation: StartedConversationSchema
