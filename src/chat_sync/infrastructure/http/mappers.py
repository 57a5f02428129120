from __future__ import annotations

from chat_sync.application.dto.page import ConversationPage, StartedConversation
from chat_sync.domain.entities.conversation import (
    Conversation,
    ConversationSummary,
    LastMessagePreview,
    Peer,
)
from chat_sync.domain.entities.message import Message, Sender
from chat_sync.domain.value_objects.cursor import PageCursor
from chat_sync.domain.value_objects.enums import SenderRole
from chat_sync.domain.value_objects.seq import parse_seq
from chat_sync.infrastructure.http.schemas import (
    ConversationPageSchema,
    ConversationSchema,
    ConversationSummarySchema,
    MessageSchema,
    PeerSchema,
    SenderSchema,
    StartedConversationSchema,
)


def _role(raw: str | None) -> SenderRole | None:
    if raw is None:
        return None
    try:
        return SenderRole(raw.upper())
    except ValueError:
        return None


def sender_to_entity(schema: SenderSchema) -> Sender:
    return Sender(
        id=schema.id,
        name=schema.name,
        photo_url=schema.photo_url,
        role=_role(schema.role),
    )


def message_to_entity(schema: MessageSchema) -> Message:
    return Message(
        id=schema.id,
        body=schema.body,
        sender=sender_to_entity(schema.sender),
        created_at=schema.created_at,
        seq=parse_seq(schema.seq),
        is_from_me=schema.is_from_me,
    )


def peer_to_entity(schema: PeerSchema) -> Peer:
    return Peer(
        id=schema.id,
        name=schema.name,
        photo_url=schema.photo_url,
        role=_role(schema.role),
        last_read_seq=parse_seq(schema.last_read_seq),
        is_online=schema.is_online,
    )


def conversation_to_entity(schema: ConversationSchema) -> Conversation:
    return Conversation(
        id=schema.id,
        created_at=schema.created_at,
        peer=peer_to_entity(schema.other_participant),
    )


def page_to_dto(schema: ConversationPageSchema) -> ConversationPage:
    return ConversationPage(
        conversation=conversation_to_entity(schema.conversation),
        messages=[message_to_entity(m) for m in schema.messages],
        cursor=PageCursor(
            has_more=schema.pagination.has_more,
            next_cursor=schema.pagination.next_cursor,
        ),
    )


def summary_to_entity(schema: ConversationSummarySchema) -> ConversationSummary:
    last = schema.last_message
    return ConversationSummary(
        id=schema.id,
        created_at=schema.created_at,
        peer=peer_to_entity(schema.other_participant),
        last_message=(
            LastMessagePreview(
                id=last.id,
                body=last.body,
                created_at=last.created_at,
                is_read=last.is_read,
            )
            if last is not None
            else None
        ),
        unread_count=schema.unread_count,
    )


def started_to_dto(schema: StartedConversationSchema) -> StartedConversation:
    return StartedConversation(id=schema.id, is_existing=schema.is_existing)
