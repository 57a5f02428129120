from __future__ import annotations

from dataclasses import dataclass, field

from chat_sync.domain.entities.conversation import Conversation
from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.cursor import PageCursor


@dataclass(frozen=True, slots=True)
class ConversationPage:
    conversation: Conversation
    messages: list[Message] = field(default_factory=list)
    cursor: PageCursor = field(default_factory=PageCursor.exhausted)


@dataclass(frozen=True, slots=True)
class StartedConversation:
    id: str
    is_existing: bool
