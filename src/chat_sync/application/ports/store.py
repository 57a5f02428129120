from __future__ import annotations

from typing import Protocol, Sequence

from chat_sync.application.dto.page import ConversationPage
from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.seq import Seq


class MessageStore(Protocol):
    """REST message store for one participant.

    Implementations raise ``chat_sync.application.exceptions.AppError``
    subclasses for every failure.
    """

    async def fetch_page(
        self,
        conversation_id: str,
        *,
        cursor: str | None = None,
        limit: int = 30,
    ) -> ConversationPage:
        """Most recent page without a cursor, older pages with one. Chronological."""
        ...

    async def post_message(
        self,
        conversation_id: str,
        body: str,
        *,
        client_msg_id: str | None = None,
    ) -> Message: ...

    async def mark_read(
        self,
        conversation_id: str,
        *,
        message_ids: Sequence[str] | None = None,
    ) -> Seq | None:
        """Mark the given ids, or everything when ``message_ids`` is None."""
        ...
