from __future__ import annotations

import logging
from typing import Any, Sequence

from pydantic import ValidationError as PayloadError

from chat_sync.application.context import SessionContext
from chat_sync.application.dto.events import ReadStatusPayload
from chat_sync.application.exceptions import AppError
from chat_sync.application.state import ConversationState
from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.enums import BroadcastEvent, DeliveryStatus
from chat_sync.domain.value_objects.seq import Seq, format_seq, parse_seq

logger = logging.getLogger(__name__)


class ReadReceiptSync:
    """Keeps both last-read markers current, independent of message fetches."""

    def __init__(self, ctx: SessionContext, state: ConversationState) -> None:
        self._ctx = ctx
        self._state = state

    @property
    def topic(self) -> str:
        return self._ctx.settings.topic_for(self._state.conversation_id)

    async def mark_viewed(self, message_ids: Sequence[str] | None = None) -> Seq | None:
        """Local view event: persist the read mark, then tell the peer."""
        try:
            seq = await self._ctx.store.mark_read(
                self._state.conversation_id, message_ids=message_ids,
            )
        except AppError as exc:
            logger.warning(
                "mark_read failed for conversation %s: %s",
                self._state.conversation_id, exc.detail,
            )
            return None

        if seq is None:
            return None
        self._state.receipts.observe_own(seq)
        await self._broadcast(seq)
        return seq

    async def _broadcast(self, seq: Seq) -> None:
        payload = ReadStatusPayload(
            reader_id=self._ctx.me.id,
            last_read_seq=format_seq(seq),
        )
        try:
            await self._ctx.channel.send(
                self.topic, BroadcastEvent.READ_STATUS, payload.to_wire(),
            )
        except Exception:
            logger.exception("Failed to broadcast read status")

    def on_remote_read(self, data: dict[str, Any]) -> bool:
        """Peer read-receipt event. Render-state only; never hits the network."""
        try:
            payload = ReadStatusPayload.model_validate(data)
        except PayloadError:
            logger.warning("Dropping malformed read-status payload: %r", data)
            return False

        if payload.reader_id == self._ctx.me.id:
            return False

        changed = self._state.receipts.observe_peer(parse_seq(payload.last_read_seq))
        if changed:
            self._state.notify()
        return changed

    def observe_peer(self, seq: Seq | None) -> bool:
        return self._state.receipts.observe_peer(seq)

    def delivery_status(self, message: Message) -> DeliveryStatus | None:
        return self._state.receipts.delivery_status(message)
