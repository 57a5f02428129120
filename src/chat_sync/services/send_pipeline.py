from __future__ import annotations

import logging

from chat_sync.application.context import SessionContext
from chat_sync.application.dto.events import NewMessagePayload
from chat_sync.application.dto.send import (
    SendBlocked,
    SendDelivered,
    SendFailed,
    SendOutcome,
    SendSkipped,
)
from chat_sync.application.exceptions import AppError, EntitlementError
from chat_sync.application.state import ConversationState
from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.enums import BroadcastEvent, MessageState
from chat_sync.domain.value_objects.ids import new_temp_id
from chat_sync.services.scroll import ScrollController

logger = logging.getLogger(__name__)

SEND_FAILED_NOTICE = "Erro ao enviar mensagem"


class SendPipeline:
    """Optimistic send: visible at once, reconciled or rolled back later."""

    def __init__(
        self,
        ctx: SessionContext,
        state: ConversationState,
        scroll: ScrollController,
    ) -> None:
        self._ctx = ctx
        self._state = state
        self._scroll = scroll

    def _check(self, body: str) -> str | None:
        if not body:
            return "empty"
        if len(body) > self._ctx.settings.MAX_MESSAGE_LENGTH:
            return "too_long"
        return None

    def can_send(self, body: str | None = None) -> bool:
        text = self._state.compose if body is None else body
        return self._check(text.strip()) is None

    async def send(self, body: str | None = None) -> SendOutcome:
        """Send ``body`` (or the compose field). Never raises.

        Retries are left to the user; nothing here re-posts automatically.
        """
        state = self._state
        text = (state.compose if body is None else body).strip()
        reason = self._check(text)
        if reason is not None:
            return SendSkipped(reason)

        me = self._ctx.me
        temp_id = new_temp_id()
        state.timeline.append(
            Message(
                temp_id=temp_id,
                body=text,
                sender=me,
                created_at=self._ctx.clock.now(),
                state=MessageState.PENDING,
                is_from_me=True,
            )
        )
        state.compose = ""
        state.notice = None
        self._scroll.on_local_send()
        state.notify()

        try:
            server = await self._ctx.store.post_message(
                state.conversation_id, text, client_msg_id=temp_id,
            )
        except EntitlementError as exc:
            logger.info(
                "Send blocked by entitlement gate (conversation=%s code=%s)",
                state.conversation_id, exc.code,
            )
            self._rollback(temp_id, text)
            state.upgrade_prompt = True
            state.notify()
            return SendBlocked(code=exc.code, body=text, detail=exc.detail)
        except AppError as exc:
            logger.warning(
                "Send failed (conversation=%s): %s", state.conversation_id, exc.detail,
            )
            self._rollback(temp_id, text)
            state.notice = exc.detail or SEND_FAILED_NOTICE
            state.notify()
            return SendFailed(body=text, detail=exc.detail)
        except Exception as exc:
            logger.exception("Unexpected error sending message")
            self._rollback(temp_id, text)
            state.notice = SEND_FAILED_NOTICE
            state.notify()
            return SendFailed(body=text, detail=str(exc))

        pending = state.timeline.get(temp_id)
        confirmed = pending.confirmed_as(server) if pending else server
        state.timeline.reconcile(temp_id, confirmed)
        state.notify()

        try:
            await self._ctx.channel.send(
                self._ctx.settings.topic_for(state.conversation_id),
                BroadcastEvent.NEW_MESSAGE,
                NewMessagePayload(
                    id=confirmed.key,
                    body=confirmed.body,
                    sender_id=me.id,
                    sender_name=me.name,
                    sender_photo=me.photo_url,
                    sender_role=me.role,
                    created_at=confirmed.created_at,
                ).to_wire(),
            )
        except Exception:
            # Already persisted; the peer will see it on its next fetch
            logger.exception("Failed to broadcast message %s", confirmed.key)

        return SendDelivered(message=confirmed, temp_id=temp_id)

    def _rollback(self, temp_id: str, text: str) -> None:
        self._state.timeline.remove(temp_id)
        self._state.compose = text
