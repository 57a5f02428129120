"""One open conversation: wires the sync components to a store, a channel and a view."""
from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Any, Coroutine, Self

from pydantic import ValidationError as PayloadError

from chat_sync.application.context import SessionContext
from chat_sync.application.dto.events import NewMessagePayload
from chat_sync.application.dto.send import SendOutcome
from chat_sync.application.exceptions import AppError, ForbiddenError, NotFoundError
from chat_sync.application.ports.viewport import Viewport
from chat_sync.application.state import ConversationState
from chat_sync.domain.value_objects.enums import BroadcastEvent, ChannelStatus
from chat_sync.services.pagination import HistoryPager
from chat_sync.services.read_receipts import ReadReceiptSync
from chat_sync.services.scroll import ScrollController
from chat_sync.services.send_pipeline import SendPipeline

logger = logging.getLogger(__name__)

NO_ACCESS_ERROR = "Você não tem acesso a esta conversa"
NOT_FOUND_ERROR = "Conversa não encontrada"
LOAD_FAILED_ERROR = "Erro ao carregar a conversa"


class ConversationSession:
    """Owns the in-memory state of a single conversation while it is open."""

    def __init__(
        self,
        ctx: SessionContext,
        conversation_id: str,
        viewport: Viewport,
        *,
        state: ConversationState | None = None,
    ) -> None:
        self._ctx = ctx
        self.state = state if state is not None else ConversationState(conversation_id=conversation_id)
        self.viewport = viewport

        self.receipts = ReadReceiptSync(ctx, self.state)
        self.pager = HistoryPager(ctx, self.state, viewport, self.receipts)
        self.scroll = ScrollController(ctx, self.state, viewport, self.pager, self.receipts)
        self.sender = SendPipeline(ctx, self.state, self.scroll)

        self._tasks: set[asyncio.Task[Any]] = set()
        self._joined = False
        self._had_outage = False

    @property
    def conversation_id(self) -> str:
        return self.state.conversation_id

    @property
    def topic(self) -> str:
        return self._ctx.settings.topic_for(self.conversation_id)

    async def open(self) -> bool:
        """Load the latest page and go live. Returns False if the view cannot be shown."""
        state = self.state
        state.fatal_error = None
        try:
            page = await self._ctx.store.fetch_page(
                self.conversation_id, limit=self._ctx.settings.PAGE_SIZE,
            )
        except (ForbiddenError, NotFoundError) as exc:
            logger.info("Cannot open conversation %s: %s", self.conversation_id, exc.detail)
            state.fatal_error = NOT_FOUND_ERROR if isinstance(exc, NotFoundError) else NO_ACCESS_ERROR
            state.redirect_to_list = True
            return False
        except AppError as exc:
            logger.warning("Loading conversation %s failed: %s", self.conversation_id, exc.detail)
            state.fatal_error = LOAD_FAILED_ERROR
            return False
        finally:
            state.is_loading = False
            state.notify()

        state.conversation = page.conversation
        state.timeline.replace_all(page.messages)
        state.cursor = page.cursor
        self.receipts.observe_peer(page.conversation.peer.last_read_seq)
        state.notify()

        await self._join_channel()
        await self.receipts.mark_viewed()

        await self.viewport.next_frame()
        self.scroll.on_initial_load()
        self._spawn(self._initial_fill_check(), name=f"initial-fill-{self.conversation_id}")
        return True

    async def close(self) -> None:
        """Leave the channel, stop background work and drop cached state."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self._joined:
            self._joined = False
            try:
                await self._ctx.channel.leave(self.topic)
            except Exception:
                logger.exception("Failed to leave channel %s", self.topic)
        self._had_outage = False

        self.state.reset()
        self.state.notify()

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # User actions

    def set_compose(self, text: str) -> None:
        self.state.compose = text[: self._ctx.settings.MAX_MESSAGE_LENGTH]

    async def send(self, body: str | None = None) -> SendOutcome:
        return await self.sender.send(body)

    async def on_scroll(self) -> None:
        await self.scroll.on_scroll()

    async def jump_to_bottom(self) -> None:
        await self.scroll.jump_to_bottom()

    def dismiss_upgrade_prompt(self) -> None:
        self.state.upgrade_prompt = False
        self.state.notify()

    # Channel

    async def _join_channel(self) -> None:
        try:
            await self._ctx.channel.join(self.topic, self._on_channel_event, self._on_channel_status)
            self._joined = True
        except Exception:
            logger.exception("Could not join channel %s, running degraded", self.topic)
            self._on_channel_status(ChannelStatus.CHANNEL_ERROR)

    async def _on_channel_event(self, event: str, data: dict[str, Any]) -> None:
        if event == BroadcastEvent.NEW_MESSAGE:
            await self._on_remote_message(data)
        elif event == BroadcastEvent.READ_STATUS:
            self.receipts.on_remote_read(data)
        else:
            logger.debug("Ignoring channel event %s", event)

    async def _on_remote_message(self, data: dict[str, Any]) -> None:
        try:
            payload = NewMessagePayload.model_validate(data)
        except PayloadError:
            logger.warning("Dropping malformed new-message payload: %r", data)
            return

        if payload.sender_id == self._ctx.me.id:
            return

        message = payload.to_message()
        was_at_bottom = self.scroll.at_bottom()
        if not self.state.timeline.append(message):
            return
        self.state.notify()
        await self.viewport.next_frame()
        await self.scroll.on_remote_message(message, was_at_bottom=was_at_bottom)

    def _on_channel_status(self, status: ChannelStatus) -> None:
        if status == ChannelStatus.CLOSED and not self._joined:
            # Our own leave during close
            return
        self.state.channel_status = status
        if status == ChannelStatus.SUBSCRIBED:
            if self._had_outage:
                self._had_outage = False
                self._spawn(self.resync(), name=f"resync-{self.conversation_id}")
        else:
            self._had_outage = True
            logger.warning("Channel %s is %s", self.topic, status)
        self.state.notify()

    async def resync(self) -> int:
        """Pull the latest page and slot in anything the channel missed."""
        if self.state.conversation is None:
            return 0
        try:
            page = await self._ctx.store.fetch_page(
                self.conversation_id, limit=self._ctx.settings.PAGE_SIZE,
            )
        except AppError as exc:
            logger.warning("Resync of %s failed: %s", self.conversation_id, exc.detail)
            return 0
        if self.state.conversation is None:
            return 0

        # Peer presence and read position may have moved while we were away
        self.state.conversation = page.conversation
        timeline = self.state.timeline
        was_at_bottom = self.scroll.at_bottom()
        for message in page.messages:
            existing = timeline.get(message.key)
            if existing is not None and existing.seq is None and message.seq is not None:
                timeline.update(message)
        added = 0
        for message in page.messages:
            if timeline.insert_chronological(message):
                added += 1
        self.receipts.observe_peer(page.conversation.peer.last_read_seq)
        self.state.notify()

        if added:
            logger.info("Resync restored %d missed messages", added)
            await self.viewport.next_frame()
            if was_at_bottom:
                self.viewport.scroll_to_bottom(smooth=True)
                await self.receipts.mark_viewed()
            else:
                self.state.new_messages_count += added
                self.state.show_scroll_button = True
                self.state.notify()
        return added

    # Background tasks

    async def _initial_fill_check(self) -> None:
        await asyncio.sleep(self._ctx.settings.INITIAL_FILL_CHECK_SECONDS)
        await self.scroll.check_initial_fill()

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
