from __future__ import annotations

import logging

from chat_sync.application.context import SessionContext
from chat_sync.application.ports.viewport import Viewport
from chat_sync.application.state import ConversationState
from chat_sync.domain.entities.message import Message
from chat_sync.services.pagination import HistoryPager
from chat_sync.services.read_receipts import ReadReceiptSync

logger = logging.getLogger(__name__)


def badge_label(count: int, cap: int = 9) -> str | None:
    if count <= 0:
        return None
    if count > cap:
        return f"+{cap}"
    return str(count)


class ScrollController:
    """Auto-scroll and "new messages" affordance that never fights the user."""

    def __init__(
        self,
        ctx: SessionContext,
        state: ConversationState,
        viewport: Viewport,
        pager: HistoryPager,
        receipts: ReadReceiptSync,
    ) -> None:
        self._ctx = ctx
        self._state = state
        self._viewport = viewport
        self._pager = pager
        self._receipts = receipts

    @property
    def distance_from_bottom(self) -> float:
        vp = self._viewport
        return vp.scroll_height - vp.scroll_top - vp.client_height

    def at_bottom(self) -> bool:
        return self.distance_from_bottom < self._ctx.settings.BOTTOM_THRESHOLD_PX

    @property
    def badge(self) -> str | None:
        return badge_label(self._state.new_messages_count, self._ctx.settings.UNREAD_BADGE_CAP)

    def on_initial_load(self) -> bool:
        """Jump to the end of the first page, once per session."""
        state = self._state
        if state.initial_scroll_done or not len(state.timeline):
            return False
        state.initial_scroll_done = True
        self._viewport.scroll_to_bottom(smooth=False)
        return True

    def on_local_send(self) -> None:
        # The resulting scroll event settles the counter via on_scroll
        self._viewport.scroll_to_bottom(smooth=True)

    async def on_remote_message(self, message: Message, *, was_at_bottom: bool) -> None:
        """``was_at_bottom`` is the position before the message was laid out."""
        if was_at_bottom:
            self._viewport.scroll_to_bottom(smooth=True)
            await self._receipts.mark_viewed([message.key])
            return
        self._state.new_messages_count += 1
        self._state.show_scroll_button = True
        self._state.notify()

    async def on_scroll(self) -> None:
        """Scroll event from the view."""
        if self._pager.near_top() and self._pager.can_load:
            await self._pager.load_older()

        state = self._state
        state.show_scroll_button = not self.at_bottom()
        if self.at_bottom() and state.new_messages_count > 0:
            self._clear_counter()
            await self._receipts.mark_viewed()
        state.notify()

    async def check_initial_fill(self) -> bool:
        """Load older history when the first page does not fill the view."""
        if self._pager.near_top() and self._pager.can_load:
            return await self._pager.load_older()
        return False

    async def jump_to_bottom(self) -> None:
        """Floating "scroll to bottom" control."""
        had_unseen = self._state.new_messages_count > 0
        self._viewport.scroll_to_bottom(smooth=True)
        self._clear_counter()
        if had_unseen:
            await self._receipts.mark_viewed()

    def _clear_counter(self) -> None:
        self._state.new_messages_count = 0
        self._state.show_scroll_button = False
        self._state.notify()
