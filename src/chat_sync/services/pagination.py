from __future__ import annotations

import logging

from chat_sync.application.context import SessionContext
from chat_sync.application.exceptions import AppError
from chat_sync.application.ports.viewport import Viewport
from chat_sync.application.state import ConversationState
from chat_sync.services.read_receipts import ReadReceiptSync

logger = logging.getLogger(__name__)


class HistoryPager:
    """Loads older history on demand without moving what the user is looking at."""

    def __init__(
        self,
        ctx: SessionContext,
        state: ConversationState,
        viewport: Viewport,
        receipts: ReadReceiptSync,
    ) -> None:
        self._ctx = ctx
        self._state = state
        self._viewport = viewport
        self._receipts = receipts

    @property
    def can_load(self) -> bool:
        return self._state.cursor.can_load_more and not self._state.is_loading_more

    def near_top(self) -> bool:
        return self._viewport.scroll_top < self._ctx.settings.LOAD_OLDER_THRESHOLD_PX

    async def load_older(self) -> bool:
        """Fetch and prepend the page before ``next_cursor``.

        Returns True when a page was applied. A failed fetch keeps the cursor
        so the next scroll near the top retries.
        """
        if not self.can_load:
            return False

        state = self._state
        cursor = state.cursor.next_cursor
        state.is_loading_more = True
        try:
            page = await self._ctx.store.fetch_page(
                state.conversation_id,
                cursor=cursor,
                limit=self._ctx.settings.PAGE_SIZE,
            )
        except AppError as exc:
            logger.warning(
                "Loading older messages failed (conversation=%s cursor=%s): %s",
                state.conversation_id, cursor, exc.detail,
            )
            return False
        except Exception:
            logger.exception("Unexpected error loading older messages")
            return False
        finally:
            state.is_loading_more = False

        if state.conversation is None:
            # Session closed while the page was in flight
            return False

        # No await between this and the prepend: only prepended rows count in the delta
        previous_height = self._viewport.scroll_height
        added = state.timeline.prepend_page(page.messages)
        state.cursor = page.cursor
        self._receipts.observe_peer(page.conversation.peer.last_read_seq)
        state.notify()

        await self._viewport.next_frame()
        delta = self._viewport.scroll_height - previous_height
        if delta:
            self._viewport.scroll_to(self._viewport.scroll_top + delta)

        logger.debug(
            "Prepended %d messages (has_more=%s)", added, state.cursor.has_more,
        )
        return True
