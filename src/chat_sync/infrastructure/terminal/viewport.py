from __future__ import annotations

import asyncio

from chat_sync.application.state import ConversationState


class TerminalViewport:
    """Line-based stand-in for a scrollable list.

    Every message is one row of ``row_height`` pixels. The view stays pinned to
    the bottom unless ``scroll_to`` moves it away.
    """

    def __init__(
        self,
        state: ConversationState,
        *,
        row_height: int = 20,
        visible_rows: int = 30,
    ) -> None:
        self._state = state
        self._row_height = row_height
        self._visible_rows = visible_rows
        self._top: float | None = None  # None means pinned to the bottom

    @property
    def scroll_height(self) -> float:
        return float(len(self._state.timeline) * self._row_height)

    @property
    def client_height(self) -> float:
        return float(self._visible_rows * self._row_height)

    @property
    def scroll_top(self) -> float:
        max_top = max(self.scroll_height - self.client_height, 0.0)
        if self._top is None:
            return max_top
        return min(self._top, max_top)

    async def next_frame(self) -> None:
        await asyncio.sleep(0)

    def scroll_to(self, top: float) -> None:
        self._top = max(top, 0.0)

    def scroll_to_bottom(self, *, smooth: bool = False) -> None:
        self._top = None
