from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from chat_sync.domain.entities.conversation import Conversation
from chat_sync.domain.entities.read_receipts import ReadReceipts
from chat_sync.domain.timeline import MessageTimeline
from chat_sync.domain.value_objects.cursor import PageCursor
from chat_sync.domain.value_objects.enums import ChannelStatus

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


@dataclass(slots=True)
class ConversationState:
    """Client-side view of the open conversation. Discarded on close."""

    conversation_id: str
    conversation: Conversation | None = None
    timeline: MessageTimeline = field(default_factory=MessageTimeline)
    cursor: PageCursor = field(default_factory=PageCursor.exhausted)
    receipts: ReadReceipts = field(default_factory=ReadReceipts)
    compose: str = ""

    is_loading: bool = True
    is_loading_more: bool = False
    initial_scroll_done: bool = False

    new_messages_count: int = 0
    show_scroll_button: bool = False

    channel_status: ChannelStatus | None = None
    upgrade_prompt: bool = False
    notice: str | None = None  # retry-able error toast
    fatal_error: str | None = None  # view cannot be shown
    redirect_to_list: bool = False

    _listeners: list[Listener] = field(default_factory=list, repr=False)

    @property
    def is_disconnected(self) -> bool:
        return self.channel_status is not None and self.channel_status != ChannelStatus.SUBSCRIBED

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("State listener failed")

    def reset(self) -> None:
        self.conversation = None
        self.timeline.clear()
        self.cursor = PageCursor.exhausted()
        self.receipts = ReadReceipts()
        self.compose = ""
        self.is_loading = True
        self.is_loading_more = False
        self.initial_scroll_done = False
        self.new_messages_count = 0
        self.show_scroll_button = False
        self.channel_status = None
        self.upgrade_prompt = False
        self.notice = None
        self.fatal_error = None
        self.redirect_to_list = False
