from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

from chat_sync.domain.value_objects.enums import ChannelStatus

OnChannelEvent = Callable[[str, dict[str, Any]], Awaitable[None]]
OnChannelStatus = Callable[[ChannelStatus], None]


class BroadcastChannel(Protocol):
    """Topic-scoped publish/subscribe transport shared by both participants."""

    async def join(
        self,
        topic: str,
        on_event: OnChannelEvent,
        on_status: OnChannelStatus,
    ) -> None: ...

    async def send(self, topic: str, event: str, payload: dict[str, Any]) -> None: ...

    async def leave(self, topic: str) -> None: ...
