"""Shared test fixtures."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

import pytest

from chat_sync.application.context import SessionContext
from chat_sync.application.dto.page import ConversationPage
from chat_sync.application.exceptions import AppError
from chat_sync.application.ports.channel import OnChannelEvent, OnChannelStatus
from chat_sync.application.state import ConversationState
from chat_sync.config import Settings
from chat_sync.domain.entities.conversation import Conversation, Peer
from chat_sync.domain.entities.message import Message, Sender
from chat_sync.domain.value_objects.cursor import PageCursor
from chat_sync.domain.value_objects.enums import ChannelStatus, SenderRole
from chat_sync.domain.value_objects.seq import Seq
from chat_sync.services.conversation_session import ConversationSession

CONV_ID = "c1"
ME = Sender(id="1", name="Ana Souza", role=SenderRole.FAMILY)
PEER = Sender(id="2", name="Bia Lima", role=SenderRole.NANNY)
BASE_TIME = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {"INITIAL_FILL_CHECK_SECONDS": 0.0}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_message(
    *,
    id: str,
    body: str = "hello",
    sender: Sender = PEER,
    seq: Seq | None = None,
    minutes: int = 0,
) -> Message:
    return Message(
        id=id,
        body=body,
        sender=sender,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        seq=seq,
        is_from_me=sender.id == ME.id,
    )


def make_conversation(*, peer_last_read_seq: Seq | None = None) -> Conversation:
    return Conversation(
        id=CONV_ID,
        created_at=BASE_TIME,
        peer=Peer(
            id=PEER.id,
            name=PEER.name,
            role=PEER.role,
            last_read_seq=peer_last_read_seq,
        ),
    )


def make_page(
    messages: Sequence[Message] = (),
    *,
    next_cursor: str | None = None,
    peer_last_read_seq: Seq | None = None,
) -> ConversationPage:
    return ConversationPage(
        conversation=make_conversation(peer_last_read_seq=peer_last_read_seq),
        messages=list(messages),
        cursor=PageCursor(has_more=next_cursor is not None, next_cursor=next_cursor),
    )


def make_history(count: int, *, start: int = 1) -> list[Message]:
    return [
        make_message(id=f"m{i}", body=f"msg {i}", seq=i, minutes=i)
        for i in range(start, start + count)
    ]


@dataclass
class FixedClock:
    current: datetime = BASE_TIME + timedelta(hours=1)

    def now(self) -> datetime:
        return self.current


@dataclass
class FakeStore:
    """In-memory message store. Pages are looked up by cursor (None = latest)."""

    pages: dict[str | None, ConversationPage] = field(default_factory=dict)
    fetch_error: AppError | None = None
    fetch_gate: asyncio.Event | None = None
    post_error: Exception | None = None
    post_gates: dict[str, asyncio.Event] = field(default_factory=dict)
    mark_read_seq: Seq | None = None
    mark_read_error: AppError | None = None

    fetch_calls: list[tuple[str, str | None, int]] = field(default_factory=list)
    post_calls: list[tuple[str, str, str | None]] = field(default_factory=list)
    mark_read_calls: list[tuple[str, list[str] | None]] = field(default_factory=list)
    _next_id: int = 1000

    async def fetch_page(
        self,
        conversation_id: str,
        *,
        cursor: str | None = None,
        limit: int = 30,
    ) -> ConversationPage:
        self.fetch_calls.append((conversation_id, cursor, limit))
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.pages[cursor]

    async def post_message(
        self,
        conversation_id: str,
        body: str,
        *,
        client_msg_id: str | None = None,
    ) -> Message:
        self.post_calls.append((conversation_id, body, client_msg_id))
        gate = self.post_gates.get(body)
        if gate is not None:
            await gate.wait()
        if self.post_error is not None:
            raise self.post_error
        self._next_id += 1
        return Message(
            id=f"m{self._next_id}",
            body=body,
            sender=ME,
            created_at=BASE_TIME + timedelta(hours=1),
            seq=self._next_id,
            is_from_me=True,
        )

    async def mark_read(
        self,
        conversation_id: str,
        *,
        message_ids: Sequence[str] | None = None,
    ) -> Seq | None:
        self.mark_read_calls.append(
            (conversation_id, list(message_ids) if message_ids is not None else None)
        )
        if self.mark_read_error is not None:
            raise self.mark_read_error
        return self.mark_read_seq


@dataclass
class FakeChannel:
    sent: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)
    joined: dict[str, tuple[OnChannelEvent, OnChannelStatus]] = field(default_factory=dict)
    left: list[str] = field(default_factory=list)
    join_error: Exception | None = None
    send_error: Exception | None = None

    async def join(self, topic: str, on_event: OnChannelEvent, on_status: OnChannelStatus) -> None:
        if self.join_error is not None:
            raise self.join_error
        self.joined[topic] = (on_event, on_status)
        on_status(ChannelStatus.SUBSCRIBED)

    async def send(self, topic: str, event: str, payload: dict[str, Any]) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((topic, str(event), payload))

    async def leave(self, topic: str) -> None:
        self.left.append(topic)
        joined = self.joined.pop(topic, None)
        if joined is not None:
            joined[1](ChannelStatus.CLOSED)

    async def deliver(self, topic: str, event: str, data: dict[str, Any]) -> None:
        on_event, _ = self.joined[topic]
        await on_event(event, data)

    def set_status(self, topic: str, status: ChannelStatus) -> None:
        _, on_status = self.joined[topic]
        on_status(status)

    def sent_events(self, event: str) -> list[dict[str, Any]]:
        return [payload for _, name, payload in self.sent if name == event]


@dataclass
class FakeViewport:
    """One row of ``row_height`` px per message; ten rows visible."""

    state: ConversationState
    row_height: int = 20
    client_height: float = 200.0
    scroll_top: float = 0.0
    bottom_scrolls: list[bool] = field(default_factory=list)
    frames: int = 0

    @property
    def scroll_height(self) -> float:
        return float(len(self.state.timeline) * self.row_height)

    async def next_frame(self) -> None:
        self.frames += 1

    def scroll_to(self, top: float) -> None:
        self.scroll_top = max(0.0, min(top, max(self.scroll_height - self.client_height, 0.0)))

    def scroll_to_bottom(self, *, smooth: bool = False) -> None:
        self.bottom_scrolls.append(smooth)
        self.scroll_top = max(self.scroll_height - self.client_height, 0.0)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def ctx(store, channel) -> SessionContext:
    return SessionContext(
        me=ME,
        store=store,
        channel=channel,
        clock=FixedClock(),
        settings=make_settings(),
    )


@pytest.fixture
def state() -> ConversationState:
    return ConversationState(conversation_id=CONV_ID)


@pytest.fixture
def viewport(state) -> FakeViewport:
    return FakeViewport(state)


@pytest.fixture
def session(ctx, viewport, state) -> ConversationSession:
    return ConversationSession(ctx, CONV_ID, viewport, state=state)


def seed(state: ConversationState, page: ConversationPage) -> None:
    """Put a loaded page into state without going through ``open``."""
    state.conversation = page.conversation
    state.timeline.replace_all(page.messages)
    state.cursor = page.cursor
    state.receipts.observe_peer(page.conversation.peer.last_read_seq)
    state.is_loading = False
