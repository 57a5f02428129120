from __future__ import annotations

from dataclasses import dataclass, field

from chat_sync.application.ports.channel import BroadcastChannel
from chat_sync.application.ports.clock import Clock, SystemClock
from chat_sync.application.ports.store import MessageStore
from chat_sync.config import Settings, settings as default_settings
from chat_sync.domain.entities.message import Sender


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Everything a conversation session needs from the outside world.

    Passed in explicitly so the session's lifetime and teardown do not depend
    on ambient globals.
    """

    me: Sender
    store: MessageStore
    channel: BroadcastChannel
    clock: Clock = field(default_factory=SystemClock)
    settings: Settings = field(default_factory=lambda: default_settings)
