from __future__ import annotations

from enum import StrEnum


class SenderRole(StrEnum):
    NANNY = "NANNY"
    FAMILY = "FAMILY"


class MessageState(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


class DeliveryStatus(StrEnum):
    SENT = "sent"  # single check
    DELIVERED = "delivered"  # double check
    READ = "read"  # double check, highlighted


class ChannelStatus(StrEnum):
    SUBSCRIBED = "SUBSCRIBED"
    CHANNEL_ERROR = "CHANNEL_ERROR"
    TIMED_OUT = "TIMED_OUT"
    CLOSED = "CLOSED"


class BroadcastEvent(StrEnum):
    NEW_MESSAGE = "new-message"
    READ_STATUS = "read-status"
