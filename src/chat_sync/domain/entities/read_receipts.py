from __future__ import annotations

from dataclasses import dataclass

from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.enums import DeliveryStatus
from chat_sync.domain.value_objects.seq import Seq, is_covered, max_seq


@dataclass(slots=True)
class ReadReceipts:
    """Last-read markers for both participants.

    Both markers only move forward: stale or duplicated updates are absorbed.
    """

    peer_last_read_seq: Seq | None = None
    own_last_read_seq: Seq | None = None

    def observe_peer(self, seq: Seq | None) -> bool:
        updated = max_seq(self.peer_last_read_seq, seq)
        changed = updated != self.peer_last_read_seq
        self.peer_last_read_seq = updated
        return changed

    def observe_own(self, seq: Seq | None) -> bool:
        updated = max_seq(self.own_last_read_seq, seq)
        changed = updated != self.own_last_read_seq
        self.own_last_read_seq = updated
        return changed

    def is_read_by_peer(self, message: Message) -> bool:
        return is_covered(message.seq, self.peer_last_read_seq)

    def delivery_status(self, message: Message) -> DeliveryStatus | None:
        if not message.is_from_me:
            return None
        if message.is_pending:
            return DeliveryStatus.SENT
        if self.is_read_by_peer(message):
            return DeliveryStatus.READ
        return DeliveryStatus.DELIVERED
