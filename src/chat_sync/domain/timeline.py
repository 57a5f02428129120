"""Ordered, key-addressed message collection for one open conversation."""
from __future__ import annotations

from typing import Iterable, Iterator

from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.seq import Seq, max_seq


class _Slot:
    __slots__ = ("message",)

    def __init__(self, message: Message) -> None:
        self.message = message


def _is_newer(existing: Message, incoming: Message) -> bool:
    if existing.seq is not None and incoming.seq is not None:
        return existing.seq > incoming.seq
    return existing.created_at > incoming.created_at


class MessageTimeline:
    """Messages in arrival/creation order, keyed by server id or temp id.

    Slots keep their position for their whole life, so swapping a temp key for
    the server id is a re-key of the index, not a search through the list.
    """

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._order: list[_Slot] = []
        self._index: dict[str, _Slot] = {}
        for message in messages:
            self.append(message)

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Message]:
        return (slot.message for slot in self._order)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def get(self, key: str) -> Message | None:
        slot = self._index.get(key)
        return slot.message if slot else None

    def keys(self) -> list[str]:
        return [slot.message.key for slot in self._order]

    def append(self, message: Message) -> bool:
        """Add at the end. Returns False if the key is already present."""
        if message.key in self._index:
            return False
        slot = _Slot(message)
        self._order.append(slot)
        self._index[message.key] = slot
        return True

    def insert_chronological(self, message: Message) -> bool:
        """Place a late arrival after the last entry that is not newer than it.

        Entries are compared by seq when both have one, otherwise by
        ``created_at``. Returns False if the key is already present.
        """
        if message.key in self._index:
            return False
        pos = len(self._order)
        while pos > 0 and _is_newer(self._order[pos - 1].message, message):
            pos -= 1
        slot = _Slot(message)
        self._order.insert(pos, slot)
        self._index[message.key] = slot
        return True

    def prepend_page(self, page: Iterable[Message]) -> int:
        """Insert an older page (chronological) ahead of everything loaded."""
        fresh: list[_Slot] = []
        for message in page:
            if message.key in self._index:
                continue
            slot = _Slot(message)
            self._index[message.key] = slot
            fresh.append(slot)
        self._order[:0] = fresh
        return len(fresh)

    def reconcile(self, temp_id: str, confirmed: Message) -> bool:
        """Swap a pending entry for its server copy without moving it.

        If the server copy already arrived through another channel, that later
        duplicate is dropped and the pending position wins.
        """
        slot = self._index.get(temp_id)
        if slot is None:
            return False
        duplicate = self._index.get(confirmed.key)
        if duplicate is not None and duplicate is not slot:
            self._order.remove(duplicate)
        del self._index[temp_id]
        slot.message = confirmed
        self._index[confirmed.key] = slot
        return True

    def update(self, message: Message) -> bool:
        slot = self._index.get(message.key)
        if slot is None:
            return False
        slot.message = message
        return True

    def remove(self, key: str) -> Message | None:
        slot = self._index.pop(key, None)
        if slot is None:
            return None
        self._order.remove(slot)
        return slot.message

    def replace_all(self, messages: Iterable[Message]) -> None:
        self.clear()
        for message in messages:
            self.append(message)

    def clear(self) -> None:
        self._order.clear()
        self._index.clear()

    def latest_seq(self) -> Seq | None:
        latest: Seq | None = None
        for slot in self._order:
            latest = max_seq(latest, slot.message.seq)
        return latest

    def last(self) -> Message | None:
        return self._order[-1].message if self._order else None
