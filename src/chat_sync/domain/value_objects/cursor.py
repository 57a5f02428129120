from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PageCursor:
    """Backward-paging boundary handed out by the message store."""

    has_more: bool = False
    next_cursor: str | None = None

    @property
    def can_load_more(self) -> bool:
        return self.has_more and bool(self.next_cursor)

    @classmethod
    def exhausted(cls) -> PageCursor:
        return cls(has_more=False, next_cursor=None)
