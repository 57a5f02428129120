"""Store-assigned sequence numbers.

Seq values travel as decimal strings because they can exceed 2**53. They are
held as Python ints, so every comparison is exact.
"""
from __future__ import annotations

Seq = int


def parse_seq(raw: str | int | None) -> Seq | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        raise ValueError(f"Invalid seq: {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = raw.strip()
        if not text.isdigit():
            raise ValueError(f"Invalid seq: {raw!r}")
        value = int(text)
    if value < 0:
        raise ValueError(f"Invalid seq: {raw!r}")
    return value


def format_seq(seq: Seq | None) -> str | None:
    return None if seq is None else str(seq)


def max_seq(current: Seq | None, incoming: Seq | None) -> Seq | None:
    if incoming is None:
        return current
    if current is None:
        return incoming
    return max(current, incoming)


def is_covered(seq: Seq | None, last_read: Seq | None) -> bool:
    """True when a message with ``seq`` is at or below the ``last_read`` mark."""
    if seq is None or last_read is None:
        return False
    return seq <= last_read
