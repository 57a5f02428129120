"""Formatting helpers shared by every view of a conversation."""
from __future__ import annotations

from datetime import date, datetime

from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.enums import DeliveryStatus

MONTHS_PT = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)

DELIVERY_ICONS = {
    DeliveryStatus.SENT: "✓",
    DeliveryStatus.DELIVERED: "✓✓",
    DeliveryStatus.READ: "✓✓*",
}


def _local_date(value: datetime) -> date:
    return value.astimezone().date() if value.tzinfo else value.date()


def should_show_date_separator(current: Message, previous: Message | None) -> bool:
    """A separator goes before the first message and at every change of day."""
    if previous is None:
        return True
    return _local_date(current.created_at) != _local_date(previous.created_at)


def date_separator_label(value: datetime, today: date) -> str:
    day = _local_date(value)
    delta = (today - day).days
    if delta == 0:
        return "Hoje"
    if delta == 1:
        return "Ontem"
    return f"{day.day:02d} de {MONTHS_PT[day.month - 1]}"


def format_time(value: datetime) -> str:
    local = value.astimezone() if value.tzinfo else value
    return local.strftime("%H:%M")


def initials(name: str) -> str:
    parts = name.split()
    if not parts:
        return "?"
    if len(parts) == 1:
        return parts[0][:2].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def delivery_icon(status: DeliveryStatus | None) -> str:
    if status is None:
        return ""
    return DELIVERY_ICONS[status]
