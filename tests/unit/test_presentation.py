from __future__ import annotations

import io
from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from chat_sync.domain.entities.conversation import Peer
from chat_sync.domain.entities.message import Message
from chat_sync.domain.value_objects.enums import DeliveryStatus
from chat_sync.infrastructure.terminal.renderer import (
    TerminalRenderer,
    render_presence,
    render_timeline,
)
from chat_sync.infrastructure.terminal.viewport import TerminalViewport
from chat_sync.services.presentation import (
    date_separator_label,
    delivery_icon,
    format_time,
    initials,
    should_show_date_separator,
)
from tests.conftest import ME, PEER, make_page, seed

TODAY = date(2026, 3, 10)


def _at(when: datetime, msg_id: str, sender=PEER, seq: int | None = None) -> Message:
    return Message(id=msg_id, body=f"body {msg_id}", sender=sender, created_at=when,
                   seq=seq, is_from_me=sender is ME)


def test_date_separator_between_days():
    first = _at(datetime(2026, 3, 9, 23, 50), "a")
    same_day = _at(datetime(2026, 3, 9, 23, 59), "b")
    next_day = _at(datetime(2026, 3, 10, 0, 1), "c")

    assert should_show_date_separator(first, None) is True
    assert should_show_date_separator(same_day, first) is False
    assert should_show_date_separator(next_day, same_day) is True


@pytest.mark.parametrize(
    "when, label",
    [
        (datetime(2026, 3, 10, 8, 0), "Hoje"),
        (datetime(2026, 3, 9, 22, 0), "Ontem"),
        (datetime(2026, 3, 2, 9, 0), "02 de março"),
        (datetime(2025, 12, 25, 9, 0), "25 de dezembro"),
    ],
)
def test_date_separator_label(when, label):
    assert date_separator_label(when, TODAY) == label


def test_format_time():
    assert format_time(datetime(2026, 3, 10, 9, 5)) == "09:05"


@pytest.mark.parametrize(
    "name, expected",
    [("Ana Souza", "AS"), ("Maria da Silva", "MS"), ("bia", "BI"), ("", "?")],
)
def test_initials(name, expected):
    assert initials(name) == expected


def test_delivery_icons_differ():
    icons = {delivery_icon(status) for status in DeliveryStatus}

    assert len(icons) == 3
    assert delivery_icon(None) == ""


def test_render_timeline_groups_by_day(state):
    start = datetime(2026, 3, 9, 10, 0)
    seed(state, make_page([
        _at(start, "a"),
        _at(start + timedelta(minutes=5), "b", sender=ME, seq=2),
        _at(start + timedelta(days=1), "c"),
    ], peer_last_read_seq=2))

    lines = render_timeline(state, TODAY)

    assert lines[0] == "--- Ontem ---"
    assert lines[1] == f"[10:00] {PEER.name}: body a"
    assert lines[2] == f"[10:05] Você: body b {delivery_icon(DeliveryStatus.READ)}"
    assert lines[3] == "--- Hoje ---"


def test_renderer_prints_only_new_lines(state):
    out = io.StringIO()
    renderer = TerminalRenderer(state, out, today=TODAY)
    state.add_listener(renderer)
    seed(state, make_page([_at(datetime(2026, 3, 10, 9, 0), "a")]))
    state.notify()

    state.timeline.append(_at(datetime(2026, 3, 10, 9, 1), "b"))
    state.notify()

    assert out.getvalue().splitlines() == [
        "--- Hoje ---",
        f"[09:00] {PEER.name}: body a",
        f"# (BL) {PEER.name}: Offline",
        f"[09:01] {PEER.name}: body b",
    ]


def test_renderer_reports_peer_presence_changes(state):
    out = io.StringIO()
    state.add_listener(TerminalRenderer(state, out, today=TODAY))
    seed(state, make_page([_at(datetime(2026, 3, 10, 9, 0), "a")]))
    state.notify()
    state.notify()

    conversation = state.conversation
    state.conversation = replace(conversation, peer=replace(conversation.peer, is_online=True))
    state.notify()

    presence = [line for line in out.getvalue().splitlines() if line.startswith("#")]
    assert presence == [f"# (BL) {PEER.name}: Offline", f"# (BL) {PEER.name}: Online"]


def test_render_presence():
    assert render_presence(Peer(id="2", name="Bia Lima", is_online=True)) == "# (BL) Bia Lima: Online"
    assert render_presence(Peer(id="3", name="caio")) == "# (CA) caio: Offline"


def test_terminal_viewport_pins_to_bottom(state):
    viewport = TerminalViewport(state, row_height=20, visible_rows=5)
    seed(state, make_page([_at(datetime(2026, 3, 10, 9, i), f"m{i}") for i in range(10)]))

    assert viewport.scroll_height == 200
    assert viewport.scroll_top == 100

    viewport.scroll_to(0)
    state.timeline.append(_at(datetime(2026, 3, 10, 9, 30), "late"))
    assert viewport.scroll_top == 0

    viewport.scroll_to_bottom(smooth=True)
    assert viewport.scroll_top == 120
