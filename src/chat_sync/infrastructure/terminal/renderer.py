"""Prints a conversation to a text stream as its state changes."""
from __future__ import annotations

from datetime import date
from typing import TextIO

from chat_sync.application.state import ConversationState
from chat_sync.domain.entities.conversation import ConversationSummary, Peer
from chat_sync.domain.entities.message import Message
from chat_sync.services.presentation import (
    date_separator_label,
    delivery_icon,
    format_time,
    initials,
    should_show_date_separator,
)
from chat_sync.services.scroll import badge_label

UPGRADE_PROMPT = "Assine um plano para continuar conversando."
ONLINE_LABEL = "Online"
OFFLINE_LABEL = "Offline"
OFFLINE_NOTICE = "Sem conexão em tempo real, tentando reconectar..."


def render_message(state: ConversationState, message: Message) -> str:
    author = "Você" if message.is_from_me else message.sender.name
    icon = delivery_icon(state.receipts.delivery_status(message))
    line = f"[{format_time(message.created_at)}] {author}: {message.body}"
    return f"{line} {icon}" if icon else line


def render_timeline(state: ConversationState, today: date) -> list[str]:
    lines: list[str] = []
    previous: Message | None = None
    for message in state.timeline:
        if should_show_date_separator(message, previous):
            lines.append(f"--- {date_separator_label(message.created_at, today)} ---")
        lines.append(render_message(state, message))
        previous = message
    return lines


def render_presence(peer: Peer) -> str:
    label = ONLINE_LABEL if peer.is_online else OFFLINE_LABEL
    return f"# ({initials(peer.name)}) {peer.name}: {label}"


def render_summary(summary: ConversationSummary) -> str:
    peer = summary.peer
    badge = badge_label(summary.unread_count)
    head = f"{summary.id}  ({initials(peer.name)}) {peer.name}"
    if badge:
        head += f" [{badge}]"
    if summary.last_message is not None:
        head += f"  {format_time(summary.last_message.created_at)} {summary.last_message.body}"
    return head


class TerminalRenderer:
    """State listener that appends new lines instead of redrawing the screen."""

    def __init__(self, state: ConversationState, out: TextIO, *, today: date) -> None:
        self._state = state
        self._out = out
        self._today = today
        self._printed: list[str] = []
        self._status: tuple[object, ...] = ()

    def __call__(self) -> None:
        state = self._state
        if state.is_loading:
            return

        lines = render_timeline(state, self._today)
        start = 0
        while start < min(len(lines), len(self._printed)) and lines[start] == self._printed[start]:
            start += 1
        for line in lines[start:]:
            self._out.write(line + "\n")
        self._printed = lines

        peer = state.conversation.peer if state.conversation else None
        status = (peer, state.is_disconnected, state.upgrade_prompt, state.notice, state.fatal_error)
        if status != self._status:
            self._status = status
            if peer is not None:
                self._out.write(render_presence(peer) + "\n")
            if state.fatal_error:
                self._out.write(f"! {state.fatal_error}\n")
            if state.is_disconnected:
                self._out.write(f"! {OFFLINE_NOTICE}\n")
            if state.upgrade_prompt:
                self._out.write(f"! {UPGRADE_PROMPT}\n")
            if state.notice:
                self._out.write(f"! {state.notice}\n")
        self._out.flush()
