from __future__ import annotations

import asyncio

import pytest

from chat_sync.application.dto.send import SendBlocked, SendDelivered, SendFailed, SendSkipped
from chat_sync.application.exceptions import EntitlementError, TransientError
from chat_sync.domain.value_objects.enums import BroadcastEvent, DeliveryStatus
from chat_sync.domain.value_objects.ids import is_temp_id
from chat_sync.services.send_pipeline import SEND_FAILED_NOTICE
from tests.conftest import CONV_ID, ME, make_history, make_page, seed


@pytest.fixture
def loaded(session, state):
    seed(state, make_page(make_history(3)))
    return session


@pytest.mark.asyncio
async def test_send_confirms_message_once(loaded, state, store, channel):
    outcome = await loaded.send("Olá")

    assert isinstance(outcome, SendDelivered)
    confirmed = outcome.message
    assert state.timeline.keys() == ["m1", "m2", "m3", confirmed.id]
    assert not any(is_temp_id(k) for k in state.timeline.keys())
    assert not confirmed.is_pending
    assert confirmed.is_from_me
    assert state.compose == ""


@pytest.mark.asyncio
async def test_send_posts_trimmed_body_with_client_id(loaded, store):
    outcome = await loaded.send("  Olá  ")

    (conversation_id, body, client_msg_id), = store.post_calls
    assert conversation_id == CONV_ID
    assert body == "Olá"
    assert client_msg_id == outcome.temp_id


@pytest.mark.asyncio
async def test_send_broadcasts_confirmed_message(loaded, channel):
    outcome = await loaded.send("Olá")

    (payload,) = channel.sent_events(BroadcastEvent.NEW_MESSAGE)
    assert payload["id"] == outcome.message.id
    assert payload["body"] == "Olá"
    assert payload["senderId"] == ME.id
    assert payload["senderName"] == ME.name
    assert payload["senderRole"] == "FAMILY"


@pytest.mark.asyncio
async def test_send_uses_compose_when_no_body(loaded, state, store):
    loaded.set_compose("do campo")

    await loaded.send()

    assert store.post_calls[0][1] == "do campo"
    assert state.compose == ""


@pytest.mark.asyncio
async def test_pending_message_is_visible_before_ack(loaded, state, store):
    gate = asyncio.Event()
    store.post_gates["Olá"] = gate

    task = asyncio.create_task(loaded.send("Olá"))
    await asyncio.sleep(0)

    pending = state.timeline.last()
    assert pending.is_pending
    assert state.receipts.delivery_status(pending) == DeliveryStatus.SENT
    assert state.compose == ""

    gate.set()
    outcome = await task
    assert state.timeline.last().id == outcome.message.id


@pytest.mark.asyncio
async def test_entitlement_block_rolls_back_and_prompts(loaded, state, store, channel):
    store.post_error = EntitlementError("Assine para continuar", code="PREMIUM_REQUIRED")

    outcome = await loaded.send("Olá")

    assert isinstance(outcome, SendBlocked)
    assert outcome.code == "PREMIUM_REQUIRED"
    assert state.timeline.keys() == ["m1", "m2", "m3"]
    assert state.upgrade_prompt is True
    assert state.compose == "Olá"
    assert channel.sent == []


@pytest.mark.asyncio
async def test_failed_send_restores_input(loaded, state, store):
    store.post_error = TransientError("Servidor indisponível")

    outcome = await loaded.send("Olá")

    assert isinstance(outcome, SendFailed)
    assert state.timeline.keys() == ["m1", "m2", "m3"]
    assert state.compose == "Olá"
    assert state.notice == "Servidor indisponível"
    assert state.upgrade_prompt is False


@pytest.mark.asyncio
async def test_unexpected_error_still_rolls_back(loaded, state, store):
    store.post_error = RuntimeError("boom")

    outcome = await loaded.send("Olá")

    assert isinstance(outcome, SendFailed)
    assert len(state.timeline) == 3
    assert state.notice == SEND_FAILED_NOTICE


@pytest.mark.asyncio
async def test_broadcast_failure_keeps_confirmed_message(loaded, state, channel):
    channel.send_error = ConnectionError("redis down")

    outcome = await loaded.send("Olá")

    assert isinstance(outcome, SendDelivered)
    assert state.timeline.last().id == outcome.message.id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, reason",
    [("", "empty"), ("   \n ", "empty"), ("x" * 5001, "too_long")],
)
async def test_invalid_body_is_skipped(loaded, state, store, body, reason):
    outcome = await loaded.send(body)

    assert outcome == SendSkipped(reason)
    assert store.post_calls == []
    assert len(state.timeline) == 3


def test_can_send(loaded):
    assert loaded.sender.can_send("oi")
    assert not loaded.sender.can_send("  ")
    assert loaded.sender.can_send("x" * 5000)
    assert not loaded.sender.can_send("x" * 5001)


@pytest.mark.asyncio
async def test_slow_ack_keeps_creation_order(loaded, state, store):
    first_gate, second_gate = asyncio.Event(), asyncio.Event()
    store.post_gates.update({"first": first_gate, "second": second_gate})

    first = asyncio.create_task(loaded.send("first"))
    second = asyncio.create_task(loaded.send("second"))
    await asyncio.sleep(0)

    second_gate.set()
    await second
    first_gate.set()
    await first

    bodies = [m.body for m in state.timeline]
    assert bodies[-2:] == ["first", "second"]
    assert not any(m.is_pending for m in state.timeline)
