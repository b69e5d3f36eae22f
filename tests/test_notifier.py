"""Tests for the one-time handoff notification and outbound gating."""

import pytest

from lead_orchestrator.conversation.state_machine import LeadState, TransitionTrigger
from lead_orchestrator.errors import OutboundDeliveryError
from lead_orchestrator.notifications.handoff_notifier import HandoffNotifier
from lead_orchestrator.notifications.outbound import Messenger
from lead_orchestrator.schemas.lead_schema import HandoffType, Origin, PendingHandoff
from lead_orchestrator.utils import utcnow

from tests.conftest import (
    OPERATOR_ADDRESS,
    RecordingSender,
    make_conversation,
    make_transport,
)


def _ready_conversation():
    conv = make_conversation(
        reply_address="whatsapp:+5493415551234",
        name="Ana",
        zone="Centro",
        intent_summary="roller blackout",
    )
    conv.lifecycle.transition(TransitionTrigger.FIRST_MESSAGE)
    conv.append_message(Origin.CUSTOMER, "quiero presupuesto")
    return conv


class TestNotify:
    @pytest.mark.asyncio
    async def test_first_notify_hands_off(self, sender, messenger, writer):
        conv = _ready_conversation()
        conv.pending_handoff = PendingHandoff(type=HandoffType.PRICE, requested_at=utcnow())
        notifier = HandoffNotifier(messenger, writer)

        assert await notifier.notify(conv, "quiero presupuesto", HandoffType.PRICE)
        assert conv.handed_off
        assert conv.pending_handoff is None
        assert conv.state == LeadState.HANDED_OFF

    @pytest.mark.asyncio
    async def test_operator_message_contents(self, sender, messenger, writer):
        conv = _ready_conversation()
        await HandoffNotifier(messenger, writer).notify(conv, "quiero presupuesto", HandoffType.PRICE)
        [body] = sender.sent_to(OPERATOR_ADDRESS)
        assert body.startswith("🧑‍💼 HANDOFF (price)")
        assert "Nombre: Ana" in body
        assert "Zona: Centro" in body
        assert "Busca: roller blackout" in body
        assert "Tel: 5493415551234" in body
        assert "Mensaje: quiero presupuesto" in body
        assert "Snapshot: " in body

    @pytest.mark.asyncio
    async def test_visit_header(self, sender, messenger, writer):
        conv = _ready_conversation()
        conv.availability = "martes"
        await HandoffNotifier(messenger, writer).notify(conv, "visita", HandoffType.VISIT)
        [body] = sender.sent_to(OPERATOR_ADDRESS)
        assert body.startswith("📅 HANDOFF (visit)")
        assert "Disponibilidad: martes" in body

    @pytest.mark.asyncio
    async def test_at_most_once(self, sender, messenger, writer):
        conv = _ready_conversation()
        notifier = HandoffNotifier(messenger, writer)
        assert await notifier.notify(conv, "a", HandoffType.PRICE)
        assert not await notifier.notify(conv, "b", HandoffType.PRICE)
        assert len(sender.sent_to(OPERATOR_ADDRESS)) == 1
        assert len(list(writer.leads_dir.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_unwritable_transcript_still_notifies_operator(self, sender, messenger, writer):
        conv = _ready_conversation()
        writer.transcript_path(conv).mkdir()
        notifier = HandoffNotifier(messenger, writer)

        assert await notifier.notify(conv, "quiero presupuesto", HandoffType.PRICE)
        assert conv.handed_off
        [body] = sender.sent_to(OPERATOR_ADDRESS)
        assert body.startswith("🧑‍💼 HANDOFF (price)")
        assert len(list(writer.leads_dir.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_snapshot_and_transcript_written(self, messenger, writer):
        conv = _ready_conversation()
        await HandoffNotifier(messenger, writer).notify(conv, "a", HandoffType.PRICE)
        [snapshot] = list(writer.leads_dir.iterdir())
        assert "_price_5493415551234_ana_centro" in snapshot.name
        assert "- handedOff: true" in writer.transcript_path(conv).read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_sandbox_suppresses_and_records(self, sandbox_transport, writer):
        sender = RecordingSender()
        conv = _ready_conversation()
        notifier = HandoffNotifier(Messenger(sender, sandbox_transport), writer)
        assert await notifier.notify(conv, "a", HandoffType.VISIT)
        assert sender.sent == []
        assert conv.handed_off
        assert conv.last_message.origin == Origin.SYSTEM
        assert conv.last_message.text.startswith("DEV_MODE: handoff notification suppressed. Tag=visit")

    @pytest.mark.asyncio
    async def test_delivery_failure_keeps_handed_off(self, writer):
        conv = _ready_conversation()
        notifier = HandoffNotifier(Messenger(RecordingSender(fail=True), make_transport()), writer)
        assert await notifier.notify(conv, "a", HandoffType.PRICE)
        assert conv.handed_off
        assert conv.last_message.origin == Origin.SYSTEM
        assert "HANDOFF_NOTIFY_ERR" in conv.last_message.text

    @pytest.mark.asyncio
    async def test_missing_operator_address_recorded(self, sender, writer):
        conv = _ready_conversation()
        notifier = HandoffNotifier(Messenger(sender, make_transport(handoff_to="")), writer)
        assert await notifier.notify(conv, "a", HandoffType.PRICE)
        assert sender.sent == []
        assert "HANDOFF_TO" in conv.last_message.text


class TestForwardAfterHandoff:
    @pytest.mark.asyncio
    async def test_forwards_once(self, sender, messenger, writer):
        conv = _ready_conversation()
        conv.handed_off = True
        assert await HandoffNotifier(messenger, writer).forward_after_handoff(conv, "¿a qué hora vienen?")
        [body] = sender.sent_to(OPERATOR_ADDRESS)
        assert body.startswith("📩 Mensaje después del handoff")
        assert "Mensaje: ¿a qué hora vienen?" in body

    @pytest.mark.asyncio
    async def test_sandbox_skips_forward(self, sandbox_transport, writer):
        sender = RecordingSender()
        notifier = HandoffNotifier(Messenger(sender, sandbox_transport), writer)
        assert not await notifier.forward_after_handoff(_ready_conversation(), "hola")
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_forward_failure_recorded(self, writer):
        conv = _ready_conversation()
        notifier = HandoffNotifier(Messenger(RecordingSender(fail=True), make_transport()), writer)
        assert not await notifier.forward_after_handoff(conv, "hola")
        assert "FORWARD_ERR" in conv.last_message.text


class TestMessenger:
    @pytest.mark.asyncio
    async def test_live_mode_sends_everything(self, sender, messenger):
        assert await messenger.reply_to_lead("whatsapp:+1", "hola")
        assert await messenger.notify_operator("aviso")
        assert len(sender.sent) == 2

    @pytest.mark.asyncio
    async def test_sandbox_suppresses_everything_by_default(self, sandbox_transport):
        sender = RecordingSender()
        messenger = Messenger(sender, sandbox_transport)
        assert not await messenger.reply_to_lead("whatsapp:+1", "hola")
        assert not await messenger.notify_operator("aviso")
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_sandbox_can_reply_to_lead(self):
        sender = RecordingSender()
        messenger = Messenger(sender, make_transport(dev_mode=True, reply_to_lead_in_dev=True))
        assert await messenger.reply_to_lead("whatsapp:+1", "hola")
        assert not await messenger.notify_operator("aviso")
        assert sender.sent == [("whatsapp:+1", "hola")]

    @pytest.mark.asyncio
    async def test_empty_destination_skipped(self, sender, messenger):
        assert not await messenger.reply_to_lead("", "hola")
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_delivery_error_propagates(self):
        messenger = Messenger(RecordingSender(fail=True), make_transport())
        with pytest.raises(OutboundDeliveryError):
            await messenger.reply_to_lead("whatsapp:+1", "hola")
