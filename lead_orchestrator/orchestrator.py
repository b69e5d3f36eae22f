"""
Lead orchestrator: the per-message pipeline.

    inbound -> serial queue (per sender) -> append + persist
            -> handed off?  acknowledge + forward to operator
            -> otherwise    executor -> policy -> reply -> notifier (once)

Everything that mutates a Conversation runs inside a job on that sender's
queue slot, so one lead's turns never interleave while different leads are
processed concurrently.
"""

import asyncio
from typing import Optional

from lead_orchestrator.config import AppConfig, settings
from lead_orchestrator.conversation import qualification
from lead_orchestrator.conversation.handoff_policy import HandoffPolicy
from lead_orchestrator.conversation.serial_queue import SerialQueue
from lead_orchestrator.conversation.state_machine import TransitionTrigger
from lead_orchestrator.conversation.store import ConversationStore
from lead_orchestrator.errors import OutboundDeliveryError
from lead_orchestrator.inference.executor import ResilientDecisionExecutor
from lead_orchestrator.inference.gateway import OpenAIGateway
from lead_orchestrator.logging_context import get_lead_logger, set_sender_id
from lead_orchestrator.notifications.handoff_notifier import HandoffNotifier
from lead_orchestrator.notifications.outbound import Messenger, TwilioSender
from lead_orchestrator.persistence.transcripts import TranscriptWriter
from lead_orchestrator.prompts import reply_templates
from lead_orchestrator.schemas.lead_schema import Conversation, Origin
from lead_orchestrator.schemas.webhook_schema import InboundMessage

logger = get_lead_logger(__name__)


class LeadOrchestrator:
    """Receives inbound messages and drives each lead to a handoff."""

    def __init__(
        self,
        executor: ResilientDecisionExecutor,
        messenger: Messenger,
        writer: TranscriptWriter,
        store: Optional[ConversationStore] = None,
        policy: Optional[HandoffPolicy] = None,
        notifier: Optional[HandoffNotifier] = None,
    ) -> None:
        self.store = store or ConversationStore()
        self.queue = SerialQueue(on_error=self._on_error)
        self._executor = executor
        self._messenger = messenger
        self._writer = writer
        self._policy = policy or HandoffPolicy()
        self._notifier = notifier or HandoffNotifier(messenger, writer)

    def submit(self, inbound: InboundMessage) -> asyncio.Task:
        """Queue one inbound message behind earlier ones from the same sender."""
        logger.debug("Queueing message from %s", inbound.sender_id)
        return self.queue.enqueue(inbound.sender_id, lambda: self._process(inbound))

    async def _process(self, inbound: InboundMessage) -> None:
        set_sender_id(inbound.sender_id)
        conversation = self.store.get_or_create(inbound.sender_id, inbound.reply_address)
        conversation.append_message(Origin.CUSTOMER, inbound.text)
        self._writer.write(conversation)
        logger.info("Inbound message (%d chars)", len(inbound.text))

        if conversation.handed_off:
            await self._handle_after_handoff(conversation, inbound.text)
            return

        decision = await self._executor.decide(conversation, inbound.text)
        outcome = self._policy.apply(conversation, decision, inbound.text)
        logger.info(
            "Decision from %s: intent=%s, handoff_now=%s",
            decision.source.value, decision.handoff_intent.value, outcome.handoff_now,
        )
        await self._reply(conversation, outcome.reply)

        if outcome.handoff_now and outcome.handoff_type is not None:
            await self._notifier.notify(conversation, inbound.text, outcome.handoff_type)

    async def _handle_after_handoff(self, conversation: Conversation, text: str) -> None:
        """No inference after handoff: fixed acknowledgement plus operator forward."""
        conversation.lifecycle.transition(TransitionTrigger.MESSAGE_AFTER_HANDOFF)
        await self._reply(
            conversation, reply_templates.post_handoff_acknowledgement(conversation.name)
        )
        await self._notifier.forward_after_handoff(conversation, text)

    async def _reply(self, conversation: Conversation, text: str) -> None:
        """Record the reply, persist, then try to deliver it."""
        conversation.append_message(Origin.ASSISTANT, text)
        self._writer.write(conversation)
        try:
            await self._messenger.reply_to_lead(conversation.destination, text)
        except OutboundDeliveryError as exc:
            logger.error("Reply to %s failed: %s", conversation.sender_id, exc)
            conversation.append_message(Origin.SYSTEM, f"SEND_ERR: {exc}")
            self._writer.write(conversation)

    async def _on_error(self, sender_id: str, exc: Exception) -> None:
        """Record a failed job and make sure the customer still hears back."""
        conversation = self.store.get(sender_id)
        if conversation is None:
            return
        awaiting_reply = _awaiting_reply(conversation)
        conversation.append_message(
            Origin.SYSTEM, f"PROCESSING_ERR: {type(exc).__name__}: {exc}"
        )
        self._writer.write(conversation)
        if awaiting_reply:
            await self._reply(conversation, _technical_issue_reply(conversation))

    async def aclose(self) -> None:
        """Finish queued work, then release provider and carrier clients."""
        await self.queue.drain()
        await self._executor.aclose()
        await self._messenger.aclose()


def _awaiting_reply(conversation: Conversation) -> bool:
    for entry in reversed(conversation.messages):
        if entry.origin != Origin.SYSTEM:
            return entry.origin == Origin.CUSTOMER
    return False


def _technical_issue_reply(conversation: Conversation) -> str:
    if conversation.handed_off:
        return reply_templates.post_handoff_acknowledgement(conversation.name)
    pending = conversation.pending_handoff
    if pending is None:
        return reply_templates.repeat_please()
    return reply_templates.technical_issue(
        qualification.next_missing_field(conversation, pending.type), conversation.name
    )


def build_orchestrator(config: Optional[AppConfig] = None) -> LeadOrchestrator:
    """Wire the production collaborators from configuration."""
    config = config or settings
    transport = config.transport
    sender = TwilioSender(
        account_sid=transport.twilio_account_sid,
        auth_token=transport.twilio_auth_token,
        from_address=transport.twilio_from,
        timeout=transport.send_timeout_sec,
    )
    executor = ResilientDecisionExecutor(
        OpenAIGateway(model_config=config.model, business=config.business),
        resilience=config.resilience,
        model_config=config.model,
    )
    return LeadOrchestrator(
        executor=executor,
        messenger=Messenger(sender, transport),
        writer=TranscriptWriter(config.storage),
        policy=HandoffPolicy(config.business),
    )
