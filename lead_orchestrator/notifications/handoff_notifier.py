"""
Handoff notifier: the one-time transfer of a lead to a human operator.

The customer has already been told they are being handed off, so once
``notify`` starts, the conversation is handed off for good. Snapshot or
delivery problems are recorded in the message log, never rolled back.
"""

from lead_orchestrator.conversation.state_machine import TransitionTrigger
from lead_orchestrator.errors import OutboundDeliveryError
from lead_orchestrator.logging_context import get_lead_logger
from lead_orchestrator.notifications.outbound import Messenger
from lead_orchestrator.persistence.transcripts import TranscriptWriter
from lead_orchestrator.prompts import reply_templates
from lead_orchestrator.schemas.lead_schema import Conversation, HandoffType, Origin

logger = get_lead_logger(__name__)


class HandoffNotifier:
    """Marks leads as handed off and tells the operator about them."""

    def __init__(self, messenger: Messenger, writer: TranscriptWriter) -> None:
        self._messenger = messenger
        self._writer = writer

    async def notify(
        self, conversation: Conversation, triggering_text: str, handoff_type: HandoffType
    ) -> bool:
        """Hand the lead off. Returns False if it already was."""
        if conversation.handed_off:
            logger.debug("Lead %s already handed off, skipping", conversation.sender_id)
            return False

        conversation.handed_off = True
        conversation.pending_handoff = None
        conversation.lifecycle.transition(TransitionTrigger.HANDOFF_EXECUTED)
        logger.info("Lead %s handed off (%s)", conversation.sender_id, handoff_type.value)

        snapshot_name = self._save_snapshot(conversation, handoff_type)
        self._writer.write(conversation)

        notice = reply_templates.operator_handoff_notice(
            handoff_type=handoff_type.value,
            name=conversation.name,
            zone=conversation.zone,
            intent_summary=conversation.intent_summary,
            availability=conversation.availability,
            phone=conversation.sender_id,
            message=triggering_text,
            snapshot=snapshot_name,
        )
        try:
            sent = await self._messenger.notify_operator(notice)
        except OutboundDeliveryError as exc:
            logger.error("Handoff notification failed for %s: %s", conversation.sender_id, exc)
            self._record(conversation, f"HANDOFF_NOTIFY_ERR: {exc}")
            return True

        if not sent:
            self._record(
                conversation,
                f"DEV_MODE: handoff notification suppressed. Tag={handoff_type.value} Snapshot={snapshot_name}",
            )
        return True

    async def forward_after_handoff(self, conversation: Conversation, text: str) -> bool:
        """Forward a post-handoff message to the operator once, if allowed."""
        if not self._messenger.operator_notifications_enabled:
            return False
        notice = reply_templates.operator_after_handoff_notice(
            name=conversation.name,
            zone=conversation.zone,
            phone=conversation.sender_id,
            message=text,
        )
        try:
            return await self._messenger.notify_operator(notice)
        except OutboundDeliveryError as exc:
            logger.error("Post-handoff forward failed for %s: %s", conversation.sender_id, exc)
            self._record(conversation, f"FORWARD_ERR: {exc}")
            return False

    def _save_snapshot(self, conversation: Conversation, handoff_type: HandoffType) -> str:
        try:
            return self._writer.save_snapshot(conversation, handoff_type.value).name
        except OSError as exc:
            logger.error("Snapshot failed for %s: %s", conversation.sender_id, exc)
            self._record(conversation, f"SNAPSHOT_ERR: {exc}")
            return "unavailable"

    def _record(self, conversation: Conversation, text: str) -> None:
        conversation.append_message(Origin.SYSTEM, text)
        self._writer.write(conversation)
