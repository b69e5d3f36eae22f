"""
Qualification and handoff policy.

Pure decision logic over a conversation's fields and the latest Decision:
merges extracted fields, works out which handoff (if any) is active, and
either keeps collecting one field at a time or declares the lead ready.

The policy records pending-handoff bookkeeping but never marks a lead as
handed off; that is the notifier's job, so the one-time side effects stay
in one place.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from lead_orchestrator.config import BusinessConfig
from lead_orchestrator.conversation import qualification
from lead_orchestrator.conversation.state_machine import LeadState, TransitionTrigger
from lead_orchestrator.prompts import reply_templates
from lead_orchestrator.schemas.decision_schema import Decision
from lead_orchestrator.schemas.lead_schema import Conversation, HandoffType, PendingHandoff
from lead_orchestrator.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class PolicyOutcome:
    """What to say and whether to hand off now."""

    reply: str
    handoff_now: bool = False
    handoff_type: Optional[HandoffType] = None


class HandoffPolicy:
    """Applies one Decision to a conversation that has not been handed off."""

    def __init__(
        self,
        business: Optional[BusinessConfig] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._business = business
        self._clock = clock

    def active_type(
        self, conversation: Conversation, decision: Decision
    ) -> Optional[HandoffType]:
        """A pending handoff keeps its type; otherwise the new intent decides."""
        if conversation.pending_handoff is not None:
            return conversation.pending_handoff.type
        return decision.handoff_intent.as_handoff_type()

    def apply(
        self, conversation: Conversation, decision: Decision, inbound_text: str = ""
    ) -> PolicyOutcome:
        if conversation.handed_off:
            raise ValueError(
                f"Conversation {conversation.sender_id} is already handed off"
            )

        if conversation.state == LeadState.NEW:
            conversation.lifecycle.transition(TransitionTrigger.FIRST_MESSAGE)

        qualification.merge_fields(conversation, decision.extracted)
        handoff_type = self.active_type(conversation, decision)

        if handoff_type is None:
            return PolicyOutcome(
                reply=decision.reply or reply_templates.greeting(self._business)
            )

        missing = qualification.missing_fields(conversation, handoff_type)
        if missing:
            self._mark_pending(conversation, handoff_type, inbound_text)
            reply = decision.reply or qualification.ask_for_field(missing[0])
            logger.info(
                "Handoff '%s' pending for %s, missing: %s",
                handoff_type.value, conversation.sender_id, missing,
            )
            return PolicyOutcome(reply=reply)

        # Ready: the confirmation is fixed text, never the model's reply.
        conversation.pending_handoff = None
        logger.info("Lead %s ready for '%s' handoff", conversation.sender_id, handoff_type.value)
        return PolicyOutcome(
            reply=reply_templates.handoff_confirmation(conversation.name),
            handoff_now=True,
            handoff_type=handoff_type,
        )

    def _mark_pending(
        self, conversation: Conversation, handoff_type: HandoffType, inbound_text: str
    ) -> None:
        conversation.pending_handoff = PendingHandoff(
            type=handoff_type,
            requested_at=self._clock(),
            trigger_text=inbound_text,
        )
        conversation.lifecycle.transition(TransitionTrigger.HANDOFF_REQUESTED)
