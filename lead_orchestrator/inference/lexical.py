"""
Degraded-mode decision provider: regex intent detection, no network.

Used only after both inference attempts have failed. It never extracts
fields (that needs real language understanding); it only guesses whether
the customer is asking about price or a visit and asks for the single
most important missing field. Output depends only on the request, so the
same state and text always give the same decision.
"""

import logging
import re
from typing import Optional

from lead_orchestrator.conversation.qualification import QUALIFICATION_FIELDS, REQUIRED_FIELDS
from lead_orchestrator.inference.base import DecisionProvider, DecisionRequest, ModelProfile
from lead_orchestrator.prompts import reply_templates
from lead_orchestrator.schemas.decision_schema import Decision, DecisionSource, HandoffIntent
from lead_orchestrator.schemas.lead_schema import HandoffType

logger = logging.getLogger(__name__)

VISIT_PATTERN = re.compile(
    r"visita|agendar|agenda|coordinar|coordinemos|\bmedir\b|medici[oó]n|relevamiento"
    r"|cu[aá]ndo\s+podr[ií]an\s+pasar|\bvisit\b|schedule|appointment|\bmeasure",
    re.IGNORECASE,
)

PRICE_PATTERN = re.compile(
    r"presupuesto|cotiz|precio|cu[aá]nto|\bvale\b|\bvalor|\bprice|\bquote|\bcost|how\s+much",
    re.IGNORECASE,
)


def detect_intent(text: str) -> HandoffIntent:
    """Guess the handoff intent of a message. Visit wins over price."""
    if VISIT_PATTERN.search(text or ""):
        return HandoffIntent.VISIT
    if PRICE_PATTERN.search(text or ""):
        return HandoffIntent.PRICE
    return HandoffIntent.NONE


def _first_missing(fields: dict[str, str], handoff_type: HandoffType) -> Optional[str]:
    required = REQUIRED_FIELDS[handoff_type]
    for defn in QUALIFICATION_FIELDS:
        if defn.name in required and not fields.get(defn.name):
            return defn.name
    return None


class LexicalFallback(DecisionProvider):
    """Local last-resort classifier behind the same interface as the gateway."""

    def decide(self, request: DecisionRequest) -> Decision:
        intent = detect_intent(request.inbound_text)
        requested = request.pending_type or intent.as_handoff_type()
        missing = _first_missing(request.fields, requested or HandoffType.PRICE)
        logger.info(
            "Lexical fallback: intent=%s, asking_for=%s", intent.value, missing or "nothing"
        )
        return Decision(
            reply=reply_templates.technical_issue(
                missing,
                request.fields.get("name", ""),
                handoff_requested=requested is not None,
            ),
            handoff_intent=intent,
            source=DecisionSource.FALLBACK,
        )

    async def propose(
        self, request: DecisionRequest, profile: Optional[ModelProfile] = None
    ) -> Decision:
        return self.decide(request)
