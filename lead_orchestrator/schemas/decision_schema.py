"""Per-turn decision produced by the inference layer."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from lead_orchestrator.schemas.lead_schema import HandoffType


class HandoffIntent(str, Enum):
    NONE = "none"
    PRICE = "price"
    VISIT = "visit"

    def as_handoff_type(self) -> Optional[HandoffType]:
        if self is HandoffIntent.NONE:
            return None
        return HandoffType(self.value)


class DecisionSource(str, Enum):
    PRIMARY = "primary"
    RETRY = "retry"
    FALLBACK = "fallback"


class ExtractedFields(BaseModel):
    """Qualification fields the provider found in the inbound message."""

    name: str = ""
    zone: str = ""
    intent_summary: str = ""
    availability: str = ""


class Decision(BaseModel):
    """Reply text, extracted fields and handoff intent for one inbound message."""

    reply: str = ""
    extracted: ExtractedFields = Field(default_factory=ExtractedFields)
    handoff_intent: HandoffIntent = HandoffIntent.NONE
    source: DecisionSource = DecisionSource.PRIMARY
