"""
Qualification fields: definitions, required sets and the write-once merge.

Fields are listed in the fixed priority order used whenever a single
missing field has to be asked for: intent summary, name, zone, availability.
A populated field is never overwritten; later extractions only fill blanks.

Usage:
    merged = merge_fields(conversation, decision.extracted)
    missing = missing_fields(conversation, HandoffType.VISIT)
    if missing:
        question = ask_for_field(missing[0])
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from lead_orchestrator.schemas.decision_schema import ExtractedFields
from lead_orchestrator.schemas.lead_schema import Conversation, HandoffType

logger = logging.getLogger(__name__)


def _normalize_name(value: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in value.split())


def _normalize_text(value: str) -> str:
    return " ".join(value.split())


@dataclass(frozen=True)
class FieldDefinition:
    """Schema for a single qualification field."""

    name: str
    display_name: str
    question: str
    normalizer: Callable[[str], str] = _normalize_text


QUALIFICATION_FIELDS: list[FieldDefinition] = [
    FieldDefinition(
        name="intent_summary",
        display_name="consulta",
        question="¿qué producto o trabajo estás buscando? (por ejemplo roller, textiles o toldos)",
    ),
    FieldDefinition(
        name="name",
        display_name="nombre",
        question="¿me decís tu nombre?",
        normalizer=_normalize_name,
    ),
    FieldDefinition(
        name="zone",
        display_name="zona",
        question="¿en qué zona o barrio estás?",
    ),
    FieldDefinition(
        name="availability",
        display_name="disponibilidad",
        question="¿qué días y horarios te quedan cómodos para la visita?",
    ),
]

REQUIRED_FIELDS: dict[HandoffType, tuple[str, ...]] = {
    HandoffType.PRICE: ("name", "zone", "intent_summary"),
    HandoffType.VISIT: ("name", "zone", "intent_summary", "availability"),
}


def get_definition(name: str) -> FieldDefinition:
    for defn in QUALIFICATION_FIELDS:
        if defn.name == name:
            return defn
    raise ValueError(f"Unknown qualification field: {name}")


def merge_fields(conversation: Conversation, extracted: ExtractedFields) -> list[str]:
    """Fill empty fields from an extraction. First non-empty value wins.

    Returns:
        Names of the fields that were populated by this merge.
    """
    populated: list[str] = []
    for defn in QUALIFICATION_FIELDS:
        if getattr(conversation, defn.name):
            continue
        candidate = defn.normalizer(getattr(extracted, defn.name) or "")
        if candidate:
            setattr(conversation, defn.name, candidate)
            populated.append(defn.name)
    if populated:
        logger.debug("Fields populated for %s: %s", conversation.sender_id, populated)
    return populated


def missing_fields(conversation: Conversation, handoff_type: HandoffType) -> list[str]:
    """Required fields still empty for a handoff type, in priority order."""
    required = REQUIRED_FIELDS[handoff_type]
    return [
        defn.name
        for defn in QUALIFICATION_FIELDS
        if defn.name in required and not getattr(conversation, defn.name)
    ]


def next_missing_field(
    conversation: Conversation, handoff_type: HandoffType
) -> Optional[str]:
    missing = missing_fields(conversation, handoff_type)
    return missing[0] if missing else None


def is_ready(conversation: Conversation, handoff_type: HandoffType) -> bool:
    return not missing_fields(conversation, handoff_type)


def ask_for_field(name: str, before_handoff: bool = True) -> str:
    """The single question asked for one missing field."""
    question = get_definition(name).question
    if before_handoff:
        return f"Dale 🙂 Antes de pasarte con un asesor, {question}"
    return f"Contame, {question}"
