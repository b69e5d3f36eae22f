"""Turn raw provider text into a Decision.

Models wrap JSON in prose or code fences often enough that the parser
takes the span from the first ``{`` to the last ``}`` and ignores the rest.
Only ``reply`` is mandatory; every other key degrades to an empty value.
"""

import json
from typing import Any

from lead_orchestrator.errors import MalformedDecisionError
from lead_orchestrator.schemas.decision_schema import Decision, ExtractedFields, HandoffIntent

# Accepted spellings for each extracted field, first match wins.
_FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "name": ("name",),
    "zone": ("zone",),
    "intent_summary": ("intentSummary", "intent_summary"),
    "availability": ("availability",),
}


def _string_or_empty(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _parse_intent(value: Any) -> HandoffIntent:
    if not isinstance(value, str):
        return HandoffIntent.NONE
    try:
        return HandoffIntent(value.strip().lower())
    except ValueError:
        return HandoffIntent.NONE


def extract_json_object(raw_text: str) -> dict[str, Any]:
    """Parse the first-``{``-to-last-``}`` span of a response as a JSON object.

    Raises:
        MalformedDecisionError: No braces, invalid JSON, or not an object.
    """
    text = (raw_text or "").strip()
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise MalformedDecisionError("Response contains no JSON object")
    try:
        parsed = json.loads(text[start:end + 1])
    except json.JSONDecodeError as exc:
        raise MalformedDecisionError(f"Response JSON is invalid: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise MalformedDecisionError("Response JSON is not an object")
    return parsed


def parse_decision(raw_text: str) -> Decision:
    """Parse provider output into a Decision.

    Raises:
        MalformedDecisionError: When no usable object with a string ``reply``
            can be recovered.
    """
    data = extract_json_object(raw_text)
    reply = data.get("reply")
    if not isinstance(reply, str):
        raise MalformedDecisionError("Response has no string 'reply'")

    fields: dict[str, str] = {}
    for attr, keys in _FIELD_KEYS.items():
        value = ""
        for key in keys:
            value = _string_or_empty(data.get(key))
            if value:
                break
        fields[attr] = value

    return Decision(
        reply=reply.strip(),
        extracted=ExtractedFields(**fields),
        handoff_intent=_parse_intent(data.get("handoff_intent")),
    )
