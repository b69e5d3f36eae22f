"""Normalized inbound message handed from the webhook to the orchestrator."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from lead_orchestrator.utils import normalize_sender


class InboundMessage(BaseModel):
    """One inbound text from a prospective customer."""

    sender_id: str
    reply_address: str = ""
    text: str = ""

    @classmethod
    def from_twilio_form(cls, form: Mapping[str, Any]) -> "InboundMessage":
        """Best-effort normalization of a Twilio webhook form.

        A missing or unusable ``From`` maps to the ``unknown`` sender rather
        than rejecting the request.
        """
        raw_from = str(form.get("From") or "").strip()
        body = str(form.get("Body") or "").strip()
        return cls(
            sender_id=normalize_sender(raw_from),
            reply_address=raw_from,
            text=body,
        )
