"""Read-only views over in-memory conversations for the debug endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from lead_orchestrator.schemas.lead_schema import (
    Conversation,
    MessageEntry,
    Origin,
    PendingHandoff,
)


class LeadSummary(BaseModel):
    sender_id: str
    name: str
    zone: str
    intent_summary: str
    availability: str
    state: str
    created_at: datetime
    handed_off: bool
    pending_handoff: Optional[PendingHandoff] = None
    messages_count: int
    last_at: Optional[datetime] = None
    last_origin: Optional[Origin] = None
    last_text: Optional[str] = None

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "LeadSummary":
        last = conversation.last_message
        return cls(
            sender_id=conversation.sender_id,
            name=conversation.name,
            zone=conversation.zone,
            intent_summary=conversation.intent_summary,
            availability=conversation.availability,
            state=conversation.state.value,
            created_at=conversation.created_at,
            handed_off=conversation.handed_off,
            pending_handoff=conversation.pending_handoff,
            messages_count=len(conversation.messages),
            last_at=last.timestamp if last else None,
            last_origin=last.origin if last else None,
            last_text=last.text if last else None,
        )


class LeadListResponse(BaseModel):
    ok: bool = True
    count: int
    leads: list[LeadSummary] = Field(default_factory=list)


class LeadDetail(BaseModel):
    sender_id: str
    reply_address: str
    name: str
    zone: str
    intent_summary: str
    availability: str
    state: str
    state_trace: list[str]
    created_at: datetime
    handed_off: bool
    pending_handoff: Optional[PendingHandoff] = None


class ConversationDetailResponse(BaseModel):
    ok: bool = True
    lead: LeadDetail
    messages: list[MessageEntry] = Field(default_factory=list)

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationDetailResponse":
        return cls(
            lead=LeadDetail(
                sender_id=conversation.sender_id,
                reply_address=conversation.reply_address,
                name=conversation.name,
                zone=conversation.zone,
                intent_summary=conversation.intent_summary,
                availability=conversation.availability,
                state=conversation.state.value,
                state_trace=conversation.lifecycle.get_state_trace(),
                created_at=conversation.created_at,
                handed_off=conversation.handed_off,
                pending_handoff=conversation.pending_handoff,
            ),
            messages=list(conversation.messages),
        )
