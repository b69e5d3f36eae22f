"""Lead conversation state and its message log."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from lead_orchestrator.conversation.state_machine import LeadState, LeadStateMachine
from lead_orchestrator.utils import utcnow

QUALIFICATION_FIELD_NAMES = ("intent_summary", "name", "zone", "availability")


class Origin(str, Enum):
    CUSTOMER = "customer"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class HandoffType(str, Enum):
    PRICE = "price"
    VISIT = "visit"


class MessageEntry(BaseModel):
    """A single entry in a conversation's message log."""

    timestamp: datetime
    origin: Origin
    text: str


class PendingHandoff(BaseModel):
    """A handoff the customer asked for while required fields were missing."""

    type: HandoffType
    requested_at: datetime
    trigger_text: str = ""


@dataclass
class Conversation:
    """
    Everything tracked for one customer across all turns.

    Lives in the ConversationStore for the process lifetime. Only mutated
    from jobs running under the sender's serial queue slot.
    """

    sender_id: str
    reply_address: str = ""
    name: str = ""
    zone: str = ""
    intent_summary: str = ""
    availability: str = ""
    messages: list[MessageEntry] = field(default_factory=list)
    handed_off: bool = False
    pending_handoff: Optional[PendingHandoff] = None
    created_at: datetime = field(default_factory=utcnow)
    lifecycle: LeadStateMachine = field(default_factory=LeadStateMachine)

    @property
    def state(self) -> LeadState:
        return self.lifecycle.current_state

    @property
    def destination(self) -> str:
        """Where replies to this lead are sent."""
        return self.reply_address or self.sender_id

    @property
    def last_message(self) -> Optional[MessageEntry]:
        return self.messages[-1] if self.messages else None

    def append_message(
        self, origin: Origin, text: str, now: Optional[datetime] = None
    ) -> MessageEntry:
        """Append to the log, keeping timestamps strictly increasing."""
        timestamp = now or utcnow()
        last = self.last_message
        if last is not None and timestamp <= last.timestamp:
            timestamp = last.timestamp + timedelta(microseconds=1)
        entry = MessageEntry(timestamp=timestamp, origin=origin, text=str(text or ""))
        self.messages.append(entry)
        return entry

    def field_snapshot(self) -> dict[str, str]:
        """Current qualification fields, in priority order."""
        return {name: getattr(self, name) for name in QUALIFICATION_FIELD_NAMES}
