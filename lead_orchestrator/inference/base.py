from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from lead_orchestrator.schemas.decision_schema import Decision
from lead_orchestrator.schemas.lead_schema import (
    Conversation,
    HandoffType,
    MessageEntry,
    Origin,
)


@dataclass(frozen=True)
class ModelProfile:
    """Model variant and deadline for one inference attempt."""

    model: str
    timeout: float


@dataclass(frozen=True)
class DecisionRequest:
    """Everything a provider may look at to decide one turn."""

    inbound_text: str
    fields: dict[str, str] = field(default_factory=dict)
    history: tuple[MessageEntry, ...] = ()
    pending_type: Optional[HandoffType] = None

    @classmethod
    def from_conversation(
        cls, conversation: Conversation, inbound_text: str, history_window: int
    ) -> "DecisionRequest":
        """Build a request from the conversation state.

        The history window excludes the inbound message itself when it has
        already been appended to the log.
        """
        messages = conversation.messages
        last = conversation.last_message
        if last is not None and last.origin == Origin.CUSTOMER and last.text == inbound_text:
            messages = messages[:-1]
        pending = conversation.pending_handoff
        return cls(
            inbound_text=inbound_text,
            fields=conversation.field_snapshot(),
            history=tuple(messages[-history_window:]),
            pending_type=pending.type if pending else None,
        )


class DecisionProvider(ABC):
    """Anything that turns a DecisionRequest into a Decision."""

    @abstractmethod
    async def propose(self, request: DecisionRequest, profile: ModelProfile) -> Decision:
        """Produce a decision or raise an InferenceError."""
        pass

    async def aclose(self) -> None:
        """Release any underlying client."""
