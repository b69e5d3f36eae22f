from lead_orchestrator.conversation.state_machine import (
    InvalidTransitionError,
    LeadState,
    LeadStateMachine,
    TransitionTrigger,
)

__all__ = [
    "LeadStateMachine",
    "LeadState",
    "TransitionTrigger",
    "InvalidTransitionError",
]
