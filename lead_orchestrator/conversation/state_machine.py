"""
Finite state machine for the lead lifecycle.

Four states and an explicit transition table. The qualification fields and
handoff flags on a Conversation are the data; this machine is the record of
which phase the lead is in and how it got there, so an invalid move (for
example, qualifying again after a handoff) fails loudly instead of silently
corrupting the conversation.

Usage:
    sm = LeadStateMachine()
    sm.transition(TransitionTrigger.FIRST_MESSAGE)
    assert sm.current_state == LeadState.QUALIFYING
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class LeadState(str, Enum):
    """All possible phases of a lead conversation."""
    NEW = "new"
    QUALIFYING = "qualifying"
    PENDING_HANDOFF = "pending_handoff"
    HANDED_OFF = "handed_off"


class TransitionTrigger(str, Enum):
    """Events that cause state transitions."""
    FIRST_MESSAGE = "first_message"
    HANDOFF_REQUESTED = "handoff_requested"
    HANDOFF_EXECUTED = "handoff_executed"
    MESSAGE_AFTER_HANDOFF = "message_after_handoff"


@dataclass(frozen=True)
class Transition:
    """A single valid state transition."""
    from_state: LeadState
    to_state: LeadState
    trigger: TransitionTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: LeadState
    entered_at: datetime
    trigger: Optional[TransitionTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class LeadStateMachine:
    """
    Deterministic lifecycle of a single lead.

    Pending handoff has no expiry: once requested, the lead stays in
    PENDING_HANDOFF until the missing fields arrive. HANDED_OFF is terminal;
    its only transition is the self-loop for messages received afterwards.
    """

    TRANSITIONS: list[Transition] = [
        Transition(LeadState.NEW, LeadState.QUALIFYING,
                   TransitionTrigger.FIRST_MESSAGE),

        # --- Handoff requested with fields missing ---
        Transition(LeadState.QUALIFYING, LeadState.PENDING_HANDOFF,
                   TransitionTrigger.HANDOFF_REQUESTED),
        Transition(LeadState.PENDING_HANDOFF, LeadState.PENDING_HANDOFF,
                   TransitionTrigger.HANDOFF_REQUESTED),

        # --- Handoff executed ---
        Transition(LeadState.QUALIFYING, LeadState.HANDED_OFF,
                   TransitionTrigger.HANDOFF_EXECUTED),
        Transition(LeadState.PENDING_HANDOFF, LeadState.HANDED_OFF,
                   TransitionTrigger.HANDOFF_EXECUTED),

        # --- Terminal ---
        Transition(LeadState.HANDED_OFF, LeadState.HANDED_OFF,
                   TransitionTrigger.MESSAGE_AFTER_HANDOFF),
    ]

    def __init__(self) -> None:
        self._current_state = LeadState.NEW
        self._history: list[StateEntry] = [
            StateEntry(state=LeadState.NEW, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> LeadState:
        return self._current_state

    def transition(self, trigger: TransitionTrigger) -> LeadState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new lead state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state

                # Self-loops leave the history unchanged.
                if old_state != self._current_state:
                    self._history.append(StateEntry(
                        state=self._current_state,
                        entered_at=datetime.now(timezone.utc),
                        trigger=trigger,
                    ))
                    logger.debug(
                        "Lead state transition: %s -> %s (trigger: %s)",
                        old_state.value, self._current_state.value, trigger.value,
                    )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[TransitionTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        """Return the full state transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        """Check if the lead has been handed off."""
        return self._current_state == LeadState.HANDED_OFF
