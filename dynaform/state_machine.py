"""Form controller state machine for dynaform.

This module implements the state machine that enforces valid transitions of a
form session:

    editing -> validating -> submitting -> (succeeded | failed) -> editing

An edit passes through `validating` and straight back to `editing`. A rejected
submit goes `validating -> failed -> editing` without ever reaching
`submitting`.

The state machine:
- Enforces valid transitions between states
- Tracks the current state
- Records a typed event for every transition and forwards it to an optional
  EventEmitter
- Provides serialization/deserialization

Usage:
    >>> from dynaform.state_machine import FormStateMachine
    >>> from dynaform.types import FormState
    >>> sm = FormStateMachine(form_id="form_123")
    >>> sm.state
    <FormState.EDITING: 'editing'>
    >>> sm.transition_to(FormState.VALIDATING)
    >>> sm.state
    <FormState.VALIDATING: 'validating'>
    >>> len(sm.get_events())
    1
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Set
import uuid

from dynaform.errors import DynaformError
from dynaform.events import EventEmitter, FormEvent
from dynaform.types import EventType, FormState


class InvalidStateTransitionError(DynaformError):
    """Raised when attempting an invalid state transition.

    Attributes:
        current_state: The current state before the attempted transition
        target_state: The target state that was attempted
    """

    def __init__(self, current_state: FormState, target_state: FormState, message: str):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(message)


# Default event type recorded when entering each state
STATE_TO_EVENT_TYPE: Dict[FormState, EventType] = {
    FormState.VALIDATING: EventType.VALIDATION_STARTED,
    FormState.SUBMITTING: EventType.SUBMISSION_STARTED,
    FormState.SUCCEEDED: EventType.SUBMISSION_SUCCEEDED,
    FormState.FAILED: EventType.SUBMISSION_FAILED,
    FormState.EDITING: EventType.EDITING_RESUMED,
}


# Maps each state to the set of states it can transition to
VALID_TRANSITIONS: Dict[FormState, Set[FormState]] = {
    FormState.EDITING: {
        FormState.VALIDATING,
    },
    FormState.VALIDATING: {
        FormState.EDITING,
        FormState.SUBMITTING,
        FormState.FAILED,
    },
    FormState.SUBMITTING: {
        FormState.SUCCEEDED,
        FormState.FAILED,
    },
    FormState.SUCCEEDED: {
        FormState.EDITING,
    },
    FormState.FAILED: {
        FormState.EDITING,
    },
}


@dataclass
class FormStateMachine:
    """State machine for one form session.

    Attributes:
        form_id: Identifier of the form session
        state: Current state
        emitter: Optional EventEmitter receiving every recorded event
        max_events: Number of most recent events retained by `get_events`;
            None keeps all. The emitter still receives every event.

    Examples:
        >>> sm = FormStateMachine(form_id="form_123")
        >>> sm.can_transition_to(FormState.SUBMITTING)
        False
        >>> sm.transition_to(FormState.VALIDATING)
        >>> sm.can_transition_to(FormState.SUBMITTING)
        True
    """

    form_id: str
    state: FormState = FormState.EDITING
    emitter: Optional[EventEmitter] = field(default=None, repr=False)
    max_events: Optional[int] = None
    _events: Deque[FormEvent] = field(init=False, repr=False)

    def __post_init__(self):
        self._events = deque(maxlen=self.max_events)

    def can_transition_to(self, target_state: FormState) -> bool:
        """Check if transition to target state is valid."""
        return target_state in VALID_TRANSITIONS.get(self.state, set())

    def transition_to(
        self,
        target_state: FormState,
        event_type: Optional[EventType] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Transition to a new state and record a transition event.

        Args:
            target_state: The state to transition to
            event_type: Event type to record; defaults to the one mapped to
                `target_state`
            payload: Extra event data merged with the from/to states

        Raises:
            InvalidStateTransitionError: If the transition is not allowed
        """
        if not self.can_transition_to(target_state):
            raise InvalidStateTransitionError(
                current_state=self.state,
                target_state=target_state,
                message=(
                    f"Invalid state transition: cannot transition from "
                    f"'{self.state.value}' to '{target_state.value}'. "
                    f"Valid transitions from '{self.state.value}' are: "
                    f"{', '.join(sorted(s.value for s in VALID_TRANSITIONS[self.state]))}"
                ),
            )

        old_state = self.state
        self.state = target_state

        data: Dict[str, Any] = {"from_state": old_state.value, "to_state": target_state.value}
        if payload:
            data.update(payload)
        self.record(event_type or STATE_TO_EVENT_TYPE[target_state], data)

    def record(self, event_type: EventType, payload: Optional[Dict[str, Any]] = None) -> FormEvent:
        """Record an event in the current state without transitioning."""
        event = FormEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=event_type,
            form_id=self.form_id,
            ts=datetime.now(timezone.utc),
            state=self.state,
            payload=payload,
        )
        self._events.append(event)
        if self.emitter is not None:
            self.emitter.emit(event)
        return event

    def get_events(self) -> List[FormEvent]:
        """Get all recorded events in chronological order."""
        return list(self._events)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the state machine to a dictionary.

        Examples:
            >>> FormStateMachine(form_id="form_123").to_dict()
            {'formId': 'form_123', 'state': 'editing'}
        """
        return {
            "formId": self.form_id,
            "state": self.state.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormStateMachine":
        """Deserialize a state machine from a dictionary."""
        return cls(form_id=data["formId"], state=FormState(data["state"]))


__all__ = [
    "FormStateMachine",
    "InvalidStateTransitionError",
    "VALID_TRANSITIONS",
    "STATE_TO_EVENT_TYPE",
]
