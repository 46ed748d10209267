"""Event system for dynaform.

This module provides the event data structure and event emitter a form
controller uses to report what happens during a form session. Every state
transition and every field edit produces a typed FormEvent; the embedding
application subscribes to the ones it wants to present (busy indicators,
success notices, analytics) instead of the engine raising global alerts.

The event log kept by a controller is append-only and in chronological order.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import json

from .logging import get_logger
from .types import EventType, FormState

logger = get_logger(__name__)


@dataclass(frozen=True)
class FormEvent:
    """A single event in a form session.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_01H8...")
        type: Event type from EventType enum
        form_id: ID of the form controller this event relates to
        ts: UTC timestamp when the event occurred
        state: Controller state after this event
        payload: Optional event-specific data (e.g., changed field, error summary)

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = FormEvent(
        ...     event_id="evt_001",
        ...     type=EventType.FORM_OPENED,
        ...     form_id="form_001",
        ...     ts=datetime.now(timezone.utc),
        ...     state=FormState.EDITING
        ... )
    """
    event_id: str
    type: EventType
    form_id: str
    ts: datetime
    state: FormState
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Normalize string enum values."""
        if isinstance(self.state, str) and not isinstance(self.state, FormState):
            object.__setattr__(self, "state", FormState(self.state))
        if isinstance(self.type, str) and not isinstance(self.type, EventType):
            object.__setattr__(self, "type", EventType(self.type))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Timestamp is formatted as ISO 8601 string.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "formId": self.form_id,
            "ts": self.ts.isoformat(),
            "state": self.state.value,
        }
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Convert event to a single-line JSON string."""
        return json.dumps(self.to_dict(), separators=(',', ':'))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormEvent":
        """Create FormEvent from a camelCase dictionary."""
        ts = datetime.fromisoformat(data["ts"].replace('Z', '+00:00'))
        return cls(
            event_id=data["eventId"],
            type=EventType(data["type"]),
            form_id=data["formId"],
            ts=ts,
            state=FormState(data["state"]),
            payload=data.get("payload"),
        )


EventListener = Callable[[FormEvent], None]
"""Type alias for event listener callbacks.

Listeners are called synchronously when events are emitted.
"""


class EventEmitter:
    """Event emitter for managing event listeners and dispatching events.

    Features:
    - Type-specific subscriptions (listen to specific event types)
    - Wildcard subscriptions (listen to all events)
    - Synchronous dispatch (listeners called in registration order)
    - Error isolation (a failing listener is logged and does not affect
      other listeners or the form session)

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(EventType.SUBMISSION_SUCCEEDED, seen.append)
        >>> emitter.listener_count(EventType.SUBMISSION_SUCCEEDED)
        1
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: EventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        self._listeners.setdefault(event_type, []).append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types."""
        self._any_listeners.append(listener)

    def off(self, event_type: EventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type; unknown listeners are ignored."""
        listeners = self._listeners.get(event_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe from the wildcard subscription; unknown listeners are ignored."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: FormEvent) -> None:
        """Dispatch an event to all registered listeners.

        Type-specific listeners run first, then wildcard listeners, each group
        in registration order. A listener that raises is logged and skipped.
        """
        for listener in [*self._listeners.get(event.type, []), *self._any_listeners]:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "event listener failed",
                    event_type=event.type.value,
                    form_id=event.form_id,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                )

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        """Count listeners for `event_type`, or all listeners when None."""
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return len(self._any_listeners) + sum(len(ls) for ls in self._listeners.values())


__all__ = [
    "FormEvent",
    "EventListener",
    "EventEmitter",
]
