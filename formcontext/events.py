"""Event system for the form context.

Every state transition of a FormContext emits a typed FormEvent carrying the
new FormState snapshot. Field bindings and any other observers subscribe to
these events instead of polling the form.

Dispatch is synchronous and ordered: listeners run in registration order,
after the transition has been applied, before the mutating call returns.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as date_parser

from formcontext.state import FormState
from formcontext.types import FormEventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormEvent:
    """A single state transition of one form.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_3f2a...")
        type: Event type from FormEventType
        form_id: ID of the form that emitted the event
        ts: UTC timestamp when the event occurred
        state: FormState snapshot after the transition
        key: Field the transition concerns (None for form-wide events)
        payload: Optional event-specific data (e.g., the new error)

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = FormEvent(
        ...     event_id="evt_001",
        ...     type=FormEventType.FIELD_TOUCHED,
        ...     form_id="form_001",
        ...     ts=datetime.now(timezone.utc),
        ...     state=FormState.from_initial({"email": ""}),
        ...     key="email",
        ... )
        >>> event.snapshot.touched
        False
    """
    event_id: str
    type: FormEventType
    form_id: str
    ts: datetime
    state: FormState
    key: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Normalize string values to their enum and record types."""
        if isinstance(self.type, str) and not isinstance(self.type, FormEventType):
            object.__setattr__(self, "type", FormEventType(self.type))
        if isinstance(self.state, dict):
            object.__setattr__(self, "state", FormState.from_dict(self.state))

    @property
    def snapshot(self):
        """FieldSnapshot of ``key`` in the new state (None for form-wide events)."""
        if self.key is None:
            return None
        return self.state.get(self.key)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Timestamp is formatted as ISO 8601 string.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "formId": self.form_id,
            "ts": self.ts.isoformat(),
            "state": self.state.to_dict(),
        }
        if self.key is not None:
            result["key"] = self.key
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Convert event to a single line of JSON."""
        return json.dumps(self.to_dict(), separators=(',', ':'), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormEvent":
        """Create FormEvent from dictionary (camelCase keys)."""
        return cls(
            event_id=data["eventId"],
            type=FormEventType(data["type"]),
            form_id=data["formId"],
            ts=date_parser.isoparse(data["ts"]),
            state=FormState.from_dict(data["state"]),
            key=data.get("key"),
            payload=data.get("payload"),
        )


FormListener = Callable[[FormEvent], None]
"""Type alias for event listener callbacks.

Listeners are called synchronously when events are emitted. They should not
mutate the form they are listening to.
"""


class EventEmitter:
    """Registry of listeners for one form's events.

    Features:
    - Type-specific subscriptions (listen to specific event types)
    - Wildcard subscriptions (listen to all events)
    - Synchronous dispatch (listeners called in registration order)
    - Error isolation (a failing listener is logged, the others still run)

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(FormEventType.FIELD_TOUCHED, seen.append)
        >>> emitter.on_any(lambda e: None)
        >>> emitter.listener_count()
        2
    """

    def __init__(self):
        """Initialize event emitter with empty listener registries."""
        self._listeners: Dict[FormEventType, List[FormListener]] = {}
        self._any_listeners: List[FormListener] = []

    def on(self, event_type: FormEventType, listener: FormListener) -> None:
        """Subscribe to a specific event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(listener)

    def on_any(self, listener: FormListener) -> None:
        """Subscribe to all event types."""
        self._any_listeners.append(listener)

    def off(self, event_type: FormEventType, listener: FormListener) -> None:
        """Unsubscribe from a specific event type. Unknown listeners are ignored."""
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: FormListener) -> None:
        """Unsubscribe from the wildcard subscription. Unknown listeners are ignored."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: FormEvent) -> None:
        """Dispatch an event to all registered listeners.

        Listeners are called synchronously in registration order:
        1. Type-specific listeners for this event type
        2. Wildcard listeners (subscribed to all events)

        A listener that raises is logged with its traceback; the remaining
        listeners still receive the event. The listener lists are copied
        first, so a listener may unsubscribe itself during dispatch.
        """
        listeners = list(self._listeners.get(event.type, [])) + list(self._any_listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Listener %r failed on %s for form %s",
                    listener,
                    event.type.value,
                    event.form_id,
                )

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[FormEventType] = None) -> int:
        """Count registered listeners.

        Args:
            event_type: If provided, count listeners for this type only.
                        If None, count all listeners (including wildcard).
        """
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        total = len(self._any_listeners)
        for listeners in self._listeners.values():
            total += len(listeners)
        return total


__all__ = [
    "FormEvent",
    "FormEventType",
    "FormListener",
    "EventEmitter",
]
