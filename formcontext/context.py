"""FormContext: the mutable container for one form.

FormContext owns the current FormState of a form and its ValidationEngine.
It exposes the read/write operations consumed by field bindings and emits
a FormEvent after every state transition.

Validation policy (deferred validation):
- a value change re-validates the field only once the field is touched
- touching a field validates it
- validate_field() and validate_form() always run, whatever the touched state
- an error is shown to the user only for touched fields (see
  formcontext.state_machine.visible_error)

Usage:
    >>> from formcontext.context import create_form_context
    >>> from formcontext.rules import required
    >>> form = create_form_context({"name": ""}, {"name": required("Name")})
    >>> form.set_field_value("name", "")
    >>> form.errors["name"] is None
    True
    >>> form.set_field_touched("name", True)
    >>> form.errors["name"]
    'Name is required'
    >>> form.validate_form()
    False
"""

import logging
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import (
    Any,
    Callable,
    Deque,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
)

from formcontext.errors import FieldSnapshot, InvalidFormDefinitionError, UnknownFieldError
from formcontext.events import EventEmitter, FormEvent, FormListener
from formcontext.state import FormState
from formcontext.state_machine import next_status, status_of, validates_on_change, visible_error
from formcontext.types import FieldKey, FieldStatus, FormEventType
from formcontext.validation import ValidationEngine, Validators, is_form_valid

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Mapping[str, Any])

# Number of most recent events kept by get_events()
DEFAULT_HISTORY_LIMIT = 100


class FormContext(Generic[T]):
    """Values, errors and touched flags of one form plus its validators.

    One FormContext belongs to one logical form and is never shared between
    forms. The set of fields is fixed by ``initial_values``: every operation
    naming another key raises UnknownFieldError.

    Attributes:
        form_id: Identifier stamped on every emitted event

    Examples:
        >>> form = FormContext({"email": "", "confirm_email": ""})
        >>> form.values["email"]
        ''
        >>> form.field_status("email")
        <FieldStatus.PRISTINE: 'pristine'>
    """

    def __init__(
        self,
        initial_values: T,
        validators: Optional[Validators] = None,
        *,
        form_id: Optional[str] = None,
        dependencies: Optional[Mapping[FieldKey, Iterable[FieldKey]]] = None,
        history_limit: Optional[int] = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        """Initialize the form.

        Args:
            initial_values: Mapping of field key to initial value; defines the fields
            validators: Per-field validators, or one callable for the whole form
            form_id: Optional identifier; generated when omitted
            dependencies: Optional cross-field declarations, mapping a field to the
                fields its validator reads (e.g. ``{"confirm_email": ["email"]}``).
                When a listed field changes, the dependent field re-validates
                if it is touched.
            history_limit: Number of recent events kept for get_events();
                0 disables the history, None keeps every event

        Raises:
            InvalidFormDefinitionError: If an argument is malformed
            UnknownFieldError: If validators or dependencies name undeclared fields
        """
        self._state = FormState.from_initial(initial_values)
        self._engine = ValidationEngine(validators, self._state.keys)
        self._dependents = self._build_dependents(dependencies)
        self._emitter = EventEmitter()
        if history_limit is not None and history_limit < 0:
            raise InvalidFormDefinitionError(
                f"history_limit must be None or a non-negative integer, got {history_limit!r}"
            )
        self._events: Deque[FormEvent] = deque(maxlen=history_limit)
        self.form_id = form_id or f"form_{uuid.uuid4().hex[:16]}"

    def _build_dependents(
        self, dependencies: Optional[Mapping[FieldKey, Iterable[FieldKey]]]
    ) -> Dict[FieldKey, Tuple[FieldKey, ...]]:
        """Invert ``dependencies`` into source field -> dependent fields."""
        dependents: Dict[FieldKey, List[FieldKey]] = {}
        if not dependencies:
            return {}
        if not isinstance(dependencies, Mapping):
            raise InvalidFormDefinitionError(
                f"Dependencies must be a mapping of field names to field names, "
                f"got {type(dependencies).__name__}"
            )
        for dependent, sources in dependencies.items():
            self._require(dependent)
            if isinstance(sources, str):
                sources = [sources]
            for source in sources:
                self._require(source)
                if source == dependent:
                    continue
                if dependent not in dependents.setdefault(source, []):
                    dependents[source].append(dependent)
        return {source: tuple(keys) for source, keys in dependents.items()}

    # Snapshot reads

    @property
    def state(self) -> FormState:
        """The current immutable FormState."""
        return self._state

    @property
    def values(self) -> Mapping[FieldKey, Any]:
        return self._state.values

    @property
    def errors(self) -> Mapping[FieldKey, Optional[str]]:
        return self._state.errors

    @property
    def touched(self) -> Mapping[FieldKey, bool]:
        return self._state.touched

    @property
    def keys(self) -> Tuple[FieldKey, ...]:
        return self._state.keys

    @property
    def is_valid(self) -> bool:
        """Whether the recorded errors are all empty.

        Does not run validators; use validate_form() before submitting.
        """
        return is_form_valid(self._state.errors)

    def field(self, key: FieldKey) -> FieldSnapshot:
        """Value, error and touched flag of one field."""
        self._require(key)
        return self._state.get(key)

    def field_status(self, key: FieldKey) -> FieldStatus:
        self._require(key)
        return status_of(self._state.is_touched(key))

    def visible_error(self, key: FieldKey) -> Optional[str]:
        """The error a user should currently see for ``key``."""
        self._require(key)
        return visible_error(self.field_status(key), self._state.get_error(key))

    # Mutations

    def set_field_value(self, key: FieldKey, value: Any) -> None:
        """Store a new value for ``key``.

        A touched field re-validates immediately; a pristine field defers
        validation until it is touched. Touched fields declared as depending
        on ``key`` re-validate as well.

        Raises:
            UnknownFieldError: If ``key`` is not a field of this form
        """
        self._require(key)
        state = self._state.with_value(key, value)

        revalidated: List[FieldKey] = []
        if validates_on_change(status_of(state.is_touched(key))):
            state = state.with_error(key, self._engine.validate_field(key, state.values))
            revalidated.append(key)

        for dependent in self._dependents.get(key, ()):
            if validates_on_change(status_of(state.is_touched(dependent))):
                state = state.with_error(
                    dependent, self._engine.validate_field(dependent, state.values)
                )
                revalidated.append(dependent)

        logger.debug("Form %s: set %r (revalidated: %s)", self.form_id, key, revalidated)
        self._commit(
            state,
            FormEventType.FIELD_VALUE_CHANGED,
            key=key,
            payload={"revalidated": revalidated},
        )

    def set_field_touched(self, key: FieldKey, touched: bool = True) -> None:
        """Mark ``key`` touched and validate it.

        Touched is one way: passing ``False`` never resets a field, and is a
        no-op.

        Raises:
            UnknownFieldError: If ``key`` is not a field of this form
        """
        self._require(key)
        current = status_of(self._state.is_touched(key))
        target = next_status(current, touched)

        if target != FieldStatus.TOUCHED:
            if not touched and current == FieldStatus.TOUCHED:
                logger.debug(
                    "Form %s: ignoring request to reset touched field %r",
                    self.form_id,
                    key,
                )
            return

        state = self._state.with_touched(key, True)
        error = self._engine.validate_field(key, state.values)
        state = state.with_error(key, error)
        self._commit(
            state,
            FormEventType.FIELD_TOUCHED,
            key=key,
            payload={"error": error, "previous": current.value},
        )

    def validate_field(self, key: FieldKey) -> Optional[str]:
        """Validate ``key`` now, whatever its touched state, and record the error.

        Calling it twice without a value change yields the same error.

        Returns:
            The field's error message, or None

        Raises:
            UnknownFieldError: If ``key`` is not a field of this form
        """
        self._require(key)
        error = self._engine.validate_field(key, self._state.values)
        self._commit(
            self._state.with_error(key, error),
            FormEventType.FIELD_VALIDATED,
            key=key,
            payload={"error": error},
        )
        return error

    def validate_form(self) -> bool:
        """Validate every field and replace the whole errors mapping.

        Intended as the gate before submission: touched gating does not
        apply, so untouched required fields report their errors too. The
        form never submits anything itself.

        Returns:
            True iff every field's freshly computed error is empty
        """
        result = self._engine.validate(self._state.values)
        logger.debug(
            "Form %s validated: valid=%s invalid=%s",
            self.form_id,
            result.is_valid,
            result.invalid_fields,
        )
        self._commit(
            self._state.with_errors(result.errors),
            FormEventType.FORM_VALIDATED,
            payload={"isValid": result.is_valid, "invalidFields": result.invalid_fields},
        )
        return result.is_valid

    # Subscriptions

    def subscribe(
        self,
        listener: FormListener,
        event_type: Optional[FormEventType] = None,
    ) -> Callable[[], None]:
        """Register ``listener`` for this form's events.

        Args:
            listener: Callback receiving each FormEvent
            event_type: Optional - only receive events of this type

        Returns:
            A callable that removes the subscription
        """
        if event_type is None:
            self._emitter.on_any(listener)
        else:
            self._emitter.on(event_type, listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener, event_type)

        return unsubscribe

    def unsubscribe(
        self,
        listener: FormListener,
        event_type: Optional[FormEventType] = None,
    ) -> None:
        if event_type is None:
            self._emitter.off_any(listener)
        else:
            self._emitter.off(event_type, listener)

    @property
    def subscriber_count(self) -> int:
        return self._emitter.listener_count()

    def get_events(self) -> List[FormEvent]:
        """The most recent events emitted by this form, oldest first.

        At most ``history_limit`` events are kept; older ones are dropped.
        """
        return list(self._events)

    def _commit(
        self,
        state: FormState,
        event_type: FormEventType,
        key: Optional[FieldKey] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Swap in the new state, then notify subscribers."""
        self._state = state
        event = FormEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=event_type,
            form_id=self.form_id,
            ts=datetime.now(timezone.utc),
            state=state,
            key=key,
            payload=payload,
        )
        self._events.append(event)
        self._emitter.emit(event)

    def _require(self, key: FieldKey) -> None:
        if not self._state.has_field(key):
            raise UnknownFieldError(key, self._state.keys)

    def __repr__(self) -> str:
        return f"FormContext(form_id={self.form_id!r}, fields={list(self._state.keys)!r})"


@dataclass(frozen=True)
class FormHandle:
    """Read/operate view of a FormContext for one render pass.

    The mappings are the snapshot current when the handle was taken; the
    operations act on the live form. Take a new handle after a mutation to
    read the latest state.
    """
    values: Mapping[FieldKey, Any]
    errors: Mapping[FieldKey, Optional[str]]
    touched: Mapping[FieldKey, bool]
    set_field_value: Callable[[FieldKey, Any], None]
    set_field_touched: Callable[..., None]
    validate_field: Callable[[FieldKey], Optional[str]]
    validate_form: Callable[[], bool]


def create_form_context(
    initial_values: T,
    validators: Optional[Validators] = None,
    *,
    form_id: Optional[str] = None,
    dependencies: Optional[Mapping[FieldKey, Iterable[FieldKey]]] = None,
    history_limit: Optional[int] = DEFAULT_HISTORY_LIMIT,
) -> FormContext[T]:
    """Create the context for one logical form.

    Examples:
        >>> form = create_form_context({"email": ""})
        >>> form.keys
        ('email',)
    """
    return FormContext(
        initial_values,
        validators,
        form_id=form_id,
        dependencies=dependencies,
        history_limit=history_limit,
    )


def use_form_context(handle: FormContext[T]) -> FormHandle:
    """Take a FormHandle bound to the current state of ``handle``.

    Raises:
        TypeError: If ``handle`` is not a FormContext
    """
    if not isinstance(handle, FormContext):
        raise TypeError(
            f"use_form_context expects a FormContext, got {type(handle).__name__}"
        )
    state = handle.state
    return FormHandle(
        values=state.values,
        errors=state.errors,
        touched=state.touched,
        set_field_value=handle.set_field_value,
        set_field_touched=handle.set_field_touched,
        validate_field=handle.validate_field,
        validate_form=handle.validate_form,
    )


__all__ = [
    "FormContext",
    "FormHandle",
    "create_form_context",
    "use_form_context",
]
