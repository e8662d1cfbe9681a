"""Per-field interaction state machine.

Each field of a form moves through two states:

    PRISTINE --(touch)--> TOUCHED

The transition is one way. A touched field stays touched for the lifetime
of the form. This module is the single place that decides:
- which transitions are allowed
- whether a field validates as its value changes
- whether a computed error is shown to the user

Usage:
    >>> from formcontext.state_machine import FieldStateMachine
    >>> from formcontext.types import FieldStatus
    >>> sm = FieldStateMachine(key="email")
    >>> sm.status
    <FieldStatus.PRISTINE: 'pristine'>
    >>> sm.visible_error("Required")
    >>> sm.transition_to(FieldStatus.TOUCHED)
    >>> sm.visible_error("Required")
    'Required'
"""

from dataclasses import dataclass
from typing import Dict, Optional, Set

from formcontext.types import FieldStatus


class InvalidFieldTransitionError(Exception):
    """Raised when attempting a transition the field machine forbids.

    Attributes:
        key: The field whose machine refused the transition
        current_status: The status before the attempted transition
        target_status: The status that was attempted
    """

    def __init__(self, key: str, current_status: FieldStatus, target_status: FieldStatus):
        self.key = key
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            f"Invalid field transition for '{key}': cannot go from "
            f"'{current_status.value}' to '{target_status.value}'. "
            f"A touched field cannot be reset to pristine."
        )


# Maps each status to the set of statuses it can move to
VALID_TRANSITIONS: Dict[FieldStatus, Set[FieldStatus]] = {
    FieldStatus.PRISTINE: {FieldStatus.TOUCHED},
    FieldStatus.TOUCHED: set(),
}


def status_of(touched: bool) -> FieldStatus:
    """Map a stored touched flag to its FieldStatus."""
    return FieldStatus.TOUCHED if touched else FieldStatus.PRISTINE


def next_status(current: FieldStatus, touched: bool) -> FieldStatus:
    """Resolve the status after a ``set touched`` request.

    Requests that would move a field backwards are absorbed: the field keeps
    its current status.

    Examples:
        >>> next_status(FieldStatus.PRISTINE, True)
        <FieldStatus.TOUCHED: 'touched'>
        >>> next_status(FieldStatus.TOUCHED, False)
        <FieldStatus.TOUCHED: 'touched'>
    """
    target = status_of(touched)
    if target == current or target in VALID_TRANSITIONS[current]:
        return target
    return current


def validates_on_change(status: FieldStatus) -> bool:
    """Whether a value change re-runs the field's validator.

    Pristine fields defer validation until they are touched.
    """
    return status == FieldStatus.TOUCHED


def visible_error(status: FieldStatus, error: Optional[str]) -> Optional[str]:
    """The error shown to the user for a field in ``status``.

    An error computed for a pristine field is kept in the form's errors
    mapping but never displayed.
    """
    if status == FieldStatus.TOUCHED:
        return error
    return None


@dataclass
class FieldStateMachine:
    """Explicit state machine for one field.

    FormContext stores touched flags inside its immutable FormState and uses
    the module-level functions above. This class exposes the same rules as an
    object for callers that track a single field on their own.

    Attributes:
        key: Field key this machine belongs to
        status: Current status of the field
    """

    key: str
    status: FieldStatus = FieldStatus.PRISTINE

    @property
    def touched(self) -> bool:
        return self.status == FieldStatus.TOUCHED

    def can_transition_to(self, target_status: FieldStatus) -> bool:
        """Check if transition to target status is valid."""
        return target_status in VALID_TRANSITIONS.get(self.status, set())

    def transition_to(self, target_status: FieldStatus) -> None:
        """Move the field to ``target_status``.

        Raises:
            InvalidFieldTransitionError: If the transition is not allowed
        """
        if not self.can_transition_to(target_status):
            raise InvalidFieldTransitionError(self.key, self.status, target_status)
        self.status = target_status

    def touch(self) -> None:
        """Mark the field touched. Touching a touched field does nothing."""
        if self.status != FieldStatus.TOUCHED:
            self.transition_to(FieldStatus.TOUCHED)

    def is_terminal(self) -> bool:
        """True once no further transitions are possible."""
        return len(VALID_TRANSITIONS[self.status]) == 0

    def validates_on_change(self) -> bool:
        return validates_on_change(self.status)

    def visible_error(self, error: Optional[str]) -> Optional[str]:
        return visible_error(self.status, error)


__all__ = [
    "FieldStateMachine",
    "InvalidFieldTransitionError",
    "VALID_TRANSITIONS",
    "status_of",
    "next_status",
    "validates_on_change",
    "visible_error",
]
