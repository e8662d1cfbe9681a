"""Core type definitions for the form context.

This module defines the fundamental types shared by every other module:
- FieldStatus: per-field interaction states (pristine, touched)
- FormEventType: notification types emitted after each state transition
- FieldKey: the key of one field in the caller's value shape
- Validator: the signature every field validator follows

Validators are plain callables. They receive the field key, the field's
current value and the full value mapping (for cross-field rules), and
return an error message or None.
"""

from enum import Enum
from typing import Any, Callable, Mapping, Optional

from typing_extensions import TypeAlias


class FieldStatus(str, Enum):
    """Interaction state of a single field.

    A field starts PRISTINE and becomes TOUCHED the first time the user
    leaves it. There is no way back (see formcontext.state_machine).
    """
    PRISTINE = "pristine"
    TOUCHED = "touched"


class FormEventType(str, Enum):
    """Notification types emitted by a FormContext.

    Every state transition emits exactly one event carrying the new
    FormState snapshot.
    """
    FIELD_VALUE_CHANGED = "field.value_changed"
    FIELD_TOUCHED = "field.touched"
    FIELD_VALIDATED = "field.validated"
    FORM_VALIDATED = "form.validated"


FieldKey: TypeAlias = str

Validator: TypeAlias = Callable[[FieldKey, Any, Mapping[FieldKey, Any]], Optional[str]]
"""Signature of a field validator: ``(key, value, values) -> message or None``.

Validators must be pure and synchronous. An exception raised by a validator
is a programming error and propagates to the caller unchanged.
"""


# Value reported for a field that has no stored value
DEFAULT_VALUE = ""


__all__ = [
    "FieldStatus",
    "FormEventType",
    "FieldKey",
    "Validator",
    "DEFAULT_VALUE",
]
