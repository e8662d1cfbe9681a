"""formcontext: form state and validation container.

formcontext provides:
- An immutable per-form state record (values, errors, touched flags)
- Pure, synchronous field validators with cross-field access to all values
- Deferred validation: errors surface only once a field has been touched
- A mutable FormContext that emits an event after every state transition
- A field binding adapter connecting one input control to one field

Basic usage:
    >>> from formcontext import create_form_context
    >>> from formcontext.rules import matches, required
    >>> form = create_form_context(
    ...     {"email": "", "confirm_email": ""},
    ...     {
    ...         "email": required("Email"),
    ...         "confirm_email": matches("email", "Emails do not match"),
    ...     },
    ... )
    >>> form.validate_form()
    False
    >>> form.errors["email"]
    'Email is required'
"""

__version__ = "0.1.0"
__author__ = "formcontext developers"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formcontext.binding import FieldBinding, FieldEvent, FieldProps
from formcontext.context import FormContext, FormHandle, create_form_context, use_form_context
from formcontext.errors import FieldSnapshot, InvalidFormDefinitionError, UnknownFieldError
from formcontext.state import FormState
from formcontext.types import FieldStatus, FormEventType, Validator

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormContext",
    "FormHandle",
    "FormState",
    "FieldBinding",
    "FieldEvent",
    "FieldProps",
    "FieldSnapshot",
    "FieldStatus",
    "FormEventType",
    "Validator",
    "UnknownFieldError",
    "InvalidFormDefinitionError",
    "create_form_context",
    "use_form_context",
]
