"""Exception types and field records for the form context.

Field-level validation failures are never raised: they are data, stored as
messages in the form's errors mapping. The exceptions below cover the truly
exceptional conditions only:
- UnknownFieldError: a field key outside the form's declared fields
- InvalidFormDefinitionError: malformed construction arguments

Validator exceptions are not wrapped. They propagate as raised.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from formcontext.state_machine import status_of, visible_error


class UnknownFieldError(KeyError):
    """Raised when an operation names a field the form does not declare.

    The set of known fields is fixed by the initial values passed when the
    form is created. Writing to any other key would silently create an
    untracked field, so it fails fast instead.

    Attributes:
        key: The offending field key
        known_keys: The keys the form does declare, in declaration order

    Examples:
        >>> err = UnknownFieldError("emial", ["email", "password"])
        >>> err.key
        'emial'
        >>> str(err)
        "Unknown field 'emial'. Known fields are: email, password"
    """

    def __init__(self, key: Any, known_keys: Iterable[str]):
        self.key = key
        self.known_keys: Tuple[str, ...] = tuple(known_keys)
        super().__init__(key)

    def __str__(self) -> str:
        if not self.known_keys:
            return f"Unknown field '{self.key}'. The form declares no fields"
        return (
            f"Unknown field '{self.key}'. "
            f"Known fields are: {', '.join(self.known_keys)}"
        )


class InvalidFormDefinitionError(ValueError):
    """Raised when a form is constructed from malformed arguments.

    Examples: initial values that are not a mapping, non-string field keys,
    or a validator entry that is not callable.

    Attributes:
        message: Human-readable description of the problem
        key: Optional - the field the problem relates to
    """

    def __init__(self, message: str, key: Optional[str] = None):
        self.message = message
        self.key = key
        super().__init__(message)


@dataclass(frozen=True)
class FieldSnapshot:
    """Value, error and touched flag of one field at one moment.

    Attributes:
        key: Field key
        value: Current value ("" when the field holds nothing)
        error: Last computed error message, or None
        touched: Whether the user has interacted with the field

    Examples:
        >>> snap = FieldSnapshot(key="email", value="a@b.com", error=None, touched=True)
        >>> snap.visible_error is None
        True
    """
    key: str
    value: Any
    error: Optional[str]
    touched: bool

    @property
    def visible_error(self) -> Optional[str]:
        """The error a user should see: only once the field is touched."""
        return visible_error(status_of(self.touched), self.error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "key": self.key,
            "value": self.value,
            "touched": self.touched,
        }
        if self.error is not None:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldSnapshot":
        """Create FieldSnapshot from dict."""
        return cls(
            key=data["key"],
            value=data.get("value"),
            error=data.get("error"),
            touched=bool(data.get("touched", False)),
        )


__all__ = [
    "UnknownFieldError",
    "InvalidFormDefinitionError",
    "FieldSnapshot",
]
