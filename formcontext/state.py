"""Immutable per-form state record.

FormState holds the three parallel per-field mappings of one form:
values, errors and touched flags. Every "with_*" operation returns a new
FormState and leaves the receiver untouched, so a snapshot handed to a
renderer or a subscriber can never change underneath it.

Invariant: values, errors and touched always share the same key set, fixed
when the state is built from the form's initial values.

Usage:
    >>> state = FormState.from_initial({"email": "", "password": ""})
    >>> state.is_touched("email")
    False
    >>> updated = state.with_value("email", "a@b.com").with_touched("email", True)
    >>> updated.get_value("email"), updated.is_touched("email")
    ('a@b.com', True)
    >>> state.get_value("email")
    ''
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from formcontext.errors import FieldSnapshot, InvalidFormDefinitionError, UnknownFieldError
from formcontext.types import DEFAULT_VALUE


def _freeze(data: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(data))


@dataclass(frozen=True)
class FormState:
    """Values, errors and touched flags of one form at one moment.

    Attributes:
        values: Read-only mapping of field key to current value
        errors: Read-only mapping of field key to error message or None
        touched: Read-only mapping of field key to touched flag
    """
    values: Mapping[str, Any]
    errors: Mapping[str, Optional[str]]
    touched: Mapping[str, bool]

    def __post_init__(self):
        """Freeze the mappings and check the shared key-set invariant."""
        object.__setattr__(self, "values", _freeze(self.values))
        object.__setattr__(self, "errors", _freeze(self.errors))
        object.__setattr__(self, "touched", _freeze(self.touched))

        keys = set(self.values)
        if set(self.errors) != keys or set(self.touched) != keys:
            raise InvalidFormDefinitionError(
                "FormState values, errors and touched must share the same keys"
            )

    def __hash__(self) -> int:
        return hash((
            tuple(self.values.items()),
            tuple(self.errors.items()),
            tuple(self.touched.items()),
        ))

    @classmethod
    def from_initial(cls, initial_values: Mapping[str, Any]) -> "FormState":
        """Build a pristine state from the caller's initial values.

        Every field starts with no error and untouched.

        Raises:
            InvalidFormDefinitionError: If initial_values is not a mapping or
                has a non-string key
        """
        if not isinstance(initial_values, Mapping):
            raise InvalidFormDefinitionError(
                f"Initial values must be a mapping of field names to values, "
                f"got {type(initial_values).__name__}"
            )
        for key in initial_values:
            if not isinstance(key, str):
                raise InvalidFormDefinitionError(
                    f"Field keys must be strings, got {key!r}"
                )

        return cls(
            values=dict(initial_values),
            errors={key: None for key in initial_values},
            touched={key: False for key in initial_values},
        )

    @property
    def keys(self) -> Tuple[str, ...]:
        """Field keys in declaration order."""
        return tuple(self.values)

    def has_field(self, key: str) -> bool:
        return key in self.values

    def get_value(self, key: str) -> Any:
        """Stored value of ``key``; "" for a key the form does not declare."""
        if key not in self.values:
            return DEFAULT_VALUE
        return self.values[key]

    def get_error(self, key: str) -> Optional[str]:
        return self.errors.get(key)

    def is_touched(self, key: str) -> bool:
        return bool(self.touched.get(key, False))

    def get(self, key: str) -> FieldSnapshot:
        """Snapshot of one field. Never raises, even for unknown keys."""
        return FieldSnapshot(
            key=key,
            value=self.get_value(key),
            error=self.get_error(key),
            touched=self.is_touched(key),
        )

    def with_value(self, key: str, value: Any) -> "FormState":
        """Return a new state with only ``values[key]`` replaced.

        The field's error and touched flag are left as they are; validation
        is a separate step.
        """
        self._require(key)
        values = dict(self.values)
        values[key] = value
        return FormState(values=values, errors=self.errors, touched=self.touched)

    def with_touched(self, key: str, touched: bool) -> "FormState":
        """Return a new state with only ``touched[key]`` replaced."""
        self._require(key)
        flags = dict(self.touched)
        flags[key] = bool(touched)
        return FormState(values=self.values, errors=self.errors, touched=flags)

    def with_error(self, key: str, error: Optional[str]) -> "FormState":
        """Return a new state with only ``errors[key]`` replaced."""
        self._require(key)
        errors = dict(self.errors)
        errors[key] = error
        return FormState(values=self.values, errors=errors, touched=self.touched)

    def with_errors(self, errors: Mapping[str, Optional[str]]) -> "FormState":
        """Return a new state whose whole errors mapping is replaced.

        Keys missing from ``errors`` are reset to None.

        Raises:
            UnknownFieldError: If ``errors`` names a field this form lacks
        """
        for key in errors:
            self._require(key)
        merged = {key: errors.get(key) for key in self.values}
        return FormState(values=self.values, errors=merged, touched=self.touched)

    def _require(self, key: str) -> None:
        if key not in self.values:
            raise UnknownFieldError(key, self.values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "values": dict(self.values),
            "errors": dict(self.errors),
            "touched": dict(self.touched),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormState":
        """Create FormState from dict.

        Missing errors or touched entries default to None and False.
        """
        values = data["values"]
        errors = data.get("errors") or {}
        touched = data.get("touched") or {}
        return cls(
            values=values,
            errors={key: errors.get(key) for key in values},
            touched={key: bool(touched.get(key, False)) for key in values},
        )


__all__ = [
    "FormState",
]
