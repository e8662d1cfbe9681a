"""Validation engine for the form context.

This module computes field errors from field values. It is made of pure
functions plus a small ValidationEngine class that holds a form's
normalized validator table.

- validate_field: run one field's validator against the current values
- validate_all: run every field's validator (whole-form validation)
- is_form_valid: aggregate an errors mapping into submit-eligibility

Validators are registered either per field (a mapping of field key to a
validator or a sequence of validators) or once for the whole form (a single
callable invoked for every field). A field without a validator is always
valid.

Validator exceptions are never caught here. A raising validator is a bug in
the calling code and must surface as such.
"""

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Union,
)

from formcontext.errors import InvalidFormDefinitionError, UnknownFieldError
from formcontext.types import FieldKey, Validator

logger = logging.getLogger(__name__)


ValidatorSpec = Union[Validator, Sequence[Validator]]
Validators = Union[Validator, Mapping[FieldKey, ValidatorSpec]]


def always_valid(key: FieldKey, value: Any, values: Mapping[FieldKey, Any]) -> Optional[str]:
    """Fallback validator for fields with nothing registered."""
    return None


def compose(*validators: Validator) -> Validator:
    """Chain validators; the first one to return an error wins.

    Examples:
        >>> from formcontext.rules import required, min_length
        >>> check = compose(required("Name"), min_length("Name", 3))
        >>> check("name", "", {})
        'Name is required'
        >>> check("name", "Al", {})
        'Name must be at least 3 characters'
        >>> check("name", "Alice", {}) is None
        True
    """
    for validator in validators:
        if not callable(validator):
            raise InvalidFormDefinitionError(
                f"Validators must be callable, got {type(validator).__name__}"
            )

    def composed(key: FieldKey, value: Any, values: Mapping[FieldKey, Any]) -> Optional[str]:
        for validator in validators:
            error = validator(key, value, values)
            if error:
                return error
        return None

    return composed


def _lookup(key: FieldKey, validators: Optional[Validators]) -> Validator:
    if validators is None:
        return always_valid
    if callable(validators):
        return validators
    entry = validators.get(key)
    if entry is None:
        return always_valid
    if callable(entry):
        return entry
    return compose(*entry)


def validate_field(
    key: FieldKey,
    values: Mapping[FieldKey, Any],
    validators: Optional[Validators],
) -> Optional[str]:
    """Compute the error for one field.

    Args:
        key: Field to validate
        values: Full current value mapping (passed through for cross-field rules)
        validators: Per-field mapping, a form-wide callable, or None

    Returns:
        The validator's result, verbatim

    Examples:
        >>> rules = {"email": lambda k, v, vs: None if v else "Email is required"}
        >>> validate_field("email", {"email": ""}, rules)
        'Email is required'
        >>> validate_field("other", {"other": ""}, rules) is None
        True
    """
    validator = _lookup(key, validators)
    return validator(key, values.get(key), values)


def validate_all(
    values: Mapping[FieldKey, Any],
    validators: Optional[Validators],
) -> Dict[FieldKey, Optional[str]]:
    """Validate every field present in ``values``."""
    return {key: validate_field(key, values, validators) for key in values}


def is_form_valid(errors: Mapping[FieldKey, Optional[str]]) -> bool:
    """True iff no entry of ``errors`` holds a message.

    Examples:
        >>> is_form_valid({"email": None, "name": ""})
        True
        >>> is_form_valid({"email": "Email is required"})
        False
    """
    return all(not error for error in errors.values())


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating a whole form.

    Attributes:
        is_valid: Whether every field passed
        errors: Field key to error message (None when the field is valid)
        invalid_fields: Keys that carry an error, in field order

    Examples:
        >>> engine = ValidationEngine({"name": lambda k, v, vs: None if v else "Required"}, ["name"])
        >>> result = engine.validate({"name": ""})
        >>> result.is_valid
        False
        >>> result.invalid_fields
        ['name']
    """
    is_valid: bool
    errors: Dict[FieldKey, Optional[str]]
    invalid_fields: List[FieldKey]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "isValid": self.is_valid,
            "errors": {key: error for key, error in self.errors.items() if error},
            "invalidFields": list(self.invalid_fields),
        }


class ValidationEngine:
    """Validator table for one form.

    Normalizes the caller's validators argument once at construction: every
    per-field entry is checked against the form's keys and sequences are
    composed into a single callable.

    Attributes:
        field_keys: The keys the form declares

    Examples:
        >>> engine = ValidationEngine(None, ["name"])
        >>> engine.validate_field("name", {"name": ""}) is None
        True
    """

    def __init__(self, validators: Optional[Validators], field_keys: Iterable[FieldKey]) -> None:
        """Initialize the engine.

        Args:
            validators: Per-field mapping, a form-wide callable, or None
            field_keys: Keys of the form's value shape

        Raises:
            UnknownFieldError: If a per-field entry names an undeclared field
            InvalidFormDefinitionError: If an entry is not callable
        """
        self.field_keys = tuple(field_keys)
        self._form_validator: Optional[Validator] = None
        self._validators: Dict[FieldKey, Validator] = {}

        if validators is None:
            return
        if callable(validators):
            self._form_validator = validators
            return
        if not isinstance(validators, Mapping):
            raise InvalidFormDefinitionError(
                f"Validators must be a mapping of field names to validators or a "
                f"single callable, got {type(validators).__name__}"
            )

        for key, entry in validators.items():
            if key not in self.field_keys:
                raise UnknownFieldError(key, self.field_keys)
            if entry is None:
                continue
            if callable(entry):
                self._validators[key] = entry
            elif isinstance(entry, (list, tuple)):
                self._validators[key] = compose(*entry)
            else:
                raise InvalidFormDefinitionError(
                    f"Validator for field '{key}' must be callable or a sequence of "
                    f"callables, got {type(entry).__name__}",
                    key=key,
                )

    @property
    def validators(self) -> Validators:
        """The normalized table passed to the module-level functions."""
        if self._form_validator is not None:
            return self._form_validator
        return self._validators

    def has_validator(self, key: FieldKey) -> bool:
        return self._form_validator is not None or key in self._validators

    def validate_field(self, key: FieldKey, values: Mapping[FieldKey, Any]) -> Optional[str]:
        error = validate_field(key, values, self.validators)
        logger.debug("Validated field %r: %s", key, error or "ok")
        return error

    def validate_all(self, values: Mapping[FieldKey, Any]) -> Dict[FieldKey, Optional[str]]:
        return validate_all(values, self.validators)

    def validate(self, values: Mapping[FieldKey, Any]) -> ValidationResult:
        """Validate the whole form and report the outcome."""
        errors = self.validate_all(values)
        invalid_fields = [key for key, error in errors.items() if error]
        return ValidationResult(
            is_valid=is_form_valid(errors),
            errors=errors,
            invalid_fields=invalid_fields,
        )


__all__ = [
    "ValidationEngine",
    "ValidationResult",
    "Validators",
    "ValidatorSpec",
    "always_valid",
    "compose",
    "validate_field",
    "validate_all",
    "is_form_valid",
]
