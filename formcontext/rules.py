"""Common validator factories.

Each factory returns a Validator ready to register on a form. Messages are
built from a human-readable field label:

    >>> from formcontext.rules import required, email
    >>> check = required("Email")
    >>> check("email", "", {})
    'Email is required'
    >>> email()("email", "not-an-email", {})
    'Please enter a valid email address'

Text rules skip empty values so that "required" stays the only rule that
reports a blank field; chain them with formcontext.validation.compose.

json_schema() adapts a JSON Schema fragment into a field validator through
the jsonschema library. The first schema violation becomes the field error.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional

from jsonschema import Draft7Validator, FormatChecker
from jsonschema import ValidationError as SchemaValidationError

from formcontext.types import FieldKey, Validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\(?([0-9]{3})\)?[-. ]?([0-9]{3})[-. ]?([0-9]{4})$")
NUMERIC_PATTERN = re.compile(r"^\d+$")
DECIMAL_PATTERN = re.compile(r"^\d+(\.\d+)?$")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def required(label: str, message: Optional[str] = None) -> Validator:
    """Reject None and blank strings."""
    text = message or f"{label} is required"

    def validator(key: FieldKey, value: Any, values: Mapping[FieldKey, Any]) -> Optional[str]:
        if _is_blank(value):
            return text
        if isinstance(value, (list, tuple, set, dict)) and not value:
            return text
        return None

    return validator


def min_length(label: str, length: int, message: Optional[str] = None) -> Validator:
    text = message or f"{label} must be at least {length} characters"

    def validator(key: FieldKey, value: Any, values: Mapping[FieldKey, Any]) -> Optional[str]:
        if _is_blank(value):
            return None
        return text if len(str(value)) < length else None

    return validator


def max_length(label: str, length: int, message: Optional[str] = None) -> Validator:
    text = message or f"{label} must be at most {length} characters"

    def validator(key: FieldKey, value: Any, values: Mapping[FieldKey, Any]) -> Optional[str]:
        if _is_blank(value):
            return None
        return text if len(str(value)) > length else None

    return validator


def pattern(regex: str, message: str) -> Validator:
    """Require the whole value to match ``regex``."""
    compiled = re.compile(regex)

    def validator(key: FieldKey, value: Any, values: Mapping[FieldKey, Any]) -> Optional[str]:
        if _is_blank(value):
            return None
        return None if compiled.fullmatch(str(value)) else message

    return validator


def numeric(label: str) -> Validator:
    return pattern(NUMERIC_PATTERN.pattern, f"{label} must contain only numbers")


def decimal(label: str) -> Validator:
    return pattern(DECIMAL_PATTERN.pattern, f"{label} must be a valid number")


def positive(label: str) -> Validator:
    """Require a number greater than zero. Numeric strings are accepted."""
    text = f"{label} must be a positive number"

    def validator(key: FieldKey, value: Any, values: Mapping[FieldKey, Any]) -> Optional[str]:
        if _is_blank(value):
            return None
        if isinstance(value, bool):
            return text
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            return text
        return None if number.is_finite() and number > 0 else text

    return validator


def email(message: str = "Please enter a valid email address") -> Validator:
    return pattern(EMAIL_PATTERN.pattern, message)


def phone(message: str = "Please enter a valid phone number") -> Validator:
    """US phone numbers such as ``(555) 123-4567`` or ``555.123.4567``."""
    return pattern(PHONE_PATTERN.pattern, message)


def password(label: str = "Password", length: int = 8) -> Validator:
    """At least ``length`` characters with an uppercase, a lowercase and a digit."""
    checks = (
        (lambda v: len(v) >= length, f"{label} must be at least {length} characters"),
        (lambda v: re.search(r"[A-Z]", v), f"{label} must contain at least one uppercase letter"),
        (lambda v: re.search(r"[a-z]", v), f"{label} must contain at least one lowercase letter"),
        (lambda v: re.search(r"[0-9]", v), f"{label} must contain at least one number"),
    )

    def validator(key: FieldKey, value: Any, values: Mapping[FieldKey, Any]) -> Optional[str]:
        if _is_blank(value):
            return None
        text = str(value)
        for check, message in checks:
            if not check(text):
                return message
        return None

    return validator


def matches(other_key: FieldKey, message: str) -> Validator:
    """Cross-field rule: the value must equal ``values[other_key]``.

    Examples:
        >>> confirm = matches("email", "Emails do not match")
        >>> confirm("confirm_email", "a@b.co", {"email": "a@b.com"})
        'Emails do not match'
        >>> confirm("confirm_email", "a@b.com", {"email": "a@b.com"}) is None
        True
    """

    def validator(key: FieldKey, value: Any, values: Mapping[FieldKey, Any]) -> Optional[str]:
        return None if value == values.get(other_key) else message

    return validator


def json_schema(schema: Dict[str, Any], label: Optional[str] = None) -> Validator:
    """Validate a single field value against a JSON Schema fragment.

    Args:
        schema: JSON Schema (Draft 7) describing one value, e.g.
            ``{"type": "integer", "minimum": 18}``
        label: Name used in messages; defaults to the field key

    Raises:
        jsonschema.SchemaError: If ``schema`` itself is invalid

    Examples:
        >>> check = json_schema({"type": "integer", "minimum": 18}, label="Age")
        >>> check("age", 12, {})
        'Age must be at least 18'
        >>> check("age", 30, {}) is None
        True
    """
    Draft7Validator.check_schema(schema)
    schema_validator = Draft7Validator(schema, format_checker=FormatChecker())

    def validator(key: FieldKey, value: Any, values: Mapping[FieldKey, Any]) -> Optional[str]:
        error = next(iter(schema_validator.iter_errors(value)), None)
        if error is None:
            return None
        return _translate_error(error, label or key)

    return validator


def _translate_error(error: SchemaValidationError, label: str) -> str:
    """Turn a jsonschema ValidationError into a user-facing message.

    Error mapping:
        - 'type' errors -> "must be of type <type>"
        - 'format' and 'pattern' errors -> "has an invalid format"
        - 'enum' or 'const' errors -> "must be one of ..."
        - 'minLength' / 'maxLength' errors -> length messages
        - numeric bounds -> "must be at least / at most / greater / less"
        - anything else -> jsonschema's own message
    """
    kind = error.validator
    expected = error.validator_value

    if kind == "type":
        names = expected if isinstance(expected, list) else [expected]
        return f"{label} must be of type {' or '.join(str(n) for n in names)}"

    if kind in ("format", "pattern"):
        return f"{label} has an invalid format"

    if kind == "enum":
        return f"{label} must be one of: {', '.join(str(v) for v in expected)}"

    if kind == "const":
        return f"{label} must be {expected}"

    if kind == "minLength":
        return f"{label} must be at least {expected} characters"

    if kind == "maxLength":
        return f"{label} must be at most {expected} characters"

    if kind == "minimum":
        return f"{label} must be at least {expected}"

    if kind == "maximum":
        return f"{label} must be at most {expected}"

    if kind == "exclusiveMinimum":
        return f"{label} must be greater than {expected}"

    if kind == "exclusiveMaximum":
        return f"{label} must be less than {expected}"

    return f"{label} is invalid: {error.message}"


__all__ = [
    "required",
    "min_length",
    "max_length",
    "pattern",
    "numeric",
    "decimal",
    "positive",
    "email",
    "phone",
    "password",
    "matches",
    "json_schema",
]
