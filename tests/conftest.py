"""Shared fixtures for formcontext tests."""

import pytest

from formcontext.context import create_form_context
from formcontext.rules import email, matches, required
from formcontext.validation import compose


@pytest.fixture
def signup_validators():
    """Validators for an email + confirmation form."""
    return {
        "email": compose(required("Email"), email()),
        "confirm_email": matches("email", "Emails do not match"),
    }


@pytest.fixture
def signup_form(signup_validators):
    """A fresh email + confirmation form with empty values."""
    return create_form_context(
        {"email": "", "confirm_email": ""},
        signup_validators,
        form_id="form_signup",
    )
