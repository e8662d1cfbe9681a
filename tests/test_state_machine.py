"""Unit tests for the per-field state machine.

Tests cover:
- Pristine -> touched transition
- Refusal of the reverse transition
- next_status absorbing backward requests
- Validation-on-change and error visibility rules
"""

import pytest

from formcontext.state_machine import (
    FieldStateMachine,
    InvalidFieldTransitionError,
    VALID_TRANSITIONS,
    next_status,
    status_of,
    validates_on_change,
    visible_error,
)
from formcontext.types import FieldStatus


class TestFieldStateMachineTransitions:
    """Test transitions of a single field machine."""

    def test_starts_pristine(self):
        """Should default to PRISTINE."""
        sm = FieldStateMachine(key="email")
        assert sm.status == FieldStatus.PRISTINE
        assert sm.touched is False

    def test_pristine_to_touched(self):
        """Should transition from PRISTINE to TOUCHED."""
        sm = FieldStateMachine(key="email")
        sm.transition_to(FieldStatus.TOUCHED)
        assert sm.status == FieldStatus.TOUCHED
        assert sm.is_terminal()

    def test_touched_to_pristine_raises(self):
        """Should refuse to un-touch a field."""
        sm = FieldStateMachine(key="email", status=FieldStatus.TOUCHED)

        with pytest.raises(InvalidFieldTransitionError) as exc_info:
            sm.transition_to(FieldStatus.PRISTINE)

        assert exc_info.value.key == "email"
        assert exc_info.value.current_status == FieldStatus.TOUCHED
        assert exc_info.value.target_status == FieldStatus.PRISTINE
        assert "cannot be reset" in str(exc_info.value)
        assert sm.status == FieldStatus.TOUCHED

    def test_touch_is_idempotent(self):
        """Touching twice should leave the field touched without raising."""
        sm = FieldStateMachine(key="email")
        sm.touch()
        sm.touch()
        assert sm.status == FieldStatus.TOUCHED

    def test_touched_is_the_only_terminal_status(self):
        """Only TOUCHED should have no outgoing transitions."""
        terminal = {status for status, targets in VALID_TRANSITIONS.items() if not targets}
        assert terminal == {FieldStatus.TOUCHED}


class TestStatusHelpers:
    """Test the module-level policy functions."""

    def test_status_of(self):
        assert status_of(True) == FieldStatus.TOUCHED
        assert status_of(False) == FieldStatus.PRISTINE

    @pytest.mark.parametrize("current, touched, expected", [
        (FieldStatus.PRISTINE, True, FieldStatus.TOUCHED),
        (FieldStatus.PRISTINE, False, FieldStatus.PRISTINE),
        (FieldStatus.TOUCHED, True, FieldStatus.TOUCHED),
        (FieldStatus.TOUCHED, False, FieldStatus.TOUCHED),
    ])
    def test_next_status(self, current, touched, expected):
        """Backward requests should keep the current status."""
        assert next_status(current, touched) == expected

    def test_validates_on_change_only_when_touched(self):
        assert validates_on_change(FieldStatus.PRISTINE) is False
        assert validates_on_change(FieldStatus.TOUCHED) is True

    def test_visible_error_hidden_while_pristine(self):
        """A pristine field should never show its error."""
        assert visible_error(FieldStatus.PRISTINE, "Required") is None
        assert visible_error(FieldStatus.TOUCHED, "Required") == "Required"
        assert visible_error(FieldStatus.TOUCHED, None) is None

    def test_machine_visible_error_follows_status(self):
        sm = FieldStateMachine(key="email")
        assert sm.visible_error("Required") is None
        assert sm.validates_on_change() is False
        sm.touch()
        assert sm.visible_error("Required") == "Required"
        assert sm.validates_on_change() is True
