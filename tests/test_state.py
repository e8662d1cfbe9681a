"""Unit tests for FormState.

Tests cover:
- Construction from initial values and malformed input
- Reads for known and unknown keys
- Copy-on-write updates (with_value, with_touched, with_error, with_errors)
- The shared key-set invariant
- Serialization and deserialization
"""

import pytest

from formcontext.errors import FieldSnapshot, InvalidFormDefinitionError, UnknownFieldError
from formcontext.state import FormState


class TestFormStateConstruction:
    """Test building a pristine state from initial values."""

    def test_from_initial_sets_pristine_entries(self):
        """Every key should get a None error and a False touched flag."""
        state = FormState.from_initial({"email": "", "age": 30})

        assert dict(state.values) == {"email": "", "age": 30}
        assert dict(state.errors) == {"email": None, "age": None}
        assert dict(state.touched) == {"email": False, "age": False}

    def test_keys_keep_declaration_order(self):
        """Should expose keys in the order the initial values declare them."""
        state = FormState.from_initial({"b": 1, "a": 2, "c": 3})
        assert state.keys == ("b", "a", "c")

    def test_from_initial_rejects_non_mapping(self):
        """Should reject initial values that are not a mapping."""
        with pytest.raises(InvalidFormDefinitionError) as exc_info:
            FormState.from_initial(["email"])
        assert "mapping" in str(exc_info.value)

    def test_from_initial_rejects_non_string_keys(self):
        """Should reject non-string field keys."""
        with pytest.raises(InvalidFormDefinitionError):
            FormState.from_initial({1: "x"})

    def test_mismatched_key_sets_rejected(self):
        """Should refuse a state whose mappings disagree on keys."""
        with pytest.raises(InvalidFormDefinitionError):
            FormState(values={"a": 1}, errors={}, touched={"a": False})

    def test_initial_values_are_copied(self):
        """Mutating the caller's dict should not leak into the state."""
        initial = {"email": ""}
        state = FormState.from_initial(initial)
        initial["email"] = "changed"
        assert state.values["email"] == ""


class TestFormStateReads:
    """Test reads never raise and return defined empties."""

    def test_unknown_key_reads(self):
        """Unknown keys should read as empty value, no error, untouched."""
        state = FormState.from_initial({"email": ""})

        assert state.get_value("missing") == ""
        assert state.get_error("missing") is None
        assert state.is_touched("missing") is False

    def test_none_value_read_back_as_stored(self):
        """A stored None should read back as None, not as the unknown-key default."""
        state = FormState.from_initial({"email": None})
        assert state.get_value("email") is None
        assert state.get("email").value is None
        assert state.get_value("missing") == ""

    def test_falsy_values_preserved(self):
        """Falsy non-None values such as 0 should be returned as stored."""
        state = FormState.from_initial({"count": 0, "agree": False})
        assert state.get_value("count") == 0
        assert state.get_value("agree") is False

    def test_get_returns_snapshot(self):
        """Should return a FieldSnapshot of the field."""
        state = FormState.from_initial({"email": "a@b.com"}).with_error("email", "Bad")
        snap = state.get("email")

        assert snap == FieldSnapshot(key="email", value="a@b.com", error="Bad", touched=False)
        assert snap.visible_error is None

    def test_mappings_are_read_only(self):
        """Exposed mappings should refuse item assignment."""
        state = FormState.from_initial({"email": ""})
        with pytest.raises(TypeError):
            state.values["email"] = "x"
        with pytest.raises(TypeError):
            state.errors["email"] = "x"
        with pytest.raises(TypeError):
            state.touched["email"] = True


class TestFormStateCopyOnWrite:
    """Test with_* operations return new states and leave the old one alone."""

    def test_with_value_replaces_only_value(self):
        """Should replace only values[key]."""
        state = FormState.from_initial({"email": "", "name": ""}).with_error("email", "Bad")
        updated = state.with_value("email", "a@b.com")

        assert updated is not state
        assert updated.values["email"] == "a@b.com"
        assert updated.errors["email"] == "Bad"
        assert updated.touched["email"] is False
        assert updated.values["name"] == ""
        assert state.values["email"] == ""

    def test_with_touched_replaces_only_touched(self):
        """Should replace only touched[key]."""
        state = FormState.from_initial({"email": "x"})
        updated = state.with_touched("email", True)

        assert updated.touched["email"] is True
        assert updated.values["email"] == "x"
        assert state.touched["email"] is False

    def test_with_error_replaces_only_error(self):
        """Should replace only errors[key]."""
        state = FormState.from_initial({"email": "", "name": ""})
        updated = state.with_error("name", "Required")

        assert updated.errors == {"email": None, "name": "Required"}
        assert state.errors["name"] is None

    def test_with_errors_replaces_all_errors(self):
        """Should replace the whole errors mapping, resetting unnamed keys."""
        state = FormState.from_initial({"a": "", "b": ""}).with_error("a", "Old")
        updated = state.with_errors({"b": "New"})

        assert dict(updated.errors) == {"a": None, "b": "New"}

    @pytest.mark.parametrize("operation, args", [
        ("with_value", ("missing", "x")),
        ("with_touched", ("missing", True)),
        ("with_error", ("missing", "x")),
    ])
    def test_updates_reject_unknown_keys(self, operation, args):
        """Updates should fail fast on undeclared fields."""
        state = FormState.from_initial({"email": ""})
        with pytest.raises(UnknownFieldError) as exc_info:
            getattr(state, operation)(*args)
        assert exc_info.value.key == "missing"
        assert exc_info.value.known_keys == ("email",)

    def test_with_errors_rejects_unknown_keys(self):
        """Whole-errors replacement should also fail on undeclared fields."""
        state = FormState.from_initial({"email": ""})
        with pytest.raises(UnknownFieldError):
            state.with_errors({"nope": "x"})


class TestFormStateSerialization:
    """Test to_dict / from_dict."""

    def test_to_dict(self):
        """Should serialize all three mappings."""
        state = FormState.from_initial({"email": "a"}).with_touched("email", True)
        assert state.to_dict() == {
            "values": {"email": "a"},
            "errors": {"email": None},
            "touched": {"email": True},
        }

    def test_from_dict_fills_missing_entries(self):
        """Missing errors/touched entries should default to None/False."""
        state = FormState.from_dict({"values": {"email": "a", "name": "b"}, "touched": {"email": True}})

        assert dict(state.errors) == {"email": None, "name": None}
        assert dict(state.touched) == {"email": True, "name": False}

    def test_round_trip(self):
        """A serialized state should deserialize to an equal state."""
        state = (
            FormState.from_initial({"email": "a", "name": ""})
            .with_touched("name", True)
            .with_error("name", "Required")
        )
        assert FormState.from_dict(state.to_dict()) == state

    def test_equal_states_hash_equal(self):
        """Equal states should hash alike and work as set members."""
        first = FormState.from_initial({"email": "a"}).with_touched("email", True)
        second = FormState.from_initial({"email": "a"}).with_touched("email", True)

        assert hash(first) == hash(second)
        assert len({first, second}) == 1
        assert first.with_value("email", "b") not in {first}


class TestFieldSnapshotSerialization:
    """Test FieldSnapshot to_dict / from_dict."""

    def test_to_dict_omits_missing_error(self):
        snap = FieldSnapshot(key="email", value="a@b.com", error=None, touched=True)
        assert snap.to_dict() == {"key": "email", "value": "a@b.com", "touched": True}

    def test_to_dict_includes_error(self):
        snap = FieldSnapshot(key="email", value="", error="Email is required", touched=True)
        assert snap.to_dict()["error"] == "Email is required"

    def test_from_dict_defaults(self):
        """Missing error and touched entries should default to None and False."""
        snap = FieldSnapshot.from_dict({"key": "age", "value": None})
        assert snap == FieldSnapshot(key="age", value=None, error=None, touched=False)

    def test_round_trip(self):
        snap = FormState.from_initial({"name": ""}).with_touched("name", True).with_error(
            "name", "Required"
        ).get("name")
        assert FieldSnapshot.from_dict(snap.to_dict()) == snap
