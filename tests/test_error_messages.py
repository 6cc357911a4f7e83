from __future__ import annotations

from weddingrsvp import validation as v
from weddingrsvp.error_messages import (
    ERROR_MESSAGES,
    enhance_error_message,
    enhance_error_messages,
    get_error_summary,
    group_errors_by_field,
)
from weddingrsvp.validation import FORM_FIELD, FieldError, validate_rsvp


def test_enhance_replaces_known_messages():
    enhanced = enhance_error_message(FieldError("email", v.EMAIL_INVALID))
    assert enhanced == FieldError("email", ERROR_MESSAGES["INVALID_EMAIL"])


def test_enhance_uses_root_field_for_guest_slots():
    enhanced = enhance_error_message(FieldError("guestNames.2", v.GUEST_NAME_INVALID))
    assert enhanced.field == "guestNames.2"
    assert enhanced.message == ERROR_MESSAGES["GUEST_NAME_INVALID"]


def test_enhance_keeps_unknown_messages():
    error = FieldError("songRequests", "Something unusual")
    assert enhance_error_message(error) is error


def test_enhance_messages_from_validation():
    result = validate_rsvp({"attendance": "yes"})
    friendly = {error.field: error.message for error in enhance_error_messages(result.errors)}
    assert friendly["name"] == ERROR_MESSAGES["REQUIRED_NAME"]
    assert friendly["email"] == ERROR_MESSAGES["REQUIRED_EMAIL"]


def test_error_summary():
    assert get_error_summary([]) == ""
    single = [FieldError("name", "Please enter your full name")]
    assert get_error_summary(single) == "Please enter your full name"
    several = [FieldError("name", "a"), FieldError("email", "b")]
    assert get_error_summary(several) == (
        "Please correct 2 errors in the form before submitting."
    )
    with_form = [FieldError("name", "a"), FieldError(FORM_FIELD, "Server trouble")]
    assert get_error_summary(with_form) == "Server trouble"


def test_group_errors_by_field():
    errors = [
        FieldError("email", "first"),
        FieldError("email", "second"),
        FieldError("name", "third"),
    ]
    assert group_errors_by_field(errors) == {
        "email": ["first", "second"],
        "name": ["third"],
    }
