from __future__ import annotations

import pytest

from weddingrsvp import validation as v
from weddingrsvp.validation import (
    FORM_FIELD,
    MAX_GUESTS,
    FieldError,
    validate_email_address,
    validate_rsvp,
)


def _fields(result):
    return [error.field for error in result.errors]


def test_valid_attending_submission(rsvp_payload):
    result = validate_rsvp(rsvp_payload(name="  Alice Smith  "))
    assert result.success
    assert result.errors == []
    data = result.data
    assert data.name == "Alice Smith"
    assert data.is_attending
    assert data.guest_names == ["Bob Smith"]
    record = data.to_record()
    assert record["is_attending"] is True
    assert record["number_of_guests"] == 1


def test_declining_with_no_guests_is_valid():
    result = validate_rsvp(
        {"name": "Carol Jones", "email": "carol@example.com", "attendance": "no"}
    )
    assert result.success
    assert result.data.number_of_guests == 0
    assert result.data.guest_names == []
    assert not result.data.is_attending


def test_empty_payload_reports_every_required_field():
    result = validate_rsvp({})
    assert not result.success
    assert set(_fields(result)) == {"name", "email", "attendance"}
    by_field = {error.field: error.message for error in result.errors}
    assert by_field["name"] == v.NAME_REQUIRED
    assert by_field["email"] == v.EMAIL_REQUIRED
    assert by_field["attendance"] == v.ATTENDANCE_REQUIRED


def test_several_field_errors_surface_together(rsvp_payload):
    result = validate_rsvp(
        rsvp_payload(name="R2-D2", email="not-an-email", attendance="maybe")
    )
    assert not result.success
    assert {"name", "email", "attendance"} <= set(_fields(result))


def test_non_mapping_payload_is_rejected_without_raising():
    result = validate_rsvp(["not", "an", "object"])
    assert not result.success
    assert result.errors == [FieldError(FORM_FIELD, v.INVALID_PAYLOAD)]


@pytest.mark.parametrize(
    "name, message",
    [
        ("", v.NAME_REQUIRED),
        ("   ", v.NAME_REQUIRED),
        ("A" * 101, v.NAME_TOO_LONG),
        ("Alice 2nd", v.NAME_INVALID),
    ],
)
def test_name_rules(rsvp_payload, name, message):
    result = validate_rsvp(rsvp_payload(name=name))
    assert FieldError("name", message) in result.errors


def test_name_accepts_hyphens_and_apostrophes(rsvp_payload):
    result = validate_rsvp(rsvp_payload(name="Mary-Jane O'Neil"))
    assert result.success


def test_email_is_trimmed_and_length_checked(rsvp_payload):
    result = validate_rsvp(rsvp_payload(email="  alice@example.com "))
    assert result.success
    assert result.data.email == "alice@example.com"

    too_long = "a" * 250 + "@example.com"
    result = validate_rsvp(rsvp_payload(email=too_long))
    assert FieldError("email", v.EMAIL_TOO_LONG) in result.errors


@pytest.mark.parametrize("count", ["abc", "1.5", 2.5, True])
def test_guest_count_must_be_whole_number(rsvp_payload, count):
    result = validate_rsvp(rsvp_payload(numberOfGuests=count, guestNames=[]))
    assert FieldError("numberOfGuests", v.GUEST_COUNT_NOT_INTEGER) in result.errors


def test_guest_count_accepts_numeric_strings(rsvp_payload):
    result = validate_rsvp(rsvp_payload(numberOfGuests=" 2 ", guestNames=["A B", "C D"]))
    assert result.success
    assert result.data.number_of_guests == 2


def test_guest_count_bounds(rsvp_payload):
    negative = validate_rsvp(rsvp_payload(numberOfGuests=-1, guestNames=[]))
    assert FieldError("numberOfGuests", v.GUEST_COUNT_NEGATIVE) in negative.errors

    too_many = validate_rsvp(rsvp_payload(numberOfGuests=MAX_GUESTS + 1, guestNames=[]))
    assert FieldError("numberOfGuests", v.GUEST_COUNT_TOO_HIGH) in too_many.errors

    names = [f"Guest {chr(65 + i)}" for i in range(MAX_GUESTS)]
    at_limit = validate_rsvp(rsvp_payload(numberOfGuests=MAX_GUESTS, guestNames=names))
    assert at_limit.success


def test_eleven_guests_with_eleven_names_fails_on_both_fields(rsvp_payload):
    names = [f"Guest {chr(65 + i)}" for i in range(MAX_GUESTS + 1)]
    result = validate_rsvp(
        rsvp_payload(numberOfGuests=MAX_GUESTS + 1, guestNames=names)
    )
    assert not result.success
    assert FieldError("numberOfGuests", v.GUEST_COUNT_TOO_HIGH) in result.errors
    assert FieldError("guestNames", v.GUEST_NAMES_TOO_MANY) in result.errors


def test_attending_requires_a_name_per_guest(rsvp_payload):
    result = validate_rsvp(rsvp_payload(numberOfGuests=2, guestNames=["Bob Smith"]))
    assert result.errors == [FieldError("guestNames", v.GUEST_NAMES_REQUIRED)]


def test_names_without_guests_are_rejected(rsvp_payload):
    result = validate_rsvp(rsvp_payload(numberOfGuests=0, guestNames=["Bob Smith"]))
    assert result.errors == [FieldError("guestNames", v.GUEST_NAMES_EXCEED_COUNT)]


def test_declining_with_guests_is_rejected(rsvp_payload):
    result = validate_rsvp(rsvp_payload(attendance="no"))
    assert FieldError("numberOfGuests", v.GUEST_COUNT_NOT_ATTENDING) in result.errors
    assert FieldError("guestNames", v.GUEST_NAMES_NOT_ATTENDING) in result.errors


def test_guest_name_errors_point_at_the_slot(rsvp_payload):
    result = validate_rsvp(
        rsvp_payload(numberOfGuests=3, guestNames=["Bob Smith", "", "B0b"])
    )
    assert FieldError("guestNames.1", v.GUEST_NAME_REQUIRED) in result.errors
    assert FieldError("guestNames.2", v.GUEST_NAME_INVALID) in result.errors


def test_cross_field_rules_wait_for_field_rules(rsvp_payload):
    result = validate_rsvp(rsvp_payload(name="", numberOfGuests=2, guestNames=[]))
    assert _fields(result) == ["name"]


def test_optional_text_limits(rsvp_payload):
    result = validate_rsvp(
        rsvp_payload(dietaryRestrictions="x" * 501, notes="y" * 1001)
    )
    assert FieldError("dietaryRestrictions", v.DIETARY_TOO_LONG) in result.errors
    assert FieldError("notes", v.NOTES_TOO_LONG) in result.errors


def test_song_requests_have_no_length_limit(rsvp_payload):
    result = validate_rsvp(rsvp_payload(songRequests="song " * 2000))
    assert result.success


def test_blank_optional_text_becomes_none(rsvp_payload):
    result = validate_rsvp(rsvp_payload(dietaryRestrictions="   ", notes=""))
    assert result.success
    assert result.data.dietary_restrictions is None
    assert result.data.notes is None


def test_validate_email_address():
    ok = validate_email_address(" guest@example.com ")
    assert ok.success
    assert ok.data == "guest@example.com"

    missing = validate_email_address("")
    assert missing.errors == [FieldError("email", v.EMAIL_REQUIRED)]

    invalid = validate_email_address("guest@")
    assert invalid.errors == [FieldError("email", v.EMAIL_INVALID)]
