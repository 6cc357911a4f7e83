"""Guest-facing wording for validation and submission errors."""

from __future__ import annotations

from collections.abc import Iterable

from . import validation as v
from .validation import FORM_FIELD, FieldError

ERROR_MESSAGES = {
    "REQUIRED_NAME": "Please enter your full name",
    "REQUIRED_EMAIL": "Please enter your email address",
    "REQUIRED_ATTENDANCE": "Please let us know if you'll be attending",
    "INVALID_EMAIL": "Please enter a valid email address (e.g., name@example.com)",
    "INVALID_NAME": "Name can only contain letters, spaces, hyphens, and apostrophes",
    "INVALID_GUEST_COUNT": "Number of guests must be a whole number",
    "EMAIL_TOO_LONG": "Email address is too long (maximum 254 characters)",
    "NAME_TOO_LONG": "Name is too long (maximum 100 characters)",
    "GUEST_COUNT_NEGATIVE": "Number of guests cannot be negative",
    "GUEST_COUNT_TOO_HIGH": "Sorry, we can only accommodate up to 10 guests per RSVP",
    "GUEST_NAMES_REQUIRED": "Please provide names for all guests when attending",
    "GUEST_NAME_REQUIRED": "Guest name is required",
    "GUEST_NAME_TOO_LONG": "Guest name is too long (maximum 100 characters)",
    "GUEST_NAME_INVALID": (
        "Guest names can only contain letters, spaces, hyphens, and apostrophes"
    ),
    "GUEST_NAMES_TOO_MANY": "Maximum 10 guest names allowed",
    "GUEST_NAMES_MISMATCH": "Number of guest names cannot exceed guest count",
    "GUEST_NAMES_NOT_ATTENDING": "Please remove guest names if you can't attend",
    "GUEST_COUNT_NOT_ATTENDING": "Guest count must be 0 when not attending",
    "DIETARY_RESTRICTIONS_TOO_LONG": (
        "Dietary restrictions note is too long (maximum 500 characters)"
    ),
    "NOTES_TOO_LONG": "Notes are too long (maximum 1000 characters)",
    "EMAIL_ALREADY_EXISTS": (
        "This email address has already been used for an RSVP. If you need to "
        "update your response, please contact us directly."
    ),
    "SERVER_ERROR": (
        "We're having trouble processing your request right now. "
        "Please try again in a few moments."
    ),
    "VALIDATION_FAILED": "Please check the form and correct any errors before submitting",
    "EMAIL_CHECK_FAILED": "Unable to validate email at this time",
    "NOT_FOUND": "We couldn't find that RSVP. It may already have been removed.",
    "RSVP_SUBMITTED": "Thank you! Your RSVP has been submitted successfully.",
    "EMAIL_AVAILABLE": "This email address is available",
}

FIELD_MESSAGES: dict[str, dict[str, str]] = {
    "name": {
        v.NAME_REQUIRED: ERROR_MESSAGES["REQUIRED_NAME"],
        v.NAME_TOO_LONG: ERROR_MESSAGES["NAME_TOO_LONG"],
        v.NAME_INVALID: ERROR_MESSAGES["INVALID_NAME"],
    },
    "email": {
        v.EMAIL_REQUIRED: ERROR_MESSAGES["REQUIRED_EMAIL"],
        v.EMAIL_INVALID: ERROR_MESSAGES["INVALID_EMAIL"],
        v.EMAIL_TOO_LONG: ERROR_MESSAGES["EMAIL_TOO_LONG"],
    },
    "attendance": {
        v.ATTENDANCE_REQUIRED: ERROR_MESSAGES["REQUIRED_ATTENDANCE"],
        v.ATTENDANCE_INVALID: ERROR_MESSAGES["REQUIRED_ATTENDANCE"],
    },
    "numberOfGuests": {
        v.GUEST_COUNT_NOT_INTEGER: ERROR_MESSAGES["INVALID_GUEST_COUNT"],
        v.GUEST_COUNT_NEGATIVE: ERROR_MESSAGES["GUEST_COUNT_NEGATIVE"],
        v.GUEST_COUNT_TOO_HIGH: ERROR_MESSAGES["GUEST_COUNT_TOO_HIGH"],
        v.GUEST_COUNT_NOT_ATTENDING: ERROR_MESSAGES["GUEST_COUNT_NOT_ATTENDING"],
    },
    "guestNames": {
        v.GUEST_NAMES_REQUIRED: ERROR_MESSAGES["GUEST_NAMES_REQUIRED"],
        v.GUEST_NAMES_TOO_MANY: ERROR_MESSAGES["GUEST_NAMES_TOO_MANY"],
        v.GUEST_NAMES_EXCEED_COUNT: ERROR_MESSAGES["GUEST_NAMES_MISMATCH"],
        v.GUEST_NAMES_NOT_ATTENDING: ERROR_MESSAGES["GUEST_NAMES_NOT_ATTENDING"],
        v.GUEST_NAME_REQUIRED: ERROR_MESSAGES["GUEST_NAME_REQUIRED"],
        v.GUEST_NAME_TOO_LONG: ERROR_MESSAGES["GUEST_NAME_TOO_LONG"],
        v.GUEST_NAME_INVALID: ERROR_MESSAGES["GUEST_NAME_INVALID"],
    },
    "dietaryRestrictions": {
        v.DIETARY_TOO_LONG: ERROR_MESSAGES["DIETARY_RESTRICTIONS_TOO_LONG"],
    },
    "notes": {
        v.NOTES_TOO_LONG: ERROR_MESSAGES["NOTES_TOO_LONG"],
    },
}


def _root_field(field: str) -> str:
    return field.split(".", 1)[0]


def enhance_error_message(error: FieldError) -> FieldError:
    """Swap a raw validation message for its friendly wording, if one exists."""
    table = FIELD_MESSAGES.get(_root_field(error.field), {})
    friendly = table.get(error.message)
    if friendly is None:
        return error
    return FieldError(error.field, friendly)


def enhance_error_messages(errors: Iterable[FieldError]) -> list[FieldError]:
    return [enhance_error_message(error) for error in errors]


def get_error_summary(errors: list[FieldError]) -> str:
    if not errors:
        return ""
    if len(errors) == 1:
        return errors[0].message
    for error in errors:
        if error.field == FORM_FIELD:
            return error.message
    return f"Please correct {len(errors)} errors in the form before submitting."


def group_errors_by_field(errors: Iterable[FieldError]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for error in errors:
        grouped.setdefault(error.field, []).append(error.message)
    return grouped
