"""Validation rules for RSVP submissions.

Field rules live on the pydantic models below and are all evaluated, so a
single submission can surface several field errors at once. Cross-field rules
(guest count vs. guest names vs. attendance) only run once every field passed.

Messages produced here are the raw, stable strings that
``weddingrsvp.error_messages`` translates into guest-facing text.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal

from email_validator import EmailNotValidError, validate_email
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

MAX_GUESTS = 10
MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 254
MAX_DIETARY_LENGTH = 500
MAX_NOTES_LENGTH = 1000

FORM_FIELD = "_form"

NAME_PATTERN = re.compile(r"^[A-Za-z\s'-]+$")
_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

NAME_REQUIRED = "Name is required"
NAME_TOO_LONG = "Name must be 100 characters or less"
NAME_INVALID = "Name can only contain letters, spaces, hyphens, and apostrophes"
EMAIL_REQUIRED = "Email is required"
EMAIL_INVALID = "Please enter a valid email address"
EMAIL_TOO_LONG = "Email must be 254 characters or less"
ATTENDANCE_REQUIRED = "Please select your attendance status"
ATTENDANCE_INVALID = "Attendance must be 'yes' or 'no'"
GUEST_COUNT_NOT_INTEGER = "Number of guests must be a whole number"
GUEST_COUNT_NEGATIVE = "Number of guests cannot be negative"
GUEST_COUNT_TOO_HIGH = "Maximum 10 guests allowed"
GUEST_NAMES_NOT_LIST = "Guest names must be a list"
GUEST_NAMES_TOO_MANY = "Maximum 10 guest names allowed"
GUEST_NAME_REQUIRED = "Guest name is required"
GUEST_NAME_TOO_LONG = "Guest name must be 100 characters or less"
GUEST_NAME_INVALID = (
    "Guest name can only contain letters, spaces, hyphens, and apostrophes"
)
DIETARY_TOO_LONG = "Dietary restrictions must be 500 characters or less"
DIETARY_NOT_TEXT = "Dietary restrictions must be text"
SONGS_NOT_TEXT = "Song requests must be text"
NOTES_TOO_LONG = "Notes must be 1000 characters or less"
NOTES_NOT_TEXT = "Notes must be text"
GUEST_NAMES_REQUIRED = "Please provide names for all guests when attending"
GUEST_COUNT_NOT_ATTENDING = "Guest count must be 0 when not attending"
GUEST_NAMES_NOT_ATTENDING = "Guest names must be empty when not attending"
GUEST_NAMES_EXCEED_COUNT = "Number of guest names cannot exceed guest count"
INVALID_PAYLOAD = "Submission must be a set of named fields"

# Messages for pydantic's own "missing" error, keyed by field alias.
REQUIRED_MESSAGES = {
    "name": NAME_REQUIRED,
    "email": EMAIL_REQUIRED,
    "attendance": ATTENDANCE_REQUIRED,
}


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass
class ValidationResult:
    success: bool
    data: Any = None
    errors: list[FieldError] = field(default_factory=list)


def _fail(error_type: str, message: str) -> PydanticCustomError:
    return PydanticCustomError(error_type, message)


def _check_person_name(
    value: Any, *, required: str, too_long: str, invalid: str
) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise _fail("name_required", required)
    cleaned = value.strip()
    if len(cleaned) > MAX_NAME_LENGTH:
        raise _fail("name_too_long", too_long)
    if not NAME_PATTERN.match(cleaned):
        raise _fail("name_invalid", invalid)
    return cleaned


def _check_name(value: Any) -> str:
    return _check_person_name(
        value, required=NAME_REQUIRED, too_long=NAME_TOO_LONG, invalid=NAME_INVALID
    )


def _check_guest_name(value: Any) -> str:
    return _check_person_name(
        value,
        required=GUEST_NAME_REQUIRED,
        too_long=GUEST_NAME_TOO_LONG,
        invalid=GUEST_NAME_INVALID,
    )


def _check_email(value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise _fail("email_required", EMAIL_REQUIRED)
    if not isinstance(value, str):
        raise _fail("email_invalid", EMAIL_INVALID)
    cleaned = value.strip()
    if len(cleaned) > MAX_EMAIL_LENGTH:
        raise _fail("email_too_long", EMAIL_TOO_LONG)
    try:
        validate_email(cleaned, check_deliverability=False)
    except EmailNotValidError as exc:
        raise _fail("email_invalid", EMAIL_INVALID) from exc
    return cleaned


def _optional_text(
    value: Any, *, max_length: int | None, too_long: str, not_text: str
) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise _fail("text_type", not_text)
    cleaned = value.strip()
    if not cleaned:
        return None
    if max_length is not None and len(cleaned) > max_length:
        raise _fail("text_too_long", too_long)
    return cleaned


PersonName = Annotated[str, BeforeValidator(_check_name)]
GuestName = Annotated[str, BeforeValidator(_check_guest_name)]
EmailAddress = Annotated[str, BeforeValidator(_check_email)]


class RSVPSubmission(BaseModel):
    """A fully validated RSVP, keyed by the camelCase names the form posts."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    name: PersonName
    email: EmailAddress
    attendance: Literal["yes", "no"]
    number_of_guests: int = 0
    guest_names: list[GuestName] = Field(default_factory=list)
    dietary_restrictions: str | None = None
    song_requests: str | None = None
    notes: str | None = None

    @field_validator("attendance", mode="before")
    @classmethod
    def _attendance(cls, value: Any) -> str:
        if value is None or value == "":
            raise _fail("attendance_required", ATTENDANCE_REQUIRED)
        if value not in ("yes", "no"):
            raise _fail("attendance_invalid", ATTENDANCE_INVALID)
        return value

    @field_validator("number_of_guests", mode="before")
    @classmethod
    def _guest_count(cls, value: Any) -> int:
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0
        if isinstance(value, bool):
            raise _fail("guest_count_type", GUEST_COUNT_NOT_INTEGER)
        if isinstance(value, int):
            count = value
        elif isinstance(value, float) and value.is_integer():
            count = int(value)
        elif isinstance(value, str) and _INTEGER_PATTERN.match(value.strip()):
            count = int(value.strip())
        else:
            raise _fail("guest_count_type", GUEST_COUNT_NOT_INTEGER)
        if count < 0:
            raise _fail("guest_count_negative", GUEST_COUNT_NEGATIVE)
        if count > MAX_GUESTS:
            raise _fail("guest_count_too_high", GUEST_COUNT_TOO_HIGH)
        return count

    @field_validator("guest_names", mode="before")
    @classmethod
    def _guest_names(cls, value: Any) -> list[Any]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise _fail("guest_names_type", GUEST_NAMES_NOT_LIST)
        if len(value) > MAX_GUESTS:
            raise _fail("guest_names_too_many", GUEST_NAMES_TOO_MANY)
        return list(value)

    @field_validator("dietary_restrictions", mode="before")
    @classmethod
    def _dietary(cls, value: Any) -> str | None:
        return _optional_text(
            value,
            max_length=MAX_DIETARY_LENGTH,
            too_long=DIETARY_TOO_LONG,
            not_text=DIETARY_NOT_TEXT,
        )

    @field_validator("song_requests", mode="before")
    @classmethod
    def _songs(cls, value: Any) -> str | None:
        return _optional_text(
            value, max_length=None, too_long="", not_text=SONGS_NOT_TEXT
        )

    @field_validator("notes", mode="before")
    @classmethod
    def _notes(cls, value: Any) -> str | None:
        return _optional_text(
            value,
            max_length=MAX_NOTES_LENGTH,
            too_long=NOTES_TOO_LONG,
            not_text=NOTES_NOT_TEXT,
        )

    @property
    def is_attending(self) -> bool:
        return self.attendance == "yes"

    def to_record(self) -> dict[str, Any]:
        """Column values for the persistence layer."""
        return {
            "name": self.name,
            "email": self.email,
            "is_attending": self.is_attending,
            "number_of_guests": self.number_of_guests,
            "guest_names": list(self.guest_names),
            "dietary_restrictions": self.dietary_restrictions,
            "song_requests": self.song_requests,
            "notes": self.notes,
        }


class EmailCheck(BaseModel):
    email: EmailAddress


CrossFieldRule = Callable[[RSVPSubmission], list[FieldError]]


def _declined_without_guests(data: RSVPSubmission) -> list[FieldError]:
    if data.attendance != "no":
        return []
    errors: list[FieldError] = []
    if data.number_of_guests != 0:
        errors.append(FieldError("numberOfGuests", GUEST_COUNT_NOT_ATTENDING))
    if data.guest_names:
        errors.append(FieldError("guestNames", GUEST_NAMES_NOT_ATTENDING))
    return errors


def _every_guest_named(data: RSVPSubmission) -> list[FieldError]:
    if data.attendance != "yes" or data.number_of_guests == 0:
        return []
    if len(data.guest_names) != data.number_of_guests:
        return [FieldError("guestNames", GUEST_NAMES_REQUIRED)]
    return []


def _no_names_without_guests(data: RSVPSubmission) -> list[FieldError]:
    if data.attendance == "yes" and data.number_of_guests == 0 and data.guest_names:
        return [FieldError("guestNames", GUEST_NAMES_EXCEED_COUNT)]
    return []


CROSS_FIELD_RULES: tuple[CrossFieldRule, ...] = (
    _declined_without_guests,
    _every_guest_named,
    _no_names_without_guests,
)


def transform_validation_errors(error: ValidationError) -> list[FieldError]:
    """Flatten pydantic errors into dotted field paths such as ``guestNames.1``."""
    errors: list[FieldError] = []
    for issue in error.errors():
        loc = issue.get("loc") or ()
        path = ".".join(str(part) for part in loc) or FORM_FIELD
        message = issue.get("msg", "")
        if issue.get("type") == "missing":
            message = REQUIRED_MESSAGES.get(path, message)
        elif path == FORM_FIELD:
            message = INVALID_PAYLOAD
        errors.append(FieldError(path, message))
    return errors


def validate_rsvp(payload: Any) -> ValidationResult:
    """Validate an untrusted payload; never raises for bad input data."""
    if not isinstance(payload, Mapping):
        return ValidationResult(False, errors=[FieldError(FORM_FIELD, INVALID_PAYLOAD)])
    try:
        submission = RSVPSubmission.model_validate(dict(payload))
    except ValidationError as exc:
        return ValidationResult(False, errors=transform_validation_errors(exc))

    errors = [error for rule in CROSS_FIELD_RULES for error in rule(submission)]
    if errors:
        return ValidationResult(False, errors=errors)
    return ValidationResult(True, data=submission)


def validate_email_address(email: Any) -> ValidationResult:
    try:
        checked = EmailCheck.model_validate({"email": email})
    except ValidationError as exc:
        return ValidationResult(False, errors=transform_validation_errors(exc))
    return ValidationResult(True, data=checked.email)
