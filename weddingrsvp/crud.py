"""CRUD helpers for RSVP records."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any, Sequence

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .models import RSVP
from .utils import utcnow
from .validation import MAX_GUESTS, RSVPSubmission

UPDATABLE_FIELDS = (
    "name",
    "is_attending",
    "number_of_guests",
    "guest_names",
    "dietary_restrictions",
    "song_requests",
    "notes",
)
TEXT_FIELDS = ("dietary_restrictions", "song_requests", "notes")


class RSVPStorageError(Exception):
    """Raised when an RSVP could not be written."""


class DuplicateEmailError(RSVPStorageError):
    def __init__(self, email: str):
        super().__init__("Email already registered")
        self.email = email


class GuestNamesError(ValueError):
    """Guest count and guest names disagree."""


@dataclass(frozen=True)
class RSVPStats:
    total: int = 0
    attending_count: int = 0
    not_attending_count: int = 0
    total_guests: int = 0

    @property
    def total_attendees(self) -> int:
        """Attending respondents plus their additional guests."""
        return self.attending_count + self.total_guests

    def as_dict(self) -> dict[str, int]:
        return {**asdict(self), "total_attendees": self.total_attendees}


def check_guest_consistency(
    is_attending: bool, number_of_guests: int, guest_names: list[str] | None
) -> None:
    names = guest_names or []
    if number_of_guests < 0:
        raise GuestNamesError("Invalid guest count: cannot be negative")
    if number_of_guests > MAX_GUESTS:
        raise GuestNamesError(f"Invalid guest count: maximum {MAX_GUESTS} guests")
    if len(names) > MAX_GUESTS:
        raise GuestNamesError(f"Invalid guest names: maximum {MAX_GUESTS} names")
    if not is_attending:
        if number_of_guests:
            raise GuestNamesError("Invalid guest count: must be 0 when not attending")
        if names:
            raise GuestNamesError("Invalid guest names: must be empty when not attending")
        return
    if len(names) != number_of_guests:
        raise GuestNamesError(
            f"Invalid guest names: expected {number_of_guests}, got {len(names)}"
        )


def _stored_names(names: list[str] | None) -> list[str] | None:
    return list(names) if names else None


def _flush_or_raise(session: Session, email: str) -> None:
    try:
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        detail = str(exc.orig).lower()
        if "unique" in detail or "duplicate" in detail:
            raise DuplicateEmailError(email) from exc
        if "check constraint" in detail:
            raise GuestNamesError(f"Invalid guest count: {exc.orig}") from exc
        raise RSVPStorageError(f"Failed to save RSVP: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        session.rollback()
        raise RSVPStorageError(f"Failed to save RSVP: {exc}") from exc


def create_rsvp(session: Session, submission: RSVPSubmission) -> RSVP:
    """Insert a validated submission and return the row with its id."""
    record = submission.to_record()
    check_guest_consistency(
        record["is_attending"], record["number_of_guests"], record["guest_names"]
    )
    now = utcnow()
    rsvp = RSVP(
        **{**record, "guest_names": _stored_names(record["guest_names"])},
        created_at=now,
        updated_at=now,
    )
    session.add(rsvp)
    _flush_or_raise(session, submission.email)
    return rsvp


def get_rsvp(session: Session, rsvp_id: int) -> RSVP | None:
    return session.get(RSVP, rsvp_id)


def get_rsvp_by_email(session: Session, email: str) -> RSVP | None:
    normalized = (email or "").strip().lower()
    if not normalized:
        return None
    stmt = select(RSVP).where(func.lower(RSVP.email) == normalized)
    return session.scalars(stmt).first()


def get_all_rsvps(session: Session) -> Sequence[RSVP]:
    stmt = select(RSVP).order_by(RSVP.created_at.desc(), RSVP.id.desc())
    return session.scalars(stmt).all()


def update_rsvp(
    session: Session, rsvp_id: int, fields: Mapping[str, Any]
) -> RSVP | None:
    """Apply a partial update. ``None`` values leave the column untouched."""
    changes = {
        key: value
        for key, value in fields.items()
        if key in UPDATABLE_FIELDS and value is not None
    }
    if not changes:
        raise ValueError("No fields to update")
    rsvp = get_rsvp(session, rsvp_id)
    if rsvp is None:
        return None

    guest_fields = {"is_attending", "number_of_guests", "guest_names"}
    if guest_fields & changes.keys():
        check_guest_consistency(
            changes.get("is_attending", rsvp.is_attending),
            changes.get("number_of_guests", rsvp.number_of_guests),
            changes.get("guest_names", rsvp.guest_names),
        )
    if "guest_names" in changes:
        changes["guest_names"] = _stored_names(changes["guest_names"])
    # An empty string clears an optional text column.
    for key in TEXT_FIELDS:
        if changes.get(key) == "":
            changes[key] = None

    for key, value in changes.items():
        setattr(rsvp, key, value)
    rsvp.updated_at = utcnow()
    session.add(rsvp)
    _flush_or_raise(session, rsvp.email)
    return rsvp


def delete_rsvp(session: Session, rsvp_id: int) -> RSVP | None:
    rsvp = get_rsvp(session, rsvp_id)
    if rsvp is None:
        return None
    session.delete(rsvp)
    session.flush()
    return rsvp


def get_rsvp_stats(session: Session) -> RSVPStats:
    """Headline numbers computed in a single aggregate query."""
    attending = RSVP.is_attending.is_(True)
    stmt = select(
        func.count(RSVP.id),
        func.coalesce(func.sum(case((attending, 1), else_=0)), 0),
        func.coalesce(func.sum(case((attending, 0), else_=1)), 0),
        func.coalesce(
            func.sum(case((attending, RSVP.number_of_guests), else_=0)), 0
        ),
    )
    total, attending_count, not_attending_count, total_guests = session.execute(
        stmt
    ).one()
    return RSVPStats(
        total=int(total or 0),
        attending_count=int(attending_count or 0),
        not_attending_count=int(not_attending_count or 0),
        total_guests=int(total_guests or 0),
    )


def get_attending_with_dietary_restrictions(session: Session) -> Sequence[RSVP]:
    stmt = (
        select(RSVP)
        .where(RSVP.is_attending.is_(True))
        .where(RSVP.dietary_restrictions.is_not(None))
        .where(RSVP.dietary_restrictions != "")
        .order_by(RSVP.name.asc())
    )
    return session.scalars(stmt).all()


def get_attending_with_song_requests(session: Session) -> Sequence[RSVP]:
    stmt = (
        select(RSVP)
        .where(RSVP.is_attending.is_(True))
        .where(RSVP.song_requests.is_not(None))
        .where(RSVP.song_requests != "")
        .order_by(RSVP.created_at.desc(), RSVP.id.desc())
    )
    return session.scalars(stmt).all()
