"""SQLAlchemy models for the RSVP store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base

from .utils import utcnow

Base = declarative_base()


def _now() -> datetime:
    return utcnow()


class Meta(Base):
    __tablename__ = "meta"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)


class RSVP(Base):
    __tablename__ = "rsvps"
    __table_args__ = (
        CheckConstraint("number_of_guests >= 0", name="ck_rsvps_guests_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(254), nullable=False, unique=True)
    is_attending = Column(Boolean, nullable=False, default=False, index=True)
    number_of_guests = Column(Integer, nullable=False, default=0)
    guest_names = Column(JSON(none_as_null=True), nullable=True)
    dietary_restrictions = Column(Text, nullable=True)
    song_requests = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False, index=True)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    @property
    def attendance(self) -> str:
        return "yes" if self.is_attending else "no"

    @property
    def party_size(self) -> int:
        """Respondent plus additional guests."""
        return 1 + (self.number_of_guests or 0)

    def __repr__(self) -> str:
        return f"<RSVP id={self.id} email={self.email!r} attending={self.is_attending}>"


# Emails are unique regardless of case.
Index("uq_rsvps_email_lower", func.lower(RSVP.email), unique=True)
