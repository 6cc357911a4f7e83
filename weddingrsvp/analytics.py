"""Derived numbers and list helpers for the admin dashboard."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .crud import RSVPStats
from .models import RSVP
from .utils import utcnow

RECENT_WINDOW = timedelta(hours=24)
SORT_KEYS = ("date", "name", "status", "guests")
FILTERS = ("all", "attending", "not-attending", "recent")


@dataclass(frozen=True)
class GuestBreakdown:
    solo_attendees: int = 0
    couples: int = 0
    families: int = 0


@dataclass(frozen=True)
class SubmissionTimeline:
    last_7_days: int = 0
    last_30_days: int = 0
    older: int = 0


@dataclass(frozen=True)
class AdminStats:
    stats: RSVPStats
    attendance_rate: float
    average_guests_per_rsvp: float
    recent_submissions_24h: int
    guest_breakdown: GuestBreakdown = field(default_factory=GuestBreakdown)
    submission_timeline: SubmissionTimeline = field(default_factory=SubmissionTimeline)

    @property
    def summary(self) -> str:
        if self.stats.total == 0:
            return "No RSVP responses received yet."
        return (
            f"{self.stats.total} responses received with "
            f"{self.attendance_rate:.1f}% attendance rate. Expecting "
            f"{self.stats.total_guests} total guests "
            f"({self.average_guests_per_rsvp:.1f} avg per party)."
        )


def attendance_rate(stats: RSVPStats) -> float:
    """Percentage of responses that are attending, 0 when there are none."""
    if stats.total == 0:
        return 0.0
    return stats.attending_count / stats.total * 100


def average_guests_per_rsvp(stats: RSVPStats) -> float:
    if stats.total == 0:
        return 0.0
    return stats.total_guests / stats.total


def is_recent_submission(created_at: datetime | None, *, now: datetime | None = None) -> bool:
    if created_at is None:
        return False
    return (now or utcnow()) - created_at < RECENT_WINDOW


def party_size_category(party_size: int) -> str:
    if party_size <= 1:
        return "solo"
    if party_size == 2:
        return "couple"
    if party_size <= 4:
        return "small-group"
    return "large-group"


def format_guest_count(count: int) -> str:
    if count == 0:
        return "No guests"
    if count == 1:
        return "1 guest"
    return f"{count} guests"


def subset_stats(rsvps: Iterable[RSVP]) -> RSVPStats:
    rows = list(rsvps)
    attending = [rsvp for rsvp in rows if rsvp.is_attending]
    return RSVPStats(
        total=len(rows),
        attending_count=len(attending),
        not_attending_count=len(rows) - len(attending),
        total_guests=sum(rsvp.number_of_guests or 0 for rsvp in attending),
    )


def build_admin_stats(
    stats: RSVPStats, rsvps: Sequence[RSVP], *, now: datetime | None = None
) -> AdminStats:
    now = now or utcnow()
    solo = couples = families = 0
    for rsvp in rsvps:
        if not rsvp.is_attending:
            continue
        if rsvp.party_size == 1:
            solo += 1
        elif rsvp.party_size == 2:
            couples += 1
        else:
            families += 1

    last_7 = last_30 = older = 0
    for rsvp in rsvps:
        age = now - rsvp.created_at
        if age <= timedelta(days=7):
            last_7 += 1
        elif age <= timedelta(days=30):
            last_30 += 1
        else:
            older += 1

    return AdminStats(
        stats=stats,
        attendance_rate=attendance_rate(stats),
        average_guests_per_rsvp=average_guests_per_rsvp(stats),
        recent_submissions_24h=sum(
            1 for rsvp in rsvps if is_recent_submission(rsvp.created_at, now=now)
        ),
        guest_breakdown=GuestBreakdown(solo, couples, families),
        submission_timeline=SubmissionTimeline(last_7, last_30, older),
    )


def sort_rsvps(
    rsvps: Iterable[RSVP], sort_by: str = "date", direction: str = "desc"
) -> list[RSVP]:
    """Sort a copy; unknown keys keep the incoming order."""
    rows = list(rsvps)
    keys = {
        "date": lambda rsvp: rsvp.created_at,
        "name": lambda rsvp: rsvp.name.casefold(),
        # Attending first when ascending.
        "status": lambda rsvp: not rsvp.is_attending,
        "guests": lambda rsvp: rsvp.number_of_guests or 0,
    }
    key = keys.get(sort_by)
    if key is None:
        return rows
    return sorted(rows, key=key, reverse=direction == "desc")


def filter_rsvps(
    rsvps: Iterable[RSVP], status: str = "all", *, now: datetime | None = None
) -> list[RSVP]:
    rows = list(rsvps)
    if status == "attending":
        return [rsvp for rsvp in rows if rsvp.is_attending]
    if status == "not-attending":
        return [rsvp for rsvp in rows if not rsvp.is_attending]
    if status == "recent":
        return [rsvp for rsvp in rows if is_recent_submission(rsvp.created_at, now=now)]
    return rows


def group_dietary_restrictions(rsvps: Iterable[RSVP]) -> dict[str, list[RSVP]]:
    """Attending RSVPs grouped by their restriction, compared case-insensitively."""
    groups: dict[str, list[RSVP]] = {}
    for rsvp in rsvps:
        restriction = (rsvp.dietary_restrictions or "").strip()
        if not rsvp.is_attending or not restriction:
            continue
        groups.setdefault(restriction.lower(), []).append(rsvp)
    return groups
