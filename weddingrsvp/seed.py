"""Development helpers for populating fake RSVPs."""

from __future__ import annotations

import random
from datetime import timedelta
from typing import Any

from faker import Faker

from .crud import DuplicateEmailError, create_rsvp
from .database import get_session
from .storage import init_db
from .utils import utcnow
from .validation import MAX_GUESTS, NAME_PATTERN, validate_rsvp

_dietary_options = [
    "Vegetarian",
    "Vegan",
    "Gluten-free",
    "Nut allergy",
    "Dairy-free",
    "Shellfish allergy",
]
_song_options = [
    "September - Earth, Wind & Fire",
    "Dancing Queen - ABBA",
    "Sweet Caroline - Neil Diamond",
    "Shout - The Isley Brothers",
    "Uptown Funk - Mark Ronson",
]


def _person_name(fake: Faker) -> str:
    while True:
        name = f"{fake.first_name()} {fake.last_name()}"
        if NAME_PATTERN.match(name):
            return name


def _fake_payload(fake: Faker, *, attending_percent: int) -> dict[str, Any]:
    attending = random.randint(1, 100) <= attending_percent
    guests = random.choice([0, 0, 1, 1, 1, 2, 3]) if attending else 0
    guests = min(guests, MAX_GUESTS)
    return {
        "name": _person_name(fake),
        "email": fake.unique.safe_email(),
        "attendance": "yes" if attending else "no",
        "numberOfGuests": guests,
        "guestNames": [_person_name(fake) for _ in range(guests)],
        "dietaryRestrictions": (
            random.choice(_dietary_options)
            if attending and random.random() < 0.3
            else None
        ),
        "songRequests": (
            random.choice(_song_options)
            if attending and random.random() < 0.4
            else None
        ),
        "notes": fake.sentence() if random.random() < 0.3 else None,
    }


def seed_fake_data(
    *,
    rsvp_count: int = 25,
    attending_percent: int = 80,
    max_age_days: int = 45,
) -> dict[str, int]:
    """Populate the database with synthetic RSVPs spread over ``max_age_days``."""
    if rsvp_count < 0:
        raise ValueError("rsvp_count must be >= 0")
    if not 0 <= attending_percent <= 100:
        raise ValueError("attending_percent must be between 0 and 100")
    if max_age_days < 0:
        raise ValueError("max_age_days must be >= 0")

    init_db()
    fake = Faker()
    stats = {"rsvps": 0, "attending": 0, "guests": 0, "skipped": 0}
    now = utcnow()

    with get_session() as session:
        for _ in range(rsvp_count):
            result = validate_rsvp(_fake_payload(fake, attending_percent=attending_percent))
            if not result.success:
                stats["skipped"] += 1
                continue
            try:
                rsvp = create_rsvp(session, result.data)
            except DuplicateEmailError:
                stats["skipped"] += 1
                continue
            created = now - timedelta(
                days=random.randint(0, max_age_days), minutes=random.randint(0, 1440)
            )
            rsvp.created_at = created
            rsvp.updated_at = created
            session.commit()
            stats["rsvps"] += 1
            if rsvp.is_attending:
                stats["attending"] += 1
                stats["guests"] += rsvp.number_of_guests
    return stats
