from __future__ import annotations

from datetime import timedelta

import pytest

from weddingrsvp.crud import (
    DuplicateEmailError,
    GuestNamesError,
    check_guest_consistency,
    create_rsvp,
    delete_rsvp,
    get_all_rsvps,
    get_attending_with_dietary_restrictions,
    get_attending_with_song_requests,
    get_rsvp,
    get_rsvp_by_email,
    get_rsvp_stats,
    update_rsvp,
)
from weddingrsvp.utils import utcnow
from weddingrsvp.validation import RSVPSubmission


def _submission(**overrides) -> RSVPSubmission:
    payload = {
        "name": "Alice Smith",
        "email": "alice@example.com",
        "attendance": "yes",
        "numberOfGuests": 0,
        "guestNames": [],
    }
    payload.update(overrides)
    return RSVPSubmission.model_validate(payload)


def test_create_rsvp_assigns_id_and_timestamps(session):
    rsvp = create_rsvp(
        session, _submission(numberOfGuests=1, guestNames=["Bob Smith"])
    )
    session.commit()
    assert rsvp.id is not None
    assert rsvp.created_at is not None
    assert rsvp.updated_at == rsvp.created_at
    stored = get_rsvp(session, rsvp.id)
    assert stored.guest_names == ["Bob Smith"]
    assert stored.party_size == 2


def test_guest_names_are_null_when_empty(session):
    rsvp = create_rsvp(session, _submission())
    session.commit()
    assert rsvp.guest_names is None


def test_duplicate_email_is_rejected_case_insensitively(session):
    create_rsvp(session, _submission())
    session.commit()
    with pytest.raises(DuplicateEmailError) as excinfo:
        create_rsvp(session, _submission(email="ALICE@Example.com", name="Other Alice"))
    assert excinfo.value.email == "ALICE@Example.com"
    assert len(get_all_rsvps(session)) == 1


def test_get_rsvp_by_email_ignores_case(session):
    create_rsvp(session, _submission())
    session.commit()
    assert get_rsvp_by_email(session, " Alice@EXAMPLE.com ").name == "Alice Smith"
    assert get_rsvp_by_email(session, "") is None
    assert get_rsvp_by_email(session, "nobody@example.com") is None


def test_get_all_rsvps_newest_first(session):
    first = create_rsvp(session, _submission(email="one@example.com"))
    second = create_rsvp(session, _submission(email="two@example.com"))
    first.created_at = utcnow() - timedelta(days=1)
    session.commit()
    assert [rsvp.id for rsvp in get_all_rsvps(session)] == [second.id, first.id]


def test_check_guest_consistency():
    check_guest_consistency(True, 2, ["A", "B"])
    check_guest_consistency(False, 0, None)
    with pytest.raises(GuestNamesError, match="guest count"):
        check_guest_consistency(True, -1, [])
    with pytest.raises(GuestNamesError, match="guest names"):
        check_guest_consistency(True, 2, ["A"])
    with pytest.raises(GuestNamesError, match="not attending"):
        check_guest_consistency(False, 1, ["A"])


def test_update_rsvp_partial_and_clearing(session):
    rsvp = create_rsvp(session, _submission(notes="Old note"))
    session.commit()
    original_updated = rsvp.updated_at

    updated = update_rsvp(
        session,
        rsvp.id,
        {"name": "Alice Jones", "notes": "", "song_requests": None},
    )
    session.commit()
    assert updated.name == "Alice Jones"
    assert updated.notes is None
    assert updated.updated_at >= original_updated
    assert updated.email == "alice@example.com"


def test_update_rsvp_checks_guest_consistency(session):
    rsvp = create_rsvp(session, _submission())
    session.commit()
    with pytest.raises(GuestNamesError):
        update_rsvp(session, rsvp.id, {"number_of_guests": 2})
    updated = update_rsvp(
        session, rsvp.id, {"number_of_guests": 1, "guest_names": ["Bob Smith"]}
    )
    assert updated.guest_names == ["Bob Smith"]


def test_update_rsvp_requires_fields_and_known_id(session):
    with pytest.raises(ValueError, match="No fields to update"):
        update_rsvp(session, 1, {"email": "x@example.com", "notes": None})
    assert update_rsvp(session, 999, {"name": "Nobody Here"}) is None


def test_delete_rsvp(session):
    rsvp = create_rsvp(session, _submission())
    session.commit()
    assert delete_rsvp(session, rsvp.id) is rsvp
    session.commit()
    assert get_rsvp(session, rsvp.id) is None
    assert delete_rsvp(session, rsvp.id) is None


def test_stats_count_only_attending_guests(session):
    create_rsvp(
        session,
        _submission(numberOfGuests=2, guestNames=["Bob Smith", "Cy Smith"]),
    )
    create_rsvp(session, _submission(email="d@example.com", attendance="no"))
    create_rsvp(session, _submission(email="e@example.com"))
    session.commit()

    stats = get_rsvp_stats(session)
    assert stats.total == 3
    assert stats.attending_count == 2
    assert stats.not_attending_count == 1
    assert stats.total_guests == 2
    assert stats.total_attendees == 4
    assert stats.total == stats.attending_count + stats.not_attending_count


def test_stats_on_empty_database(session):
    stats = get_rsvp_stats(session)
    assert stats.as_dict() == {
        "total": 0,
        "attending_count": 0,
        "not_attending_count": 0,
        "total_guests": 0,
        "total_attendees": 0,
    }


def test_dietary_and_song_lists_only_include_attending(session):
    create_rsvp(
        session,
        _submission(name="Zed Quinn", dietaryRestrictions="Vegan", songRequests="Shout"),
    )
    create_rsvp(
        session,
        _submission(email="b@example.com", name="Amy Pond", dietaryRestrictions="Gluten-free"),
    )
    create_rsvp(
        session,
        _submission(
            email="c@example.com",
            attendance="no",
            dietaryRestrictions="Vegan",
            songRequests="Hello",
        ),
    )
    session.commit()

    dietary = get_attending_with_dietary_restrictions(session)
    assert [rsvp.name for rsvp in dietary] == ["Amy Pond", "Zed Quinn"]
    songs = get_attending_with_song_requests(session)
    assert [rsvp.song_requests for rsvp in songs] == ["Shout"]
