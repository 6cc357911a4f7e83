from __future__ import annotations

from datetime import datetime, timedelta

from weddingrsvp.utils import format_timestamp, humanize_time, pluralize, utcnow


def test_utcnow_is_naive():
    assert utcnow().tzinfo is None


def test_humanize_time_handles_future_and_past():
    now = datetime(2024, 1, 1, 12, 0, 0)
    future = now + timedelta(days=2, hours=3)
    past = now - timedelta(seconds=10)
    assert humanize_time(future, now=now) == "in 2 days"
    assert humanize_time(past, now=now) == "just now"
    assert humanize_time(now - timedelta(hours=1), now=now) == "1 hour ago"
    assert humanize_time(None) == ""


def test_format_timestamp():
    assert format_timestamp(datetime(2024, 6, 15, 16, 30)) == "Jun 15, 2024 04:30 PM"
    assert format_timestamp(None) == ""


def test_pluralize():
    assert pluralize(1, "guest") == "1 guest"
    assert pluralize(3, "guest") == "3 guests"
    assert pluralize(2, "family", "families") == "2 families"
