"""Keep the guest-name slots of the RSVP form in step with the guest count.

Slots are positional: index ``i`` is the ``i``-th additional guest on screen and
in the submitted list. Names are not validated here; that happens on submit.
"""

from __future__ import annotations

from .validation import MAX_GUESTS


def sync_guest_names(
    current: list[str], new_count: int, attending: bool
) -> list[str]:
    """Return the slot list for ``new_count`` guests.

    Existing slots are kept by index, new slots start empty and truncated names
    are gone for good. When nothing changes the ``current`` list object itself
    is returned so callers can skip re-rendering with an identity check.
    """
    target = max(0, min(int(new_count or 0), MAX_GUESTS)) if attending else 0
    if target == 0:
        resized: list[str] = []
    elif target <= len(current):
        resized = list(current[:target])
    else:
        resized = list(current) + [""] * (target - len(current))
    if resized == current:
        return current
    return resized


def set_guest_name(current: list[str], index: int, value: str) -> list[str]:
    """Replace slot ``index``; out-of-range indexes leave the list unchanged."""
    if not 0 <= index < len(current) or current[index] == value:
        return current
    updated = list(current)
    updated[index] = value
    return updated


def guest_count_for(attending: bool, requested: int | None) -> int:
    """The count the form should show: forced to 0 when declining."""
    if not attending:
        return 0
    return max(0, min(int(requested or 0), MAX_GUESTS))
