"""Turn raw form posts and JSON bodies into validation payloads."""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from typing import Any

GuestNameDecoder = Callable[[Mapping[str, Any]], list[Any]]

TEXT_FIELDS = (
    "name",
    "email",
    "attendance",
    "dietaryRestrictions",
    "songRequests",
    "notes",
)

_INDEXED_FIELD = re.compile(r"^guestName(\d+)$")
_BRACKET_FIELD = re.compile(r"^guestNames\[(\d+)\]$")


def _form_text(value: Any) -> Any:
    # Uploaded files and other non-text parts are not valid field values.
    return value if isinstance(value, str) else None


def _decode_numbered(form: Mapping[str, Any], pattern: re.Pattern[str]) -> list[Any]:
    numbered: list[tuple[int, Any]] = []
    for key in form.keys():
        match = pattern.match(key)
        if match:
            numbered.append((int(match.group(1)), _form_text(form.get(key))))
    return [value for _, value in sorted(numbered, key=lambda item: item[0])]


def decode_indexed_fields(form: Mapping[str, Any]) -> list[Any]:
    """``guestName0``, ``guestName1``, ..."""
    return _decode_numbered(form, _INDEXED_FIELD)


def decode_bracket_fields(form: Mapping[str, Any]) -> list[Any]:
    """``guestNames[0]``, ``guestNames[1]``, ..."""
    return _decode_numbered(form, _BRACKET_FIELD)


def decode_json_field(form: Mapping[str, Any]) -> list[Any]:
    """A single ``guestNames`` field holding a JSON array."""
    raw = _form_text(form.get("guestNames"))
    if not raw or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return parsed if isinstance(parsed, list) else []


GUEST_NAME_DECODERS: tuple[GuestNameDecoder, ...] = (
    decode_indexed_fields,
    decode_bracket_fields,
    decode_json_field,
)


def decode_guest_names(
    form: Mapping[str, Any],
    decoders: tuple[GuestNameDecoder, ...] = GUEST_NAME_DECODERS,
) -> list[Any]:
    """Return the result of the first decoder that finds at least one name."""
    for decoder in decoders:
        names = decoder(form)
        if names:
            return names
    return []


def _guest_count(source: Mapping[str, Any]) -> Any:
    if "numberOfGuests" in source:
        return source.get("numberOfGuests")
    return source.get("guestCount")


def parse_form_submission(form: Mapping[str, Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {
        field: _form_text(form.get(field)) for field in TEXT_FIELDS
    }
    payload["numberOfGuests"] = _form_text(_guest_count(form))
    payload["guestNames"] = decode_guest_names(form)
    return payload


def parse_json_submission(data: Any) -> Any:
    """Normalise a JSON body; non-objects pass through for validation to reject."""
    if not isinstance(data, Mapping):
        return data
    payload = dict(data)
    if "numberOfGuests" not in payload and "guestCount" in payload:
        payload["numberOfGuests"] = payload["guestCount"]
    payload.pop("guestCount", None)
    return payload
