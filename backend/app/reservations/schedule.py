"""Operating hours and time slot generation."""

import re
from datetime import date
from typing import Any

from backend.app.db.repositories import ReservationSettingsRecord

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

ALLOWED_SLOT_INTERVALS = (15, 30, 60)

_SLOT_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def parse_slot(value: str) -> int:
    """Minutes since midnight for an ``HH:MM`` slot.

    Raises:
        ValueError: Malformed slot
    """
    match = _SLOT_RE.match(value or "")
    if match is None:
        raise ValueError(f"invalid time slot {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_slot(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_slot(value: str) -> str:
    """Zero-padded ``HH:MM`` form of a slot ("9:30" -> "09:30")."""
    return format_slot(parse_slot(value))


def weekday_name(on: date) -> str:
    return WEEKDAYS[on.weekday()]


def day_hours(settings: ReservationSettingsRecord, on: date) -> dict[str, Any] | None:
    """Opening hours for ``on``, or None when the restaurant is closed."""
    hours = settings.operating_hours.get(weekday_name(on))
    if not hours or hours.get("closed") is True:
        return None
    return hours


def is_closed(settings: ReservationSettingsRecord, on: date) -> bool:
    return day_hours(settings, on) is None


def generate_slots(settings: ReservationSettingsRecord | None, on: date) -> list[str]:
    """Bookable slots for a day, closing time included.

    Without settings the default service runs 11:00-22:00 every 30 minutes.
    """
    if settings is None:
        return _slots_between(11 * 60, 22 * 60, 30)

    hours = day_hours(settings, on)
    if hours is None:
        return []

    return _slots_between(
        parse_slot(hours["open"]), parse_slot(hours["close"]), settings.time_slot_interval
    )


def _slots_between(start: int, end: int, interval: int) -> list[str]:
    return [format_slot(minutes) for minutes in range(start, end + 1, interval)]


def validate_operating_hours(hours: dict[str, Any]) -> dict[str, Any]:
    """Validate an operating-hours mapping keyed by weekday name.

    Each present day is either ``{"closed": true}`` or has ``open`` and
    ``close`` in ``HH:MM`` with close strictly after open.

    Raises:
        ValueError: Describing the first problem found
    """
    unknown = set(hours) - set(WEEKDAYS)
    if unknown:
        raise ValueError(f"unknown weekdays {sorted(unknown)}")

    for day, day_value in hours.items():
        if not isinstance(day_value, dict):
            raise ValueError(f"{day}: hours must be an object")
        closed = day_value.get("closed", False)
        if not isinstance(closed, bool):
            raise ValueError(f"{day}: closed must be true or false")
        if closed:
            continue
        if not day_value.get("open") or not day_value.get("close"):
            raise ValueError(f"{day}: open and close are required unless closed")
        if parse_slot(day_value["close"]) <= parse_slot(day_value["open"]):
            raise ValueError(f"{day}: close must be after open")

    return hours
