"""Bookable half-hour time slots and their conversion to timestamps"""

import re
from datetime import date, datetime, time

OPENING_HOUR = 9
CLOSING_HOUR = 18  # last slot starts half an hour before
SLOT_MINUTES = 30

_SLOT_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


def format_slot(hour: int, minute: int) -> str:
    """24-hour clock -> "hh:mm AM/PM" label"""
    suffix = "AM" if hour < 12 else "PM"
    hour12 = hour % 12 or 12
    return f"{hour12:02d}:{minute:02d} {suffix}"


def _build_slots() -> list[str]:
    slots = []
    minutes = OPENING_HOUR * 60
    while minutes < CLOSING_HOUR * 60:
        slots.append(format_slot(*divmod(minutes, 60)))
        minutes += SLOT_MINUTES
    return slots


# "09:00 AM" ... "05:30 PM"
TIME_SLOTS = _build_slots()


def parse_slot(label: str) -> tuple[int, int]:
    """
    Parse a 12-hour "hh:mm AM/PM" label into (hour, minute).

    12 AM is hour 0, 12 PM stays 12, any other PM hour gets 12 added.

    Raises:
        ValueError: If the label is not a valid 12-hour time
    """
    match = _SLOT_PATTERN.match(label or "")
    if not match:
        raise ValueError(f"Invalid time slot: {label!r}")

    hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not 1 <= hour <= 12 or not 0 <= minute <= 59:
        raise ValueError(f"Invalid time slot: {label!r}")

    if meridiem == "PM" and hour != 12:
        hour += 12
    if meridiem == "AM" and hour == 12:
        hour = 0
    return hour, minute


def combine_date_and_slot(day: date, label: str) -> datetime:
    """The selected day at the slot's time, zero seconds and microseconds"""
    hour, minute = parse_slot(label)
    return datetime.combine(day, time(hour=hour, minute=minute, second=0, microsecond=0))


def validate_time_slot(label: str) -> str:
    label = (label or "").strip().upper()
    if label not in TIME_SLOTS:
        raise ValueError(f"Time slot must be one of: {', '.join(TIME_SLOTS)}")
    return label
