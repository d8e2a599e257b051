"""Parsing of the free-text price and duration strings providers type in"""

import re
from typing import Iterable, Optional

_NON_PRICE_CHARS = re.compile(r"[^0-9.]")

# "<number><unit>" tokens; the unit is optional and defaults to minutes.
# Longer unit spellings are listed first so "hours" is not read as "h".
_DURATION_TOKEN = re.compile(
    r"(\d+(?:\.\d+)?)\s*(hours|hour|hrs|hr|h|minutes|minute|mins|min|m)?(?![a-z])",
    re.IGNORECASE,
)
_HOUR_UNITS = {"h", "hr", "hrs", "hour", "hours"}


def parse_price(value: Optional[str]) -> float:
    """
    Strip everything but digits and '.' and read the rest as a float.

    "₹1,234.50" -> 1234.5, "" -> 0.0, None -> 0.0, "1.2.3" -> 0.0
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)

    cleaned = _NON_PRICE_CHARS.sub("", str(value))
    if not cleaned:
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_duration_minutes(value: Optional[str]) -> int:
    """
    Sum every "<number><unit>" token in a duration string, in minutes.

    "1 hr 30 mins" -> 90, "45" -> 45, "1.5h" -> 90, "" -> 0
    """
    if not value:
        return 0

    total = 0.0
    for number, unit in _DURATION_TOKEN.findall(str(value)):
        amount = float(number)
        if unit and unit.lower() in _HOUR_UNITS:
            amount *= 60
        total += amount
    return int(round(total))


def format_duration(minutes: int) -> str:
    """Render minutes as "H hr M mins", dropping a zero part; "N/A" for nothing"""
    if not minutes or minutes <= 0:
        return "N/A"

    hours, mins = divmod(int(minutes), 60)
    parts = []
    if hours:
        parts.append(f"{hours} hr")
    if mins:
        parts.append(f"{mins} mins")
    return " ".join(parts)


def total_price(prices: Iterable[Optional[str]]) -> float:
    return round(sum(parse_price(p) for p in prices), 2)


def total_minutes(durations: Iterable[Optional[str]]) -> int:
    return sum(parse_duration_minutes(d) for d in durations)
