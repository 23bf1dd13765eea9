"""Temporal parser: loosely formatted date/time text to a timestamp.

Timestamps are naive and read as local wall-clock time, the way the
dashboard displays them. Nothing here consults the process timezone.
"""

import re
from datetime import datetime

from dateutil import parser as dateparser

# Tried in order; the first full match wins
_PATTERNS: list[tuple[re.Pattern[str], tuple[str, ...]]] = [
    (
        re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?"),
        ("day", "month", "year", "hour", "minute", "second"),
    ),
    (
        re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})"),
        ("day", "month", "year"),
    ),
    (
        re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?"),
        ("year", "month", "day", "hour", "minute", "second"),
    ),
    (
        re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})"),
        ("year", "month", "day"),
    ),
]

_HAS_YEAR = re.compile(r"\d{4}")

# A clock time not preceded by a digit, colon or offset sign
_CLOCK_TIME = re.compile(r"(?<![\d:+-])\d{1,2}:\d{2}(?::\d{2})?")

# Two different fills: a component the text lacks comes out different
_GENERIC_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _from_match(match: re.Match[str], names: tuple[str, ...]) -> datetime | None:
    parts = {name: int(group) for name, group in zip(names, match.groups()) if group is not None}
    try:
        return datetime(
            parts["year"],
            parts["month"],
            parts["day"],
            parts.get("hour", 0),
            parts.get("minute", 0),
            parts.get("second", 0),
        )
    except ValueError:
        # e.g. 31/02/2025 or 25:00
        return None


def _generic_parse(text: str) -> datetime | None:
    if not _HAS_YEAR.search(text) or len(_CLOCK_TIME.findall(text)) > 1:
        return None
    try:
        first, second = (dateparser.parse(text, default=default) for default in _GENERIC_DEFAULTS)
    except (ValueError, OverflowError):
        return None
    if first is None or second is None:
        return None
    # Year, month and day must all come from the text
    if first.date() != second.date():
        return None
    # Keep the wall-clock reading of an explicit offset
    return first.replace(tzinfo=None)


def parse_datetime(text: str | None) -> datetime | None:
    """Parse a date or date-time string.

    Accepts, in priority order: ``DD/MM/YYYY HH:mm``, ``DD/MM/YYYY``,
    ``YYYY-MM-DD HH:mm``, ``YYYY-MM-DD`` (seconds optional after the
    minutes), then any text the generic parser understands that names a
    year, month and day and at most one clock time. The time defaults to
    midnight when omitted.

    Args:
        text: Raw date/time text.

    Returns:
        The parsed naive datetime, or None when the text is empty or
        cannot be parsed. Never raises.
    """
    if not text:
        return None
    text = text.strip()
    if not text:
        return None

    for pattern, names in _PATTERNS:
        match = pattern.fullmatch(text)
        if match:
            return _from_match(match, names)

    return _generic_parse(text)


def duration_minutes(start_at: datetime, end_at: datetime) -> int:
    """Whole minutes from start to end, rounded to the nearest minute."""
    return round((end_at - start_at).total_seconds() / 60)
