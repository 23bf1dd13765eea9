"""Unit tests for the temporal parser."""

from datetime import datetime

import pytest

from opsboard.services.import_service import duration_minutes, parse_datetime


@pytest.mark.parametrize(
    "text, expected",
    [
        ("26/03/2025 12:30", datetime(2025, 3, 26, 12, 30)),
        ("26/03/2025", datetime(2025, 3, 26)),
        ("2025-03-26 12:30", datetime(2025, 3, 26, 12, 30)),
        ("2025-03-26", datetime(2025, 3, 26)),
        ("26/03/2025 12:30:15", datetime(2025, 3, 26, 12, 30, 15)),
        ("6/3/2025 8:05", datetime(2025, 3, 6, 8, 5)),
        ("  26/03/2025 12:30  ", datetime(2025, 3, 26, 12, 30)),
    ],
)
def test_parse_known_formats(text: str, expected: datetime) -> None:
    assert parse_datetime(text) == expected


def test_slash_dates_are_day_first() -> None:
    assert parse_datetime("01/02/2025") == datetime(2025, 2, 1)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2025-03-26T12:30:00", datetime(2025, 3, 26, 12, 30)),
        ("March 26, 2025 12:30", datetime(2025, 3, 26, 12, 30)),
        ("26 Mar 2025", datetime(2025, 3, 26)),
    ],
)
def test_parse_generic_fallback(text: str, expected: datetime) -> None:
    assert parse_datetime(text) == expected


def test_explicit_offset_keeps_wall_clock() -> None:
    value = parse_datetime("2025-03-26T12:30:00+02:00")
    assert value == datetime(2025, 3, 26, 12, 30)
    assert value.tzinfo is None


@pytest.mark.parametrize(
    "text",
    [
        None, "", "   ", "not a date", "12:30", "31/02/2025", "26/03/2025 25:00", "2025-13-01",
        "2025", "March 2025", "2025-03-26 12:30 12:30", "26 Mar 2025 08:00 09:00",
    ],
)
def test_unparseable_returns_none(text) -> None:
    assert parse_datetime(text) is None


def test_duration_minutes() -> None:
    start = datetime(2025, 3, 26, 12, 30)
    assert duration_minutes(start, datetime(2025, 3, 26, 13, 45)) == 75
    assert duration_minutes(start, start) == 0
    assert duration_minutes(start, datetime(2025, 3, 27, 12, 30)) == 1440


def test_duration_minutes_rounds_seconds() -> None:
    start = datetime(2025, 3, 26, 12, 0, 0)
    assert duration_minutes(start, datetime(2025, 3, 26, 12, 0, 20)) == 0
    assert duration_minutes(start, datetime(2025, 3, 26, 12, 0, 40)) == 1
