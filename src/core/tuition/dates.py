"""
Calendar expansion for a billing month.

Python's date arithmetic is proleptic Gregorian, so leap-year February is
handled by calendar.monthrange. Weekdays use the admin UI's convention
(0=Sunday .. 6=Saturday), not Python's (0=Monday).
"""

import calendar
import re
from datetime import date

from .models import CalendarDay, InvalidMonth

MONTH_PATTERN = re.compile(r"([0-9]{4})-([0-9]{2})")


def parse_month(month: str) -> tuple[int, int]:
    """Split "YYYY-MM" into (year, month), raising InvalidMonth if malformed."""
    match = MONTH_PATTERN.fullmatch(month) if isinstance(month, str) else None
    if not match:
        raise InvalidMonth(f"Invalid month {month!r} (use YYYY-MM)")

    year, month_number = int(match.group(1)), int(match.group(2))
    if year < 1 or not 1 <= month_number <= 12:
        raise InvalidMonth(f"Month {month!r} is out of range")
    return year, month_number


def weekday_index(day: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


def expand_month(month: str) -> list[CalendarDay]:
    """Every date of the month in ascending order, tagged with its weekday."""
    year, month_number = parse_month(month)
    _, last_day = calendar.monthrange(year, month_number)

    days = []
    for day_number in range(1, last_day + 1):
        day = date(year, month_number, day_number)
        days.append(CalendarDay(date=day, weekday=weekday_index(day)))
    return days
