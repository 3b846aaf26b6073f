"""
No-training dates: validation and filtering.

Administrators mark pool closures and holidays per month. A bad entry in that
list should never block billing, so malformed dates are reported as issues
and otherwise ignored.
"""

import logging
import re
from datetime import date
from typing import Iterable

from .dates import parse_month
from .models import CalculationIssue, CalendarDay, IssueKind

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def is_date_string(value) -> bool:
    """True when value looks like YYYY-MM-DD. Does not check the calendar."""
    return isinstance(value, str) and bool(DATE_PATTERN.fullmatch(value))


def validate_no_training_dates(
    month: str,
    raw_dates: Iterable,
) -> tuple[frozenset[str], list[CalculationIssue]]:
    """
    Keep the dates that are real calendar dates inside month.

    Returns the accepted set plus one MALFORMED_EXCEPTION issue per rejected
    value, in input order.
    """
    year, month_number = parse_month(month)
    accepted: set[str] = set()
    issues: list[CalculationIssue] = []

    for raw in raw_dates:
        reason = None
        if not is_date_string(raw):
            reason = "is not a YYYY-MM-DD date"
        else:
            try:
                parsed = date.fromisoformat(raw)
            except ValueError:
                reason = "is not a valid calendar date"
            else:
                if (parsed.year, parsed.month) != (year, month_number):
                    reason = f"falls outside {month}"

        if reason:
            issues.append(CalculationIssue(
                kind=IssueKind.MALFORMED_EXCEPTION,
                message=f"No-training date {raw!r} {reason}; ignored",
                value=str(raw),
            ))
            logger.warning(
                "Ignoring malformed no-training date",
                extra={"month": month, "value": str(raw), "reason": reason},
            )
            continue
        accepted.add(raw)

    return frozenset(accepted), issues


def filter_no_training_dates(
    days: Iterable[CalendarDay],
    no_training_dates: Iterable[str],
) -> list[CalendarDay]:
    """Drop days whose YYYY-MM-DD string is in no_training_dates. Order is kept."""
    excluded = set(no_training_dates)
    return [day for day in days if day.iso not in excluded]
