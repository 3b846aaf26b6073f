"""
Turn resolved schedule, filtered dates and rate into a CalculationRow.

One session is one billable hour, so tuition is sessions x hourly rate,
rounded half-up to cents.
"""

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from .models import (
    MONTH_NAMES,
    WEEKDAY_NAMES,
    CalculationRow,
    CalendarDay,
    Participant,
    ScheduleSlot,
)

CENT = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_schedule_line(day: CalendarDay, slot: ScheduleSlot) -> str:
    """e.g. "Monday March 3 — 7-8PM @ Mary Wayte Pool"."""
    return (
        f"{WEEKDAY_NAMES[day.weekday]} {MONTH_NAMES[day.date.month - 1]} {day.date.day}"
        f" — {slot.time_slot} @ {slot.location}"
    )


def _representative_slot(
    sessions: list[tuple[CalendarDay, ScheduleSlot]],
    slots: dict[int, ScheduleSlot],
) -> Optional[tuple[str, str]]:
    """
    The (time slot, location) used by the most sessions this month.

    Ties go to the pair seen first. With no sessions, the first resolved
    weekday's pair is used.
    """
    if sessions:
        counts = Counter((slot.time_slot, slot.location) for _, slot in sessions)
        best = max(counts.values())
        for _, slot in sessions:
            if counts[(slot.time_slot, slot.location)] == best:
                return slot.time_slot, slot.location
    for weekday in sorted(slots):
        return slots[weekday].time_slot, slots[weekday].location
    return None


def build_row(
    participant: Participant,
    level_name: str,
    days: Iterable[CalendarDay],
    slots: dict[int, ScheduleSlot],
    rate_per_hour: Decimal,
    needs_config: bool = False,
    fallback_time_slot: str = "",
    fallback_location: str = "",
) -> CalculationRow:
    """
    Build one row from already-filtered days.

    days must already exclude no-training dates; only days whose weekday is
    in slots count as sessions. A swimmer without resolved weekdays gets an
    empty schedule and is always flagged needs_config.
    """
    sessions = [
        (day, slots[day.weekday])
        for day in sorted(days, key=lambda d: d.date)
        if day.weekday in slots
    ]
    session_count = len(sessions)

    representative = _representative_slot(sessions, slots)
    time_slot, location = representative or (fallback_time_slot, fallback_location)

    return CalculationRow(
        participant_id=participant.id,
        participant_name=participant.name,
        level=level_name,
        training_weekdays=tuple(sorted(slots)),
        session_count=session_count,
        rate_per_hour=rate_per_hour,
        tuition=round_money(session_count * rate_per_hour),
        schedule_lines=tuple(format_schedule_line(day, slot) for day, slot in sessions),
        time_slot=time_slot,
        location=location,
        needs_config=needs_config or not slots,
    )
