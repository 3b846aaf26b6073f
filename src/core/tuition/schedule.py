"""
Resolve where and when a swimmer trains on each of their weekdays.

Precedence, highest first, applied per field:
1. the swimmer's own time slot / location override
2. the level's schedule entry for that weekday
3. the level's default time slot / location

Each field is resolved by first_defined() over an ordered list of
candidates, so the precedence is data rather than nested ifs.
"""

from typing import Callable, Optional, TypeVar

from .models import LevelConfig, ScheduleSlot, SwimmerConfig

T = TypeVar("T")


def first_defined(*candidates: Optional[T]) -> Optional[T]:
    """Return the first candidate that is not None."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _resolve_field(
    override: Optional[str],
    level_slot: Optional[ScheduleSlot],
    pick: Callable[[ScheduleSlot], str],
    level_default: str,
) -> str:
    return first_defined(
        override,
        pick(level_slot) if level_slot else None,
        level_default,
    )


def resolve_slot(level: LevelConfig, swimmer: SwimmerConfig, weekday: int) -> ScheduleSlot:
    level_slot = level.slot_for(weekday)
    return ScheduleSlot(
        weekday=weekday,
        time_slot=_resolve_field(
            swimmer.training_time_slot, level_slot, lambda s: s.time_slot, level.default_time_slot,
        ),
        location=_resolve_field(
            swimmer.training_location, level_slot, lambda s: s.location, level.default_location,
        ),
    )


def resolve_schedule(
    level: Optional[LevelConfig],
    swimmer: SwimmerConfig,
) -> dict[int, ScheduleSlot]:
    """
    Map each of the swimmer's weekdays to its resolved slot, ascending.

    Empty when the level is missing or the swimmer has no weekdays; the
    caller flags those rows as needing configuration.
    """
    if level is None:
        return {}
    return {
        weekday: resolve_slot(level, swimmer, weekday)
        for weekday in sorted(swimmer.training_weekdays)
    }
