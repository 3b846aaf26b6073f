"""
Monthly tuition and training-schedule calculation.

Given a billing month, level configuration, swimmer assignments and the
month's no-training dates, produces one CalculationRow per swimmer.
"""

from .calculator import TuitionCalculator, calculate_month
from .dates import expand_month, parse_month
from .defaults import DEFAULT_LEVEL_CONFIG, build_levels
from .models import (
    CalculationIssue,
    CalculationRow,
    CalendarDay,
    InvalidInput,
    InvalidMonth,
    IssueKind,
    LevelConfig,
    MonthException,
    MonthlyCalculation,
    Participant,
    ScheduleSlot,
    SwimmerConfig,
    TuitionError,
)

__all__ = [
    "CalculationIssue",
    "CalculationRow",
    "CalendarDay",
    "InvalidInput",
    "InvalidMonth",
    "IssueKind",
    "LevelConfig",
    "MonthException",
    "MonthlyCalculation",
    "Participant",
    "ScheduleSlot",
    "SwimmerConfig",
    "TuitionError",
    "TuitionCalculator",
    "calculate_month",
    "expand_month",
    "parse_month",
    "DEFAULT_LEVEL_CONFIG",
    "build_levels",
]
