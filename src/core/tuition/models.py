"""
Domain models for monthly tuition calculation.

These models represent the billing concepts: levels, swimmers, calendar
exceptions and the calculation rows handed to the admin UI. Like the rest of
the core, they know nothing about Snowflake or HTTP. Configuration values are
snapshots; the engine never mutates them.

Money is carried as Decimal. Numbers coming from JSON documents are floats,
so they are converted through str() to keep 42.5 exactly 42.5.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Union

Number = Union[int, float, Decimal]

WEEKDAY_NAMES = (
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
)
WEEKDAY_ABBREVIATIONS = tuple(name[:3] for name in WEEKDAY_NAMES)
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TuitionError(Exception):
    """Base class for calculation errors."""
    pass


class InvalidInput(TuitionError):
    """Raised for caller-level structural errors. Nothing is computed."""
    pass


class InvalidMonth(InvalidInput):
    """Raised when a month string is not a valid YYYY-MM."""
    pass


class IssueKind(Enum):
    """
    Problems that degrade a single row (or a single exception date)
    instead of aborting the whole calculation.
    """
    INVALID_LEVEL_REFERENCE = "invalid_level_reference"
    MISSING_LEVEL = "missing_level"
    MISSING_WEEKDAYS = "missing_weekdays"
    MALFORMED_EXCEPTION = "malformed_exception"


@dataclass(frozen=True)
class CalculationIssue:
    """A non-fatal problem reported alongside the rows."""
    kind: IssueKind
    message: str
    participant_id: Optional[str] = None
    value: Optional[str] = None  # the offending level name or date string


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip a string; blank means "not set"."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _check_rate(value: Number, label: str) -> None:
    """Rates are finite and non-negative."""
    amount = to_decimal(value)
    if not amount.is_finite():
        raise ValueError(f"{label} must be a finite number, got {value!r}")
    if amount < 0:
        raise ValueError(f"{label} cannot be negative")


def _check_weekday(weekday: int) -> None:
    if isinstance(weekday, bool) or not isinstance(weekday, int) or not 0 <= weekday <= 6:
        raise ValueError(f"Weekday must be an integer 0..6 (0=Sunday), got {weekday!r}")


# ---------------------------------------------------------------------------
# Configuration snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScheduleSlot:
    """Time and place a level trains on one weekday."""
    weekday: int
    time_slot: str
    location: str

    def __post_init__(self) -> None:
        _check_weekday(self.weekday)


@dataclass(frozen=True)
class LevelConfig:
    """
    Rate policy and weekly meeting pattern of one level (e.g. "Gold Beginner").

    The schedule is keyed by weekday. Use from_slots() when starting from an
    ordered list; a weekday listed twice keeps the last entry.
    """
    default_rate_per_hour: Number
    days_per_week: int
    min_days_per_week: int
    default_time_slot: str
    default_location: str
    reduced_rate_per_hour: Optional[Number] = None
    schedule: dict[int, ScheduleSlot] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_rate(self.default_rate_per_hour, "Default rate")
        if self.reduced_rate_per_hour is not None:
            _check_rate(self.reduced_rate_per_hour, "Reduced rate")
        if not 0 <= self.days_per_week <= 7:
            raise ValueError("Days per week must be between 0 and 7")
        if not 0 <= self.min_days_per_week <= self.days_per_week:
            raise ValueError("Minimum days per week must be between 0 and days per week")
        for weekday, slot in self.schedule.items():
            if slot.weekday != weekday:
                raise ValueError(f"Schedule entry for weekday {weekday} describes weekday {slot.weekday}")

    @classmethod
    def from_slots(cls, slots: Iterable[ScheduleSlot], **kwargs) -> "LevelConfig":
        schedule: dict[int, ScheduleSlot] = {}
        for slot in slots:
            schedule[slot.weekday] = slot
        return cls(schedule=schedule, **kwargs)

    def slot_for(self, weekday: int) -> Optional[ScheduleSlot]:
        return self.schedule.get(weekday)


@dataclass(frozen=True)
class SwimmerConfig:
    """
    Per-swimmer training assignment.

    Time slot and location overrides apply to every weekday the swimmer
    trains. A rate override beats every level-derived rate, including 0.
    """
    level: Optional[str] = None
    training_weekdays: frozenset[int] = frozenset()
    training_time_slot: Optional[str] = None
    training_location: Optional[str] = None
    rate_per_hour_override: Optional[Number] = None

    def __post_init__(self) -> None:
        weekdays = frozenset(self.training_weekdays)
        for weekday in weekdays:
            _check_weekday(weekday)
        if self.rate_per_hour_override is not None:
            _check_rate(self.rate_per_hour_override, "Rate override")
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "training_weekdays", weekdays)
        object.__setattr__(self, "level", clean_text(self.level))
        object.__setattr__(self, "training_time_slot", clean_text(self.training_time_slot))
        object.__setattr__(self, "training_location", clean_text(self.training_location))

    @property
    def weekday_count(self) -> int:
        """Structural days per week, not the realized session count."""
        return len(self.training_weekdays)


@dataclass(frozen=True)
class Participant:
    """An enrolled swimmer as the calculator sees it."""
    id: str
    name: str
    config: SwimmerConfig = field(default_factory=SwimmerConfig)

    def __post_init__(self) -> None:
        if not str(self.id).strip():
            raise ValueError("Participant id cannot be empty")


@dataclass(frozen=True)
class MonthException:
    """Dates within one billing month on which nobody trains."""
    month: str
    no_training_dates: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "no_training_dates", frozenset(self.no_training_dates))


# ---------------------------------------------------------------------------
# Calculation output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CalendarDay:
    """One date of the billing month with its weekday (0=Sunday)."""
    date: date
    weekday: int

    @property
    def iso(self) -> str:
        return self.date.isoformat()


@dataclass(frozen=True)
class CalculationRow:
    """One swimmer's tuition for one month."""
    participant_id: str
    participant_name: str
    level: str
    training_weekdays: tuple[int, ...]
    session_count: int
    rate_per_hour: Decimal
    tuition: Decimal
    schedule_lines: tuple[str, ...]
    time_slot: str
    location: str
    needs_config: bool

    @property
    def training_weekday_names(self) -> list[str]:
        return [WEEKDAY_ABBREVIATIONS[wd] for wd in self.training_weekdays]


@dataclass
class MonthlyCalculation:
    """
    The result of one calculation call.

    rows are in input order. issues lists everything that was degraded
    rather than failed, so the admin can fix configuration before
    sending invoices.
    """
    month: str
    no_training_dates: list[str] = field(default_factory=list)
    rows: list[CalculationRow] = field(default_factory=list)
    issues: list[CalculationIssue] = field(default_factory=list)

    @property
    def needs_config_count(self) -> int:
        return sum(1 for row in self.rows if row.needs_config)

    @property
    def total_tuition(self) -> Decimal:
        return sum((row.tuition for row in self.rows), Decimal("0.00"))
