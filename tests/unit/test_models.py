"""
Unit tests for the tuition domain models.

The models validate themselves on construction, so most of these tests
build one object and check what was accepted, normalized or rejected.
"""

from datetime import date
from decimal import Decimal

import pytest

from src.core.tuition.models import (
    CalculationRow,
    CalendarDay,
    LevelConfig,
    MonthException,
    MonthlyCalculation,
    Participant,
    ScheduleSlot,
    SwimmerConfig,
)


def make_level(**overrides) -> LevelConfig:
    values = dict(
        default_rate_per_hour=40,
        days_per_week=3,
        min_days_per_week=3,
        default_time_slot="7-8PM",
        default_location="Pool A",
    )
    values.update(overrides)
    return LevelConfig(**values)


# ---------------------------------------------------------------------------
# LevelConfig Tests
# ---------------------------------------------------------------------------

class TestLevelConfig:
    """Tests for the LevelConfig value object."""
    
    def test_from_slots_keys_schedule_by_weekday(self):
        """An ordered slot list becomes a weekday lookup."""
        level = LevelConfig.from_slots(
            [ScheduleSlot(1, "7-8PM", "Pool A"), ScheduleSlot(3, "8-9PM", "Pool B")],
            default_rate_per_hour=40,
            days_per_week=2,
            min_days_per_week=2,
            default_time_slot="7-8PM",
            default_location="Pool A",
        )
        
        assert set(level.schedule) == {1, 3}
        assert level.slot_for(3).time_slot == "8-9PM"
        assert level.slot_for(5) is None
    
    def test_duplicate_weekday_keeps_last_entry(self):
        """A weekday listed twice resolves to the later entry."""
        level = LevelConfig.from_slots(
            [ScheduleSlot(1, "7-8PM", "Pool A"), ScheduleSlot(1, "6-7PM", "Pool C")],
            default_rate_per_hour=40,
            days_per_week=2,
            min_days_per_week=2,
            default_time_slot="7-8PM",
            default_location="Pool A",
        )
        
        assert len(level.schedule) == 1
        assert level.slot_for(1) == ScheduleSlot(1, "6-7PM", "Pool C")
    
    def test_rejects_negative_rates(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            make_level(default_rate_per_hour=-1)
        with pytest.raises(ValueError, match="cannot be negative"):
            make_level(reduced_rate_per_hour=-5)
    
    @pytest.mark.parametrize("field", ["default_rate_per_hour", "reduced_rate_per_hour"])
    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), Decimal("Infinity")])
    def test_rejects_non_finite_rates(self, field, value):
        """An infinite or NaN rate would poison every total it touches."""
        with pytest.raises(ValueError, match="finite"):
            make_level(**{field: value})
    
    def test_rejects_min_days_above_days_per_week(self):
        with pytest.raises(ValueError, match="Minimum days"):
            make_level(days_per_week=2, min_days_per_week=3)
    
    def test_rejects_schedule_keyed_by_wrong_weekday(self):
        with pytest.raises(ValueError, match="describes weekday"):
            make_level(schedule={2: ScheduleSlot(4, "7-8PM", "Pool A")})


class TestScheduleSlot:
    
    @pytest.mark.parametrize("weekday", [-1, 7, True, "1"])
    def test_rejects_invalid_weekday(self, weekday):
        with pytest.raises(ValueError, match="Weekday"):
            ScheduleSlot(weekday, "7-8PM", "Pool A")


# ---------------------------------------------------------------------------
# SwimmerConfig Tests
# ---------------------------------------------------------------------------

class TestSwimmerConfig:
    """Tests for per-swimmer training assignment."""
    
    def test_weekdays_become_a_set(self):
        """Lists are accepted and duplicates collapse."""
        config = SwimmerConfig(level="Gold", training_weekdays=[3, 1, 3])
        
        assert config.training_weekdays == frozenset({1, 3})
        assert config.weekday_count == 2
    
    def test_blank_strings_mean_not_set(self):
        """Whitespace-only overrides and level are treated as absent."""
        config = SwimmerConfig(
            level="  ",
            training_time_slot="",
            training_location="  Pool B  ",
        )
        
        assert config.level is None
        assert config.training_time_slot is None
        assert config.training_location == "Pool B"
    
    def test_rejects_weekday_out_of_range(self):
        with pytest.raises(ValueError, match="Weekday"):
            SwimmerConfig(level="Gold", training_weekdays=[1, 7])
    
    def test_zero_rate_override_is_kept(self):
        """0 is a real override, not "unset"."""
        config = SwimmerConfig(level="Gold", rate_per_hour_override=0)
        assert config.rate_per_hour_override == 0
    
    def test_rejects_negative_rate_override(self):
        with pytest.raises(ValueError, match="Rate override"):
            SwimmerConfig(rate_per_hour_override=-10)
    
    @pytest.mark.parametrize("value", [float("inf"), float("nan"), Decimal("-Infinity")])
    def test_rejects_non_finite_rate_override(self, value):
        with pytest.raises(ValueError, match="finite"):
            SwimmerConfig(level="Gold", rate_per_hour_override=value)


class TestParticipantAndMonthException:
    
    def test_participant_requires_id(self):
        with pytest.raises(ValueError, match="id cannot be empty"):
            Participant(id="  ", name="Nobody")
    
    def test_month_exception_accepts_any_iterable(self):
        exception = MonthException("2025-03", ["2025-03-10", "2025-03-10"])
        assert exception.no_training_dates == frozenset({"2025-03-10"})


# ---------------------------------------------------------------------------
# Output Model Tests
# ---------------------------------------------------------------------------

def make_row(**overrides) -> CalculationRow:
    values = dict(
        participant_id="s1",
        participant_name="Alex Kim",
        level="Gold",
        training_weekdays=(1, 3),
        session_count=8,
        rate_per_hour=Decimal("45"),
        tuition=Decimal("360.00"),
        schedule_lines=(),
        time_slot="7-8PM",
        location="Pool A",
        needs_config=False,
    )
    values.update(overrides)
    return CalculationRow(**values)


class TestMonthlyCalculation:
    
    def test_totals_and_needs_config_count(self):
        result = MonthlyCalculation(
            month="2025-03",
            rows=[
                make_row(),
                make_row(participant_id="s2", tuition=Decimal("0.00"), needs_config=True),
                make_row(participant_id="s3", tuition=Decimal("120.50")),
            ],
        )
        
        assert result.total_tuition == Decimal("480.50")
        assert result.needs_config_count == 1
    
    def test_empty_calculation_totals_zero(self):
        assert MonthlyCalculation(month="2025-03").total_tuition == Decimal("0")
    
    def test_row_weekday_names(self):
        assert make_row(training_weekdays=(0, 1, 3)).training_weekday_names == ["Sun", "Mon", "Wed"]


def test_calendar_day_iso():
    assert CalendarDay(date(2025, 3, 1), 6).iso == "2025-03-01"
