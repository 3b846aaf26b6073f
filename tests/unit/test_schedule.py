"""
Tests for schedule resolution and rate selection.
"""

from decimal import Decimal

import pytest

from src.core.tuition.models import LevelConfig, ScheduleSlot, SwimmerConfig
from src.core.tuition.rates import resolve_rate
from src.core.tuition.schedule import first_defined, resolve_schedule, resolve_slot


@pytest.fixture
def level():
    """Mondays have their own slot; other weekdays use the level defaults."""
    return LevelConfig.from_slots(
        [ScheduleSlot(1, "7-8PM", "Pool A")],
        default_rate_per_hour=40,
        reduced_rate_per_hour=45,
        days_per_week=3,
        min_days_per_week=3,
        default_time_slot="6-7PM",
        default_location="Pool B",
    )


# ---------------------------------------------------------------------------
# Schedule Precedence
# ---------------------------------------------------------------------------

class TestResolveSlot:
    """Swimmer override > level weekday slot > level default, per field."""
    
    def test_level_slot_beats_level_default(self, level):
        swimmer = SwimmerConfig(level="Gold", training_weekdays={1, 2})
        
        assert resolve_slot(level, swimmer, 1) == ScheduleSlot(1, "7-8PM", "Pool A")
        assert resolve_slot(level, swimmer, 2) == ScheduleSlot(2, "6-7PM", "Pool B")
    
    def test_time_override_leaves_location_to_level(self, level):
        swimmer = SwimmerConfig(level="Gold", training_weekdays={1, 2}, training_time_slot="5-6PM")
        
        assert resolve_slot(level, swimmer, 1) == ScheduleSlot(1, "5-6PM", "Pool A")
        assert resolve_slot(level, swimmer, 2) == ScheduleSlot(2, "5-6PM", "Pool B")
    
    def test_location_override_leaves_time_to_level(self, level):
        swimmer = SwimmerConfig(level="Gold", training_weekdays={1}, training_location="Pool Z")
        
        assert resolve_slot(level, swimmer, 1) == ScheduleSlot(1, "7-8PM", "Pool Z")


class TestResolveSchedule:
    
    def test_maps_weekdays_in_ascending_order(self, level):
        swimmer = SwimmerConfig(level="Gold", training_weekdays=[5, 1, 3])
        
        schedule = resolve_schedule(level, swimmer)
        
        assert list(schedule) == [1, 3, 5]
    
    def test_missing_level_resolves_nothing(self):
        swimmer = SwimmerConfig(level="Gold", training_weekdays={1})
        assert resolve_schedule(None, swimmer) == {}
    
    def test_first_defined_skips_only_none(self):
        assert first_defined(None, "", "x") == ""
        assert first_defined(None, None) is None


# ---------------------------------------------------------------------------
# Rate Policy
# ---------------------------------------------------------------------------

class TestResolveRate:
    
    def test_override_wins(self, level):
        swimmer = SwimmerConfig(level="Gold", rate_per_hour_override=55)
        assert resolve_rate(swimmer, level, 1) == Decimal("55")
    
    def test_zero_override_wins(self, level):
        swimmer = SwimmerConfig(level="Gold", rate_per_hour_override=0)
        assert resolve_rate(swimmer, level, 1) == Decimal("0")
    
    def test_reduced_rate_below_minimum_days(self, level):
        swimmer = SwimmerConfig(level="Gold")
        assert resolve_rate(swimmer, level, 2) == Decimal("45")
    
    def test_default_rate_at_minimum_days(self, level):
        swimmer = SwimmerConfig(level="Gold")
        assert resolve_rate(swimmer, level, 3) == Decimal("40")
    
    def test_no_reduced_rate_means_default(self):
        level = LevelConfig(
            default_rate_per_hour=42.5,
            days_per_week=2,
            min_days_per_week=2,
            default_time_slot="7-8PM",
            default_location="Pool A",
        )
        
        assert resolve_rate(SwimmerConfig(level="X"), level, 1) == Decimal("42.5")
    
    def test_missing_level_is_zero(self):
        assert resolve_rate(SwimmerConfig(), None, 2) == Decimal("0")
