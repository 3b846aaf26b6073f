"""
Tests for the built-in level catalog and saved-document merging.
"""

from decimal import Decimal

from src.core.tuition.defaults import (
    DEFAULT_LEVEL_CONFIG,
    FALLBACK_LOCATION,
    build_levels,
    level_from_document,
    merge_level_document,
    merge_level_documents,
)
from src.core.tuition.models import ScheduleSlot


class TestCatalog:
    
    def test_every_catalog_level_builds(self):
        levels = build_levels(None)
        
        assert list(levels) == list(DEFAULT_LEVEL_CONFIG)
    
    def test_silver_beginner_two_day_swimmers_pay_reduced_rate(self):
        level = build_levels(None)["Silver Beginner"]
        
        assert level.reduced_rate_per_hour == 60
        assert level.min_days_per_week == 3
    
    def test_catalog_schedule_becomes_slots(self):
        level = build_levels(None)["Silver Performance"]
        
        assert level.slot_for(1) == ScheduleSlot(1, "8-9PM", "Mary Wayte Pool")
        assert level.slot_for(3).time_slot == "7-8PM"


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------

class TestMergeLevelDocument:
    
    def test_saved_fields_override_base(self):
        base = DEFAULT_LEVEL_CONFIG["Gold Beginner"]
        
        merged = merge_level_document({"defaultRatePerHour": 50}, base)
        
        assert merged["defaultRatePerHour"] == 50
        assert merged["daysPerWeek"] == base["daysPerWeek"]
        assert merged["schedule"] == base["schedule"]
    
    def test_none_falls_back_except_reduced_rate(self):
        base = DEFAULT_LEVEL_CONFIG["Silver Beginner"]
        
        merged = merge_level_document(
            {"defaultRatePerHour": None, "reducedRatePerHour": None},
            base,
        )
        
        assert merged["defaultRatePerHour"] == 50
        assert merged["reducedRatePerHour"] is None
    
    def test_empty_saved_schedule_replaces_base(self):
        base = DEFAULT_LEVEL_CONFIG["Gold Beginner"]
        assert merge_level_document({"schedule": []}, base)["schedule"] == []
    
    def test_non_list_schedule_is_ignored(self):
        base = DEFAULT_LEVEL_CONFIG["Gold Beginner"]
        assert merge_level_document({"schedule": "weekly"}, base)["schedule"] == base["schedule"]
    
    def test_merge_does_not_mutate_catalog(self):
        before = [dict(slot) for slot in DEFAULT_LEVEL_CONFIG["Gold Beginner"]["schedule"]]
        
        merge_level_documents({"Gold Beginner": {"schedule": []}})
        
        assert DEFAULT_LEVEL_CONFIG["Gold Beginner"]["schedule"] == before


class TestMergeLevelDocuments:
    
    def test_saved_only_level_gets_fallbacks(self):
        merged = merge_level_documents(
            {"Masters": {"defaultRatePerHour": 30}},
            fallback_time_slot="6-7AM",
        )
        masters = merged["Masters"]
        
        assert list(merged)[-1] == "Masters"
        assert masters["defaultRatePerHour"] == 30
        assert masters["daysPerWeek"] == 2
        assert masters["defaultTimeSlot"] == "6-7AM"
        assert masters["defaultLocation"] == FALLBACK_LOCATION
        assert masters["schedule"] == []


# ---------------------------------------------------------------------------
# Building LevelConfigs
# ---------------------------------------------------------------------------

class TestBuildLevels:
    
    def test_invalid_level_is_skipped(self):
        """minDaysPerWeek falls back to 2, which exceeds one day a week."""
        levels = build_levels({"Masters": {"daysPerWeek": 1}, "Gold Beginner": {"defaultRatePerHour": 44}})
        
        assert "Masters" not in levels
        assert levels["Gold Beginner"].default_rate_per_hour == 44
    
    def test_slot_without_time_uses_level_default(self):
        level = level_from_document({
            "defaultRatePerHour": 40.5,
            "daysPerWeek": 2,
            "minDaysPerWeek": 1,
            "reducedRatePerHour": None,
            "schedule": [{"weekday": 2}],
            "defaultTimeSlot": "5-6PM",
            "defaultLocation": "Pool C",
        })
        
        assert level.slot_for(2) == ScheduleSlot(2, "5-6PM", "Pool C")
        assert Decimal(str(level.default_rate_per_hour)) == Decimal("40.5")
