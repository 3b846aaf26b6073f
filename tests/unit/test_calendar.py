"""
Tests for month expansion and no-training date handling.
"""

from datetime import date

import pytest

from src.core.tuition.closures import (
    filter_no_training_dates,
    is_date_string,
    validate_no_training_dates,
)
from src.core.tuition.dates import expand_month, parse_month, weekday_index
from src.core.tuition.models import InvalidMonth, IssueKind


# ---------------------------------------------------------------------------
# Month Parsing
# ---------------------------------------------------------------------------

class TestParseMonth:
    
    def test_valid_month(self):
        assert parse_month("2025-03") == (2025, 3)
    
    @pytest.mark.parametrize("month", [
        "2025-13",
        "2025-00",
        "2025-3",
        "25-03",
        "March 2025",
        "2025-03-01",
        "0000-01",
        "2025-03\n",
        " 2025-03",
        "\uff12\uff10\uff12\uff15-\uff10\uff13",
        "",
        None,
        202503,
    ])
    def test_rejects_malformed_months(self, month):
        with pytest.raises(InvalidMonth):
            parse_month(month)


# ---------------------------------------------------------------------------
# Calendar Expansion
# ---------------------------------------------------------------------------

class TestExpandMonth:
    """Every date of the month, in order, with a Sunday-based weekday."""
    
    @pytest.mark.parametrize("month,expected_days", [
        ("2025-01", 31),
        ("2025-02", 28),
        ("2024-02", 29),
        ("2000-02", 29),
        ("1900-02", 28),
        ("2025-04", 30),
        ("2025-12", 31),
    ])
    def test_day_count(self, month, expected_days):
        assert len(expand_month(month)) == expected_days
    
    def test_dates_are_ascending_and_complete(self):
        days = expand_month("2024-02")
        
        assert days[0].date == date(2024, 2, 1)
        assert days[-1].date == date(2024, 2, 29)
        assert [d.date.day for d in days] == list(range(1, 30))
    
    def test_weekdays_start_on_sunday(self):
        """2025-03-01 is a Saturday, 2025-03-02 a Sunday."""
        days = expand_month("2025-03")
        
        assert days[0].weekday == 6
        assert days[1].weekday == 0
        assert days[2].weekday == 1
    
    def test_leap_day_weekday(self):
        """2024-02-29 was a Thursday."""
        assert expand_month("2024-02")[-1].weekday == 4
    
    def test_weekday_index_matches_iso_shift(self):
        assert weekday_index(date(2025, 3, 9)) == 0   # Sunday
        assert weekday_index(date(2025, 3, 15)) == 6  # Saturday


# ---------------------------------------------------------------------------
# No-Training Dates
# ---------------------------------------------------------------------------

class TestValidateNoTrainingDates:
    
    def test_accepts_dates_in_month(self):
        accepted, issues = validate_no_training_dates("2025-03", ["2025-03-10", "2025-03-31"])
        
        assert accepted == frozenset({"2025-03-10", "2025-03-31"})
        assert issues == []
    
    def test_malformed_and_foreign_dates_become_issues(self):
        """Bad entries are reported and ignored, never fatal."""
        accepted, issues = validate_no_training_dates(
            "2025-03",
            ["2025-03-10", "2025-03-32", "2025-04-01", "holiday", 17],
        )
        
        assert accepted == frozenset({"2025-03-10"})
        assert [issue.value for issue in issues] == ["2025-03-32", "2025-04-01", "holiday", "17"]
        assert all(issue.kind is IssueKind.MALFORMED_EXCEPTION for issue in issues)
        assert "outside 2025-03" in issues[1].message
    
    def test_february_30_is_not_a_date(self):
        accepted, issues = validate_no_training_dates("2025-02", ["2025-02-30"])
        
        assert accepted == frozenset()
        assert "not a valid calendar date" in issues[0].message
    
    def test_is_date_string_checks_shape_only(self):
        assert is_date_string("2025-02-30")
        assert not is_date_string("2025-2-3")
        assert not is_date_string(None)
        assert not is_date_string("2025-03-10\n")
        assert not is_date_string("\uff12\uff10\uff12\uff15-03-10")


class TestFilterNoTrainingDates:
    
    def test_removes_exact_matches_and_keeps_order(self):
        days = expand_month("2025-03")
        
        remaining = filter_no_training_dates(days, {"2025-03-10", "2025-03-01"})
        
        assert len(remaining) == 29
        assert remaining[0].iso == "2025-03-02"
        assert "2025-03-10" not in {d.iso for d in remaining}
    
    def test_dates_outside_month_change_nothing(self):
        days = expand_month("2025-03")
        assert filter_no_training_dates(days, {"2025-04-01"}) == days
