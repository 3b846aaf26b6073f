"""
Built-in level catalog and merging of saved level documents.

Levels are stored as one JSON document in the camelCase shape the admin UI
edits. Saved values override the catalog field by field; levels that exist
only in the saved document get conservative fallbacks.
"""

import logging
from typing import Any, Mapping, Optional

from .models import LevelConfig, ScheduleSlot

logger = logging.getLogger(__name__)

FALLBACK_TIME_SLOT = "7-8PM"
FALLBACK_LOCATION = "Mary Wayte Pool"

MARY_WAYTE = "Mary Wayte Pool"


def _slot(weekday: int, time_slot: str, location: str = MARY_WAYTE) -> dict[str, Any]:
    return {"weekday": weekday, "timeSlot": time_slot, "location": location}


DEFAULT_LEVEL_CONFIG: dict[str, dict[str, Any]] = {
    "Bronze Beginner": {
        "defaultRatePerHour": 60,
        "daysPerWeek": 2,
        "minDaysPerWeek": 2,
        "reducedRatePerHour": None,
        "schedule": [_slot(6, "4-5PM", "Redmond Pool")],
        "defaultTimeSlot": "4-5PM",
        "defaultLocation": "Redmond Pool",
    },
    "Bronze Performance": {
        "defaultRatePerHour": 60,
        "daysPerWeek": 2,
        "minDaysPerWeek": 2,
        "reducedRatePerHour": None,
        "schedule": [_slot(1, "7-8PM"), _slot(5, "7-8PM")],
        "defaultTimeSlot": "7-8PM",
        "defaultLocation": MARY_WAYTE,
    },
    "Silver Beginner": {
        "defaultRatePerHour": 50,
        "daysPerWeek": 3,
        "minDaysPerWeek": 3,
        "reducedRatePerHour": 60,  # 2-day swimmers
        "schedule": [_slot(1, "7-8PM"), _slot(3, "7-8PM"), _slot(5, "7-8PM")],
        "defaultTimeSlot": "7-8PM",
        "defaultLocation": MARY_WAYTE,
    },
    "Silver Performance": {
        "defaultRatePerHour": 45,
        "daysPerWeek": 4,
        "minDaysPerWeek": 3,
        "reducedRatePerHour": None,
        "schedule": [
            _slot(1, "8-9PM"), _slot(2, "8-9PM"), _slot(3, "7-8PM"), _slot(4, "8-9PM"),
        ],
        "defaultTimeSlot": "7-8PM",
        "defaultLocation": MARY_WAYTE,
    },
    "Gold Beginner": {
        "defaultRatePerHour": 42,
        "daysPerWeek": 4,
        "minDaysPerWeek": 3,
        "reducedRatePerHour": None,
        "schedule": [_slot(1, "7-8PM"), _slot(3, "7-8PM"), _slot(5, "7-8PM")],
        "defaultTimeSlot": "7-8PM",
        "defaultLocation": MARY_WAYTE,
    },
    "Gold Performance": {
        "defaultRatePerHour": 42,
        "daysPerWeek": 4,
        "minDaysPerWeek": 3,
        "reducedRatePerHour": None,
        "schedule": [_slot(1, "7-8PM"), _slot(3, "7-8PM"), _slot(5, "7-8PM")],
        "defaultTimeSlot": "7-8PM",
        "defaultLocation": MARY_WAYTE,
    },
    "Platinum Beginner": {
        "defaultRatePerHour": 42,
        "daysPerWeek": 4,
        "minDaysPerWeek": 3,
        "reducedRatePerHour": None,
        "schedule": [],
        "defaultTimeSlot": "7-8PM",
        "defaultLocation": MARY_WAYTE,
    },
    "Platinum Performance": {
        "defaultRatePerHour": 42,
        "daysPerWeek": 4,
        "minDaysPerWeek": 3,
        "reducedRatePerHour": None,
        "schedule": [],
        "defaultTimeSlot": "7-8PM",
        "defaultLocation": MARY_WAYTE,
    },
}


def fallback_level_document(
    time_slot: str = FALLBACK_TIME_SLOT,
    location: str = FALLBACK_LOCATION,
) -> dict[str, Any]:
    """Values for a saved level the catalog does not know."""
    return {
        "defaultRatePerHour": 0,
        "daysPerWeek": 2,
        "minDaysPerWeek": 2,
        "reducedRatePerHour": None,
        "schedule": [],
        "defaultTimeSlot": time_slot,
        "defaultLocation": location,
    }


def merge_level_document(saved: Optional[Mapping[str, Any]], base: Mapping[str, Any]) -> dict[str, Any]:
    """
    Overlay one saved level over base.

    A saved key set to None falls back to base, except reducedRatePerHour,
    where an explicit None means "no reduced rate". A schedule that is not a
    list falls back to base.
    """
    saved = saved or {}
    merged = dict(base)
    for key in ("defaultRatePerHour", "daysPerWeek", "minDaysPerWeek", "defaultTimeSlot", "defaultLocation"):
        if saved.get(key) is not None:
            merged[key] = saved[key]
    if "reducedRatePerHour" in saved:
        merged["reducedRatePerHour"] = saved["reducedRatePerHour"]
    if isinstance(saved.get("schedule"), list):
        merged["schedule"] = list(saved["schedule"])
    else:
        merged["schedule"] = list(base.get("schedule") or [])
    return merged


def merge_level_documents(
    saved_levels: Optional[Mapping[str, Any]],
    fallback_time_slot: str = FALLBACK_TIME_SLOT,
    fallback_location: str = FALLBACK_LOCATION,
) -> dict[str, dict[str, Any]]:
    """Catalog levels first (catalog order), then saved-only levels (saved order)."""
    saved_levels = saved_levels or {}
    merged: dict[str, dict[str, Any]] = {}
    for name, base in DEFAULT_LEVEL_CONFIG.items():
        merged[name] = merge_level_document(saved_levels.get(name), base)
    fallback = fallback_level_document(fallback_time_slot, fallback_location)
    for name, saved in saved_levels.items():
        if name not in merged:
            merged[name] = merge_level_document(saved, fallback)
    return merged


def level_from_document(document: Mapping[str, Any]) -> LevelConfig:
    """
    Build a LevelConfig from a merged document.

    Raises ValueError (or TypeError) when the document breaks LevelConfig's
    invariants.
    """
    slots = [
        ScheduleSlot(
            weekday=int(entry["weekday"]),
            time_slot=str(entry.get("timeSlot") or document["defaultTimeSlot"]),
            location=str(entry.get("location") or document["defaultLocation"]),
        )
        for entry in document.get("schedule") or []
    ]
    return LevelConfig.from_slots(
        slots,
        default_rate_per_hour=document["defaultRatePerHour"],
        days_per_week=int(document["daysPerWeek"]),
        min_days_per_week=int(document["minDaysPerWeek"]),
        reduced_rate_per_hour=document.get("reducedRatePerHour"),
        default_time_slot=str(document["defaultTimeSlot"]),
        default_location=str(document["defaultLocation"]),
    )


def build_levels(
    saved_levels: Optional[Mapping[str, Any]],
    fallback_time_slot: str = FALLBACK_TIME_SLOT,
    fallback_location: str = FALLBACK_LOCATION,
) -> dict[str, LevelConfig]:
    """
    Merge saved levels over the catalog and convert them to LevelConfigs.

    A level whose document is invalid is left out and logged; swimmers on it
    then surface as invalid level references instead of failing the month.
    """
    levels: dict[str, LevelConfig] = {}
    documents = merge_level_documents(saved_levels, fallback_time_slot, fallback_location)
    for name, document in documents.items():
        try:
            levels[name] = level_from_document(document)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(
                "Skipping invalid level configuration",
                extra={"level": name, "error": str(e)}
            )
    return levels
