"""
Snowflake repository for swimmer training assignments.

Swimmer records are owned by the registration side of the product; this
repository only reads them and updates the training fields the tuition
screen edits (weekdays, time slot, location, rate override).
"""

import json
import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional

from src.core.tuition.models import Participant, SwimmerConfig, clean_text

from .base import SnowflakeRepository, parse_variant_json

logger = logging.getLogger(__name__)

SWIMMER_COLUMNS = (
    "swimmer_id",
    "child_first_name",
    "child_last_name",
    "level",
    "is_frozen",
    "training_weekdays",
    "training_time_slot",
    "training_location",
    "rate_per_hour_override",
)

# Columns the tuition screen may write, and whether they hold JSON.
TRAINING_COLUMNS = {
    "training_weekdays": True,
    "training_time_slot": False,
    "training_location": False,
    "rate_per_hour_override": False,
}


class SwimmerNotFoundError(Exception):
    """Raised when a requested swimmer doesn't exist."""
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _is_valid_rate(value: Any) -> bool:
    return _is_number(value) and math.isfinite(value) and value >= 0


def sanitize_weekdays(raw: Any) -> tuple[int, ...]:
    """Keep integers 0..6 from a stored weekday list, sorted and unique."""
    if not isinstance(raw, list):
        return ()
    return tuple(sorted({
        int(n) for n in raw
        if _is_number(n) and n == int(n) and 0 <= n <= 6
    }))


def normalize_training_updates(updates: Mapping[str, Any]) -> dict[str, Any]:
    """
    Turn a partial edit from the admin UI into column values.
    
    Keys that are absent are left untouched. Blank or None time slot,
    location and rate override clear the override.
    
    Raises:
        ValueError: No valid field was supplied, or the rate is not a number.
    """
    normalized: dict[str, Any] = {}
    
    if isinstance(updates.get("training_weekdays"), list):
        normalized["training_weekdays"] = list(sanitize_weekdays(updates["training_weekdays"]))
    
    for key in ("training_time_slot", "training_location"):
        if key in updates:
            value = updates[key]
            normalized[key] = None if value is None else clean_text(str(value))
    
    if "rate_per_hour_override" in updates:
        value = updates["rate_per_hour_override"]
        if value is None or (isinstance(value, str) and not value.strip()):
            normalized["rate_per_hour_override"] = None
        else:
            try:
                rate = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"Rate override {value!r} is not a number")
            if not math.isfinite(rate) or rate < 0:
                raise ValueError(f"Rate override {value!r} must be a finite non-negative number")
            normalized["rate_per_hour_override"] = rate
    
    if not normalized:
        raise ValueError("No valid fields to update")
    
    return normalized


@dataclass
class SwimmerRecord:
    """A swimmer row as stored, with training fields already sanitized."""
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    level: Optional[str] = None
    is_frozen: bool = False
    training_weekdays: tuple[int, ...] = ()
    training_time_slot: Optional[str] = None
    training_location: Optional[str] = None
    rate_per_hour_override: Optional[float] = None
    
    @property
    def display_name(self) -> str:
        """First and last name, or the id when neither is recorded."""
        name = " ".join(part for part in (self.first_name, self.last_name) if part).strip()
        return name or self.id
    
    def to_participant(self) -> Participant:
        return Participant(
            id=self.id,
            name=self.display_name,
            config=SwimmerConfig(
                level=self.level,
                training_weekdays=frozenset(self.training_weekdays),
                training_time_slot=self.training_time_slot,
                training_location=self.training_location,
                rate_per_hour_override=self.rate_per_hour_override,
            ),
        )


class SwimmerRepository(SnowflakeRepository):
    """
    Repository for swimmer training configuration.
    
    Frozen swimmers (paused memberships) are never billed, so list_active
    leaves them out.
    """
    
    def list_active(self) -> list[SwimmerRecord]:
        """Swimmers that are not frozen, ordered by display name."""
        cursor = self._conn.cursor()
        
        try:
            cursor.execute(f"""
                SELECT {", ".join(SWIMMER_COLUMNS)}
                FROM swimmers
                WHERE COALESCE(is_frozen, FALSE) = FALSE
            """)
            
            records = [self._build_record(row) for row in cursor.fetchall()]
            records = [record for record in records if not record.is_frozen]
            records.sort(key=lambda r: (r.display_name.casefold(), r.id))
            return records
        
        finally:
            cursor.close()
    
    def get(self, swimmer_id: str) -> SwimmerRecord:
        cursor = self._conn.cursor()
        
        try:
            cursor.execute(f"""
                SELECT {", ".join(SWIMMER_COLUMNS)}
                FROM swimmers
                WHERE swimmer_id = %s
            """, (swimmer_id,))
            
            row = cursor.fetchone()
            if not row:
                raise SwimmerNotFoundError(f"Swimmer {swimmer_id} not found")
            return self._build_record(row)
        
        finally:
            cursor.close()
    
    def update_training(self, swimmer_id: str, updates: Mapping[str, Any]) -> SwimmerRecord:
        """
        Apply a partial edit of training fields and return the updated record.
        
        Raises:
            ValueError: see normalize_training_updates.
            SwimmerNotFoundError: no swimmer with that id.
        """
        normalized = normalize_training_updates(updates)
        self.get(swimmer_id)
        
        assignments = []
        params: list[Any] = []
        for column, value in normalized.items():
            if TRAINING_COLUMNS[column]:
                assignments.append(f"{column} = PARSE_JSON(%s)")
                params.append(json.dumps(value))
            else:
                assignments.append(f"{column} = %s")
                params.append(value)
        params.append(swimmer_id)
        
        cursor = self._conn.cursor()
        
        try:
            cursor.execute(f"""
                UPDATE swimmers
                SET {", ".join(assignments)}
                WHERE swimmer_id = %s
            """, tuple(params))
            
            self._conn.commit()
            
            logger.info(
                "Swimmer training updated",
                extra={"swimmer_id": swimmer_id, "fields": list(normalized)}
            )
        
        except Exception as e:
            logger.error(
                "Failed to update swimmer training",
                extra={"swimmer_id": swimmer_id, "error": str(e)}
            )
            raise
        finally:
            cursor.close()
        
        return self.get(swimmer_id)
    
    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------
    
    def _build_record(self, row) -> SwimmerRecord:
        values = dict(zip(SWIMMER_COLUMNS, row))
        rate = values["rate_per_hour_override"]
        return SwimmerRecord(
            id=str(values["swimmer_id"]),
            first_name=clean_text(values["child_first_name"]),
            last_name=clean_text(values["child_last_name"]),
            level=clean_text(values["level"]),
            is_frozen=bool(values["is_frozen"]),
            training_weekdays=sanitize_weekdays(parse_variant_json(values["training_weekdays"])),
            training_time_slot=clean_text(values["training_time_slot"]),
            training_location=clean_text(values["training_location"]),
            rate_per_hour_override=float(rate) if _is_valid_rate(rate) else None,
        )
