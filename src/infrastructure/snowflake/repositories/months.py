"""
Snowflake repository for per-month no-training dates.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Iterable

from src.core.tuition.closures import is_date_string
from src.core.tuition.models import MonthException

from .base import SnowflakeRepository, parse_variant_json

logger = logging.getLogger(__name__)


class MonthConfigRepository(SnowflakeRepository):
    """One row per billing month, keyed by "YYYY-MM"."""
    
    def get_month_exception(self, month: str) -> MonthException:
        """
        Load the month's no-training dates.
        
        A month nobody has configured has no exceptions. Stored values are
        passed through as-is so the calculator can report malformed ones.
        """
        cursor = self._conn.cursor()
        
        try:
            cursor.execute("""
                SELECT no_training_dates
                FROM tuition_month_config
                WHERE month = %s
            """, (month,))
            
            row = cursor.fetchone()
            dates = parse_variant_json(row[0]) if row else None
            if not isinstance(dates, list):
                dates = []
            
            return MonthException(
                month=month,
                no_training_dates=frozenset(str(d) for d in dates if d is not None),
            )
        
        finally:
            cursor.close()
    
    def save_no_training_dates(self, month: str, dates: Iterable) -> list[str]:
        """
        Replace the month's no-training dates.
        
        Only YYYY-MM-DD shaped strings are kept. Returns what was stored,
        sorted and without duplicates.
        """
        cleaned = sorted({d for d in dates if is_date_string(d)})
        dates_json = json.dumps(cleaned)
        now = datetime.now(timezone.utc)
        cursor = self._conn.cursor()
        
        try:
            cursor.execute("""
                MERGE INTO tuition_month_config AS target
                USING (SELECT %s AS month) AS source
                ON target.month = source.month
                WHEN MATCHED THEN UPDATE SET
                    no_training_dates = PARSE_JSON(%s),
                    updated_at = %s
                WHEN NOT MATCHED THEN INSERT (
                    month, no_training_dates, updated_at
                ) VALUES (%s, PARSE_JSON(%s), %s)
            """, (
                month,
                dates_json, now,
                month, dates_json, now,
            ))
            
            self._conn.commit()
            
            logger.info(
                "Month configuration saved",
                extra={"month": month, "no_training_dates": len(cleaned)}
            )
            
            return cleaned
        
        except Exception as e:
            logger.error(
                "Failed to save month configuration",
                extra={"month": month, "error": str(e)}
            )
            raise
        finally:
            cursor.close()
