"""
Snowflake repository for the level configuration document.

All levels are stored together in one VARIANT document so an administrator's
edit of the whole table is saved atomically, and so a calculation reads a
single consistent snapshot of every level.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from src.core.tuition.defaults import (
    FALLBACK_LOCATION,
    FALLBACK_TIME_SLOT,
    build_levels,
    merge_level_documents,
)
from src.core.tuition.models import LevelConfig

from .base import SnowflakeConnection, SnowflakeRepository, parse_variant_json

logger = logging.getLogger(__name__)


class LevelConfigRepository(SnowflakeRepository):
    """
    Reads and writes the saved level configuration.
    
    Reads always merge the saved document over the built-in catalog, so a
    fresh database still calculates with sensible levels.
    """
    
    def __init__(
        self,
        connection: SnowflakeConnection,
        config_id: str = "default",
        fallback_time_slot: str = FALLBACK_TIME_SLOT,
        fallback_location: str = FALLBACK_LOCATION,
    ) -> None:
        super().__init__(connection)
        self._config_id = config_id
        self._fallback_time_slot = fallback_time_slot
        self._fallback_location = fallback_location
    
    def get_raw_levels(self) -> dict[str, Any]:
        """The saved document exactly as stored ({} when nothing is saved)."""
        cursor = self._conn.cursor()
        
        try:
            cursor.execute("""
                SELECT levels
                FROM tuition_level_config
                WHERE config_id = %s
            """, (self._config_id,))
            
            row = cursor.fetchone()
            if not row:
                return {}
            
            levels = parse_variant_json(row[0])
            if not isinstance(levels, dict):
                logger.warning(
                    "Saved level configuration is not an object",
                    extra={"config_id": self._config_id, "type": type(levels).__name__}
                )
                return {}
            return levels
        
        finally:
            cursor.close()
    
    def get_level_documents(self) -> dict[str, dict[str, Any]]:
        """Saved levels merged over the catalog, in the admin UI's shape."""
        return merge_level_documents(
            self.get_raw_levels(),
            self._fallback_time_slot,
            self._fallback_location,
        )
    
    def get_levels(self) -> dict[str, LevelConfig]:
        """Saved levels merged over the catalog, as domain objects."""
        return build_levels(
            self.get_raw_levels(),
            self._fallback_time_slot,
            self._fallback_location,
        )
    
    def save_levels(self, levels: Mapping[str, Any]) -> None:
        """
        Replace the saved level document.
        
        Callers validate the shape; this method only persists it.
        """
        cursor = self._conn.cursor()
        levels_json = json.dumps(levels)
        now = datetime.now(timezone.utc)
        
        try:
            cursor.execute("""
                MERGE INTO tuition_level_config AS target
                USING (SELECT %s AS config_id) AS source
                ON target.config_id = source.config_id
                WHEN MATCHED THEN UPDATE SET
                    levels = PARSE_JSON(%s),
                    updated_at = %s
                WHEN NOT MATCHED THEN INSERT (
                    config_id, levels, updated_at
                ) VALUES (%s, PARSE_JSON(%s), %s)
            """, (
                self._config_id,
                levels_json, now,
                self._config_id, levels_json, now,
            ))
            
            self._conn.commit()
            
            logger.info(
                "Level configuration saved",
                extra={"config_id": self._config_id, "levels": len(levels)}
            )
        
        except Exception as e:
            logger.error(
                "Failed to save level configuration",
                extra={"config_id": self._config_id, "error": str(e)}
            )
            raise
        finally:
            cursor.close()
