"""
Repository pattern implementations for Snowflake.

Repositories translate between domain models and database representations.
"""

from .base import SnowflakeConfig, SnowflakeConnection
from .levels import LevelConfigRepository
from .months import MonthConfigRepository
from .swimmers import SwimmerNotFoundError, SwimmerRecord, SwimmerRepository

__all__ = [
    "SnowflakeConfig",
    "SnowflakeConnection",
    "LevelConfigRepository",
    "MonthConfigRepository",
    "SwimmerNotFoundError",
    "SwimmerRecord",
    "SwimmerRepository",
]
