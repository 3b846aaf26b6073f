"""
Shared pieces for Snowflake repositories.

Configuration documents (levels, no-training dates, weekday lists) live in
VARIANT columns as JSON, mirroring the shape the admin UI edits.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class SnowflakeConnection(Protocol):
    """What repositories need from a connection; MockSnowflakeConnection satisfies it too."""
    
    def cursor(self): ...
    def commit(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Where and how to connect; password or key-pair credentials."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_base64: Optional[str] = None
    database: str = "SWIMTUITION"
    schema: str = "TUITION"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None

    @classmethod
    def from_settings(cls, settings) -> "SnowflakeConfig":
        """Connection settings from the application's Settings object."""
        return cls(
            account=settings.snowflake_account,
            user=settings.snowflake_user,
            password=settings.snowflake_password or None,
            private_key_path=settings.snowflake_private_key_path,
            private_key_base64=settings.snowflake_private_key_base64,
            database=settings.snowflake_database,
            schema=settings.snowflake_schema,
            warehouse=settings.snowflake_warehouse,
            role=settings.snowflake_role,
        )


def parse_variant_json(variant_data: Any) -> Any:
    """
    Decode a VARIANT column value.
    
    snowflake-connector-python returns VARIANT as a JSON string, the mock
    connection may hand back either form. Returns None for empty or
    unparseable data.
    """
    if variant_data is None or variant_data == "":
        return None
    
    if isinstance(variant_data, str):
        try:
            return json.loads(variant_data)
        except json.JSONDecodeError as e:
            logger.error(
                "Failed to parse VARIANT JSON string",
                extra={"variant_data": variant_data[:100], "error": str(e)}
            )
            return None
    
    return variant_data


class SnowflakeRepository:
    """Base class holding the connection every repository works on."""
    
    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection
