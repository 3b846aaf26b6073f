"""
Request-scoped dependencies for the tuition routes.

FastAPI resolves each dependency once per request, so the level, month and
swimmer repositories of one request share a single Snowflake connection and
the calculation sees one consistent snapshot. Tests replace get_settings or
get_db_connection through app.dependency_overrides.
"""

import logging
from typing import Annotated, Generator, Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.tuition.calculator import TuitionCalculator
from ..infrastructure.snowflake.client import (
    MockSnowflakeConnection,
    create_snowflake_connection,
)
from ..infrastructure.snowflake.repositories import (
    LevelConfigRepository,
    MonthConfigRepository,
    SnowflakeConfig,
    SnowflakeConnection,
    SwimmerRepository,
)

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Mock mode keeps one in-memory store for the life of the process.
_mock_snowflake_connection: Optional[MockSnowflakeConnection] = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """Admin key check; 403 when the header is missing or the key is unknown."""
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning("Rejected API key", extra={"key_prefix": api_key[:4]})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API key")

    return api_key


# ---------------------------------------------------------------------------
# Connection and repositories
# ---------------------------------------------------------------------------

def get_mock_connection() -> MockSnowflakeConnection:
    global _mock_snowflake_connection

    if _mock_snowflake_connection is None:
        _mock_snowflake_connection = MockSnowflakeConnection()
    return _mock_snowflake_connection


def get_db_connection(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[SnowflakeConnection, None, None]:
    """One connection per request, closed once the response is sent."""
    if settings.snowflake_mock_mode:
        yield get_mock_connection()
        return

    with create_snowflake_connection(config=SnowflakeConfig.from_settings(settings)) as conn:
        yield conn


def get_level_repository(
    settings: Annotated[Settings, Depends(get_settings)],
    conn: Annotated[SnowflakeConnection, Depends(get_db_connection)],
) -> LevelConfigRepository:
    return LevelConfigRepository(
        conn,
        config_id=settings.tuition_level_config_id,
        fallback_time_slot=settings.tuition_fallback_time_slot,
        fallback_location=settings.tuition_fallback_location,
    )


def get_month_repository(
    conn: Annotated[SnowflakeConnection, Depends(get_db_connection)],
) -> MonthConfigRepository:
    return MonthConfigRepository(conn)


def get_swimmer_repository(
    conn: Annotated[SnowflakeConnection, Depends(get_db_connection)],
) -> SwimmerRepository:
    return SwimmerRepository(conn)


def get_tuition_calculator(
    settings: Annotated[Settings, Depends(get_settings)],
) -> TuitionCalculator:
    """The calculator is stateless; one per request costs nothing."""
    return TuitionCalculator(
        fallback_time_slot=settings.tuition_fallback_time_slot,
        fallback_location=settings.tuition_fallback_location,
    )


# ---------------------------------------------------------------------------
# Annotated shortcuts for route signatures
# ---------------------------------------------------------------------------

AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
LevelRepositoryDep = Annotated[LevelConfigRepository, Depends(get_level_repository)]
MonthRepositoryDep = Annotated[MonthConfigRepository, Depends(get_month_repository)]
SwimmerRepositoryDep = Annotated[SwimmerRepository, Depends(get_swimmer_repository)]
TuitionCalculatorDep = Annotated[TuitionCalculator, Depends(get_tuition_calculator)]
