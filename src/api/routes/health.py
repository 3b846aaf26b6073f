"""
Liveness and readiness probes.

/health answers as long as the process runs. /health/ready additionally
proves the service can calculate: settings are complete and the level
configuration can be loaded from the store and yields at least one level.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ... import __version__
from ...config.settings import Settings
from ...infrastructure.snowflake.repositories import LevelConfigRepository
from ..dependencies import LevelRepositoryDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    name: str
    status: str  # "ok" or "error"
    error: Optional[str] = None
    detail: Optional[str] = None


class ReadinessResponse(BaseModel):
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def _check_configuration(settings: Settings) -> ReadinessCheck:
    missing = settings.validate_required_fields()
    if missing:
        return ReadinessCheck(
            name="configuration",
            status="error",
            error=f"Missing required fields: {', '.join(missing)}",
        )
    return ReadinessCheck(name="configuration", status="ok")


def _check_levels(settings: Settings, levels_repo: LevelConfigRepository) -> list[ReadinessCheck]:
    """One read of the level document covers both the store and the catalog."""
    try:
        levels = levels_repo.get_levels()
    except Exception as e:
        logger.error("Level configuration unreadable", extra={"error": str(e)})
        return [ReadinessCheck(name="database", status="error", error=str(e))]

    database = ReadinessCheck(
        name="database",
        status="ok",
        detail="mock mode" if settings.snowflake_mock_mode else None,
    )
    if not levels:
        return [database, ReadinessCheck(
            name="level_config",
            status="error",
            error="No valid levels configured",
        )]
    return [database, ReadinessCheck(
        name="level_config",
        status="ok",
        detail=f"{len(levels)} levels",
    )]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """Never touches Snowflake."""
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "service": settings.api_title,
            "level_config_id": settings.tuition_level_config_id,
            "mock_mode": {"snowflake": settings.snowflake_mock_mode},
        },
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness probe",
    description="200 when tuition can be calculated, 503 otherwise.",
    responses={503: {"description": "Service not ready", "model": ReadinessResponse}},
)
async def readiness_check(settings: SettingsDep, levels_repo: LevelRepositoryDep):
    checks = [_check_configuration(settings), *_check_levels(settings, levels_repo)]
    ready = all(check.status == "ok" for check in checks)
    response = ReadinessResponse(
        status="ready" if ready else "not_ready",
        version=__version__,
        checks=checks,
    )

    if ready:
        return response

    logger.warning(
        "Not ready",
        extra={"failed": [c.name for c in checks if c.status != "ok"]}
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response.model_dump(),
    )
