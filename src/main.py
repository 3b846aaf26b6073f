"""
SwimTuition API application.

create_app() wires settings, CORS, routers and error handlers; `app` is the
instance uvicorn imports.

Local development against the in-memory store:
    SNOWFLAKE_MOCK_MODE=true uvicorn src.main:app --reload

Production:
    gunicorn src.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.routes import health, tuition
from .config.settings import get_settings
from .core.tuition.models import TuitionError

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)

API_DESCRIPTION = """
Monthly tuition and training schedules for a youth swim program.

Every tuition endpoint needs an `X-API-Key` header.

1. Levels: `GET/PUT /api/v1/tuition/level-config`
2. No-training dates: `GET/PUT /api/v1/tuition/month-config?month=YYYY-MM`
3. Swimmer weekdays and overrides: `GET /api/v1/tuition/swimmers`,
   `PATCH /api/v1/tuition/swimmers/{id}`
4. Calculation: `GET /api/v1/tuition/calculate?month=YYYY-MM`,
   CSV via `GET /api/v1/tuition/calculate/export?month=YYYY-MM`
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        "SwimTuition API starting",
        extra={
            "version": __version__,
            "level_config_id": settings.tuition_level_config_id,
            "mock_mode": {"snowflake": settings.snowflake_mock_mode},
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        # Keep serving; /health/ready reports not_ready until this is fixed.
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("SwimTuition API shutting down")


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TuitionError)
    async def tuition_error_handler(request: Request, exc: TuitionError):
        """Caller errors the routes did not translate themselves."""
        logger.warning(
            "Rejected tuition request",
            extra={"path": request.url.path, "error": str(exc)}
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        """Log everything server-side; the client only sees a generic 500."""
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error. Please contact support if this persists."},
        )


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        description=API_DESCRIPTION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "PUT", "PATCH"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(tuition.router, prefix="/api/v1/tuition", tags=["Tuition"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": settings.api_title,
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    _register_exception_handlers(app)

    logger.info(
        "FastAPI application created",
        extra={"title": settings.api_title, "version": __version__}
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=get_settings().log_level.lower(),
    )
