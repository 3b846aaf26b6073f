"""
Monthly tuition API endpoints.

The admin tuition screen works in three steps:
1. Maintain level configuration (rates, days, weekly schedule)
2. Mark the month's no-training dates and each swimmer's weekdays
3. Calculate the month and copy/export each family's amount and schedule

Every endpoint is admin-only. Calculation reads levels, the month's
exceptions and the roster on one connection, then hands the snapshot to the
pure TuitionCalculator.
"""

import logging
from decimal import Decimal
from typing import Any, Optional, Union

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import Response
from pydantic import BaseModel, Field, model_validator

from ...core.tuition.dates import parse_month
from ...core.tuition.export import format_amount_and_schedule, format_schedule_text, rows_to_csv
from ...core.tuition.models import (
    CalculationIssue,
    CalculationRow,
    InvalidInput,
    InvalidMonth,
    MonthlyCalculation,
)
from ...infrastructure.snowflake.repositories import SwimmerNotFoundError, SwimmerRecord
from ..dependencies import (
    AuthenticatedUser,
    LevelRepositoryDep,
    MonthRepositoryDep,
    SwimmerRepositoryDep,
    TuitionCalculatorDep,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class ScheduleSlotModel(BaseModel):
    """Time and location of a level on one weekday."""
    weekday: int = Field(ge=0, le=6, description="0=Sunday .. 6=Saturday")
    time_slot: str = Field(min_length=1, description="Display time, e.g. 7-8PM")
    location: str = Field(min_length=1, description="Pool name")


class LevelConfigModel(BaseModel):
    """Rate policy and weekly schedule of one level."""
    default_rate_per_hour: float = Field(ge=0, allow_inf_nan=False, description="Standard hourly rate")
    days_per_week: int = Field(ge=0, le=7, description="Expected sessions per week")
    min_days_per_week: int = Field(
        ge=0,
        le=7,
        description="Swimmers training fewer weekdays than this pay the reduced rate",
    )
    reduced_rate_per_hour: Optional[float] = Field(
        None,
        ge=0,
        allow_inf_nan=False,
        description="Rate for swimmers below the minimum days (none if not offered)",
    )
    schedule: list[ScheduleSlotModel] = Field(
        default_factory=list,
        description="Per-weekday time and location; a repeated weekday keeps the last entry",
    )
    default_time_slot: str = Field(min_length=1, description="Used for weekdays not in schedule")
    default_location: str = Field(min_length=1, description="Used for weekdays not in schedule")
    
    @model_validator(mode="after")
    def check_min_days(self) -> "LevelConfigModel":
        if self.min_days_per_week > self.days_per_week:
            raise ValueError("min_days_per_week cannot exceed days_per_week")
        return self
    
    def to_document(self) -> dict[str, Any]:
        """The camelCase shape stored in Snowflake."""
        return {
            "defaultRatePerHour": self.default_rate_per_hour,
            "daysPerWeek": self.days_per_week,
            "minDaysPerWeek": self.min_days_per_week,
            "reducedRatePerHour": self.reduced_rate_per_hour,
            "schedule": [
                {"weekday": s.weekday, "timeSlot": s.time_slot, "location": s.location}
                for s in self.schedule
            ],
            "defaultTimeSlot": self.default_time_slot,
            "defaultLocation": self.default_location,
        }
    
    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "LevelConfigModel":
        return cls(
            default_rate_per_hour=document["defaultRatePerHour"],
            days_per_week=document["daysPerWeek"],
            min_days_per_week=document["minDaysPerWeek"],
            reduced_rate_per_hour=document.get("reducedRatePerHour"),
            schedule=[
                ScheduleSlotModel(
                    weekday=s["weekday"],
                    time_slot=s.get("timeSlot") or document["defaultTimeSlot"],
                    location=s.get("location") or document["defaultLocation"],
                )
                for s in document.get("schedule") or []
            ],
            default_time_slot=document["defaultTimeSlot"],
            default_location=document["defaultLocation"],
        )


class LevelConfigPayload(BaseModel):
    """All levels, keyed by level name."""
    levels: dict[str, LevelConfigModel] = Field(description="Level name -> configuration")


class MonthConfigPayload(BaseModel):
    """No-training dates of one month."""
    month: str = Field(description="Billing month as YYYY-MM")
    no_training_dates: list[Any] = Field(
        default_factory=list,
        description="Dates as YYYY-MM-DD; other values are dropped on save",
    )


class MonthConfigResponse(BaseModel):
    month: str
    no_training_dates: list[str]


class SwimmerItem(BaseModel):
    """A swimmer's training configuration as the editor shows it."""
    id: str
    swimmer_name: str
    level: str
    training_weekdays: list[int]
    training_time_slot: Optional[str] = None
    training_location: Optional[str] = None
    rate_per_hour_override: Optional[float] = None
    
    @classmethod
    def from_record(cls, record: SwimmerRecord) -> "SwimmerItem":
        return cls(
            id=record.id,
            swimmer_name=record.display_name,
            level=record.level or "",
            training_weekdays=list(record.training_weekdays),
            training_time_slot=record.training_time_slot,
            training_location=record.training_location,
            rate_per_hour_override=record.rate_per_hour_override,
        )


class SwimmersResponse(BaseModel):
    swimmers: list[SwimmerItem]


class SwimmerTrainingUpdate(BaseModel):
    """Partial edit; omitted fields are left unchanged, null clears an override."""
    training_weekdays: Optional[list[int]] = None
    training_time_slot: Optional[str] = None
    training_location: Optional[str] = None
    rate_per_hour_override: Optional[Union[float, str]] = None


class CalculationRowModel(BaseModel):
    """One swimmer's tuition for the month."""
    swimmer_id: str
    swimmer_name: str
    level: str
    training_weekdays: list[int]
    training_weekday_names: list[str]
    session_count: int
    rate_per_hour: Decimal = Field(description="Exact hourly rate, serialized as a string")
    tuition: Decimal = Field(description="Amount with two decimals, serialized as a string")
    schedule_lines: list[str]
    schedule_text: str = Field(description="Schedule ready to paste into an email")
    amount_and_schedule_text: str = Field(description="Amount followed by the schedule")
    time_slot: str
    location: str
    needs_config: bool
    
    @classmethod
    def from_row(cls, row: CalculationRow) -> "CalculationRowModel":
        return cls(
            swimmer_id=row.participant_id,
            swimmer_name=row.participant_name,
            level=row.level,
            training_weekdays=list(row.training_weekdays),
            training_weekday_names=row.training_weekday_names,
            session_count=row.session_count,
            rate_per_hour=row.rate_per_hour,
            tuition=row.tuition,
            schedule_lines=list(row.schedule_lines),
            schedule_text=format_schedule_text(row),
            amount_and_schedule_text=format_amount_and_schedule(row),
            time_slot=row.time_slot,
            location=row.location,
            needs_config=row.needs_config,
        )


class IssueModel(BaseModel):
    """Something the admin should fix; it did not stop the calculation."""
    kind: str
    message: str
    swimmer_id: Optional[str] = None
    value: Optional[str] = None
    
    @classmethod
    def from_issue(cls, issue: CalculationIssue) -> "IssueModel":
        return cls(
            kind=issue.kind.value,
            message=issue.message,
            swimmer_id=issue.participant_id,
            value=issue.value,
        )


class CalculationResponse(BaseModel):
    month: str
    no_training_dates: list[str]
    rows: list[CalculationRowModel]
    issues: list[IssueModel]
    needs_config_count: int
    total_tuition: Decimal


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_month(month: str) -> str:
    try:
        parse_month(month)
    except InvalidMonth as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return month


def _run_calculation(
    month: str,
    calculator: TuitionCalculatorDep,
    levels_repo: LevelRepositoryDep,
    months_repo: MonthRepositoryDep,
    swimmers_repo: SwimmerRepositoryDep,
) -> MonthlyCalculation:
    _require_month(month)
    
    levels = levels_repo.get_levels()
    month_exception = months_repo.get_month_exception(month)
    participants = [record.to_participant() for record in swimmers_repo.list_active()]
    
    try:
        return calculator.calculate(month, participants, levels, month_exception)
    except InvalidInput as e:
        logger.warning(
            "Tuition calculation rejected",
            extra={"month": month, "error": str(e)}
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/calculate",
    response_model=CalculationResponse,
    status_code=status.HTTP_200_OK,
    summary="Calculate monthly tuition",
    description="Sessions, rate, tuition and schedule for every active swimmer in a month",
)
async def calculate_tuition(
    api_key: AuthenticatedUser,
    calculator: TuitionCalculatorDep,
    levels_repo: LevelRepositoryDep,
    months_repo: MonthRepositoryDep,
    swimmers_repo: SwimmerRepositoryDep,
    month: str = Query(description="Billing month as YYYY-MM"),
) -> CalculationResponse:
    """
    Calculate one month of tuition.
    
    Swimmers without a level or weekdays are still returned, flagged
    needs_config with zero tuition, so the admin can fix them before
    invoicing. The issues list explains why each one was flagged.
    """
    logger.info("Calculating tuition", extra={"month": month})
    
    result = _run_calculation(month, calculator, levels_repo, months_repo, swimmers_repo)
    
    return CalculationResponse(
        month=result.month,
        no_training_dates=result.no_training_dates,
        rows=[CalculationRowModel.from_row(row) for row in result.rows],
        issues=[IssueModel.from_issue(issue) for issue in result.issues],
        needs_config_count=result.needs_config_count,
        total_tuition=result.total_tuition,
    )


@router.get(
    "/calculate/export",
    status_code=status.HTTP_200_OK,
    summary="Export monthly tuition as CSV",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_tuition(
    api_key: AuthenticatedUser,
    calculator: TuitionCalculatorDep,
    levels_repo: LevelRepositoryDep,
    months_repo: MonthRepositoryDep,
    swimmers_repo: SwimmerRepositoryDep,
    month: str = Query(description="Billing month as YYYY-MM"),
) -> Response:
    """Same calculation as /calculate, one CSV line per swimmer."""
    result = _run_calculation(month, calculator, levels_repo, months_repo, swimmers_repo)
    
    return Response(
        content=rows_to_csv(result.rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="tuition-{month}.csv"'},
    )


@router.get(
    "/level-config",
    response_model=LevelConfigPayload,
    summary="Get level configuration",
    description="Saved levels merged over the built-in catalog",
)
async def get_level_config(
    api_key: AuthenticatedUser,
    levels_repo: LevelRepositoryDep,
) -> LevelConfigPayload:
    documents = levels_repo.get_level_documents()
    levels = {}
    for name, document in documents.items():
        try:
            levels[name] = LevelConfigModel.from_document(document)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(
                "Skipping invalid saved level",
                extra={"level": name, "error": str(e)}
            )
    return LevelConfigPayload(levels=levels)


@router.put(
    "/level-config",
    response_model=LevelConfigPayload,
    summary="Save level configuration",
)
async def put_level_config(
    payload: LevelConfigPayload,
    api_key: AuthenticatedUser,
    levels_repo: LevelRepositoryDep,
) -> LevelConfigPayload:
    """Replace the saved level document with the submitted levels."""
    levels_repo.save_levels({
        name: level.to_document() for name, level in payload.levels.items()
    })
    return await get_level_config(api_key, levels_repo)


@router.get(
    "/month-config",
    response_model=MonthConfigResponse,
    summary="Get a month's no-training dates",
)
async def get_month_config(
    api_key: AuthenticatedUser,
    months_repo: MonthRepositoryDep,
    month: str = Query(description="Billing month as YYYY-MM"),
) -> MonthConfigResponse:
    _require_month(month)
    exception = months_repo.get_month_exception(month)
    return MonthConfigResponse(
        month=month,
        no_training_dates=sorted(exception.no_training_dates),
    )


@router.put(
    "/month-config",
    response_model=MonthConfigResponse,
    summary="Save a month's no-training dates",
)
async def put_month_config(
    payload: MonthConfigPayload,
    api_key: AuthenticatedUser,
    months_repo: MonthRepositoryDep,
) -> MonthConfigResponse:
    _require_month(payload.month)
    stored = months_repo.save_no_training_dates(payload.month, payload.no_training_dates)
    return MonthConfigResponse(month=payload.month, no_training_dates=stored)


@router.get(
    "/swimmers",
    response_model=SwimmersResponse,
    summary="List swimmers with a level",
    description="Active swimmers assigned to a level, for editing training weekdays",
)
async def list_swimmers(
    api_key: AuthenticatedUser,
    swimmers_repo: SwimmerRepositoryDep,
) -> SwimmersResponse:
    records = [record for record in swimmers_repo.list_active() if record.level]
    return SwimmersResponse(swimmers=[SwimmerItem.from_record(r) for r in records])


@router.patch(
    "/swimmers/{swimmer_id}",
    response_model=SwimmerItem,
    summary="Update a swimmer's training configuration",
)
async def update_swimmer_training(
    swimmer_id: str,
    payload: SwimmerTrainingUpdate,
    api_key: AuthenticatedUser,
    swimmers_repo: SwimmerRepositoryDep,
) -> SwimmerItem:
    """
    Partially update weekdays, time slot, location or rate override.
    
    The new values take effect on the next calculation.
    """
    if not swimmer_id.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing swimmer id")
    
    try:
        record = swimmers_repo.update_training(swimmer_id, payload.model_dump(exclude_unset=True))
    except SwimmerNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Swimmer not found")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    
    return SwimmerItem.from_record(record)
