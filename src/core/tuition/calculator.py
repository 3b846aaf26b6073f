"""
Monthly tuition calculation service.

Orchestrates the pieces for a whole roster:

    month -> calendar days -> minus no-training dates
    per swimmer: level lookup -> schedule -> rate -> row

The calculator holds no state between calls and performs no I/O, so one
instance can serve concurrent requests. Only a malformed month or a
structurally bad roster aborts a call; anything wrong with a single swimmer
degrades that swimmer's row to needs_config and is reported as an issue.
"""

import logging
from typing import Mapping, Optional, Sequence

from .aggregator import build_row
from .closures import filter_no_training_dates, validate_no_training_dates
from .dates import expand_month, parse_month
from .models import (
    CalculationIssue,
    CalculationRow,
    CalendarDay,
    InvalidInput,
    IssueKind,
    LevelConfig,
    MonthException,
    MonthlyCalculation,
    Participant,
)
from .rates import ZERO, resolve_rate
from .schedule import resolve_schedule

logger = logging.getLogger(__name__)


class TuitionCalculator:
    """
    Computes CalculationRows for every participant of a month.

    fallback_time_slot / fallback_location only fill the summary columns of
    rows that could not be resolved at all (no level, no weekdays).
    """

    def __init__(self, fallback_time_slot: str = "", fallback_location: str = "") -> None:
        self._fallback_time_slot = fallback_time_slot
        self._fallback_location = fallback_location

    def calculate(
        self,
        month: str,
        participants: Sequence[Participant],
        levels: Mapping[str, LevelConfig],
        month_exception: Optional[MonthException] = None,
    ) -> MonthlyCalculation:
        """
        Calculate tuition for every participant, in input order.

        Raises:
            InvalidMonth: month is not a valid YYYY-MM.
            InvalidInput: duplicate participant ids.

        Dates in month_exception that fall outside month are reported as
        MALFORMED_EXCEPTION issues, whatever month the exception was saved for.
        """
        parse_month(month)
        self._check_participants(participants)

        raw_dates: list = []
        if month_exception is not None:
            if month_exception.month != month:
                logger.warning(
                    "Month exception recorded for another month",
                    extra={"month": month, "exception_month": month_exception.month}
                )
            raw_dates = sorted(month_exception.no_training_dates, key=str)

        no_training, issues = validate_no_training_dates(month, raw_dates)
        training_days = filter_no_training_dates(expand_month(month), no_training)

        rows = []
        for participant in participants:
            row, participant_issues = self._calculate_participant(participant, levels, training_days)
            rows.append(row)
            issues.extend(participant_issues)

        result = MonthlyCalculation(
            month=month,
            no_training_dates=sorted(no_training),
            rows=rows,
            issues=issues,
        )

        logger.info(
            "Monthly tuition calculated",
            extra={
                "month": month,
                "participants": len(rows),
                "needs_config": result.needs_config_count,
                "issues": len(issues),
            }
        )

        return result

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _check_participants(self, participants: Sequence[Participant]) -> None:
        seen: set[str] = set()
        duplicates: list[str] = []
        for participant in participants:
            if participant.id in seen and participant.id not in duplicates:
                duplicates.append(participant.id)
            seen.add(participant.id)
        if duplicates:
            raise InvalidInput(f"Duplicate participant ids: {', '.join(duplicates)}")

    def _calculate_participant(
        self,
        participant: Participant,
        levels: Mapping[str, LevelConfig],
        training_days: list[CalendarDay],
    ) -> tuple[CalculationRow, list[CalculationIssue]]:
        config = participant.config
        level_name = config.level or ""
        level = levels.get(level_name) if level_name else None

        issue = None
        if not level_name:
            issue = CalculationIssue(
                kind=IssueKind.MISSING_LEVEL,
                message=f"{participant.name} has no level assigned",
                participant_id=participant.id,
            )
        elif level is None:
            issue = CalculationIssue(
                kind=IssueKind.INVALID_LEVEL_REFERENCE,
                message=f"{participant.name} references unknown level {level_name!r}",
                participant_id=participant.id,
                value=level_name,
            )
        elif not config.training_weekdays:
            issue = CalculationIssue(
                kind=IssueKind.MISSING_WEEKDAYS,
                message=f"{participant.name} has no training weekdays",
                participant_id=participant.id,
            )

        if issue:
            logger.warning(
                "Participant needs configuration",
                extra={
                    "participant_id": participant.id,
                    "kind": issue.kind.value,
                    "level": level_name,
                }
            )

        if level is None:
            # No level: nothing further is resolved; rate and tuition stay zero.
            row = build_row(
                participant,
                level_name=level_name,
                days=[],
                slots={},
                rate_per_hour=ZERO,
                needs_config=True,
                fallback_time_slot=config.training_time_slot or self._fallback_time_slot,
                fallback_location=config.training_location or self._fallback_location,
            )
            return row, [issue]

        slots = resolve_schedule(level, config)
        # Structural days per week, never the month's session count.
        weekday_count = config.weekday_count
        rate = resolve_rate(config, level, weekday_count)

        row = build_row(
            participant,
            level_name=level_name,
            days=training_days,
            slots=slots,
            rate_per_hour=rate,
            needs_config=issue is not None,
            fallback_time_slot=config.training_time_slot or level.default_time_slot,
            fallback_location=config.training_location or level.default_location,
        )
        return row, [issue] if issue else []


def calculate_month(
    month: str,
    participants: Sequence[Participant],
    levels: Mapping[str, LevelConfig],
    month_exception: Optional[MonthException] = None,
) -> MonthlyCalculation:
    """Convenience wrapper around a default TuitionCalculator."""
    return TuitionCalculator().calculate(month, participants, levels, month_exception)
