"""
Hourly rate policy.

The reduced rate is a policy on attendance frequency: a swimmer who trains
fewer weekdays than the level's minimum pays the reduced rate for the whole
month, however many sessions a holiday leaves in it. The weekday count passed
here is therefore the structural days-per-week, never the month's session
count.
"""

from decimal import Decimal
from typing import Optional

from .models import LevelConfig, SwimmerConfig, to_decimal

ZERO = Decimal("0")


def resolve_rate(
    swimmer: SwimmerConfig,
    level: Optional[LevelConfig],
    weekday_count: int,
) -> Decimal:
    """
    Hourly rate for one swimmer.

    An explicit override always wins, even 0. Without a level the rate is 0
    and the row is flagged needs_config by the caller.
    """
    if swimmer.rate_per_hour_override is not None:
        return to_decimal(swimmer.rate_per_hour_override)

    if level is None:
        return ZERO

    if level.reduced_rate_per_hour is not None and weekday_count < level.min_days_per_week:
        return to_decimal(level.reduced_rate_per_hour)

    return to_decimal(level.default_rate_per_hour)
