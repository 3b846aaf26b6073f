"""
Plain-text and CSV renderings of calculation rows.

Schedule text is meant for pasting into an email to a family, so it carries
no markup.
"""

import csv
import io
from typing import Iterable

from .models import WEEKDAY_ABBREVIATIONS, CalculationRow

NO_SESSIONS_TEXT = "No sessions this month."

CSV_HEADER = [
    "Swimmer ID",
    "Swimmer",
    "Level",
    "Training Days",
    "Sessions",
    "Rate/hr",
    "Tuition",
    "Time",
    "Location",
    "Needs Config",
    "Schedule",
]


def format_schedule_text(row: CalculationRow) -> str:
    if not row.schedule_lines:
        return NO_SESSIONS_TEXT
    return "\n".join(row.schedule_lines)


def format_amount_and_schedule(row: CalculationRow) -> str:
    return f"Amount: ${row.tuition:.2f}\n\nSchedule:\n{format_schedule_text(row)}"


def rows_to_csv(rows: Iterable[CalculationRow]) -> str:
    """One line per swimmer; the schedule goes in a single quoted multi-line cell."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow([
            row.participant_id,
            row.participant_name,
            row.level,
            ", ".join(WEEKDAY_ABBREVIATIONS[wd] for wd in row.training_weekdays),
            row.session_count,
            f"{row.rate_per_hour:.2f}",
            f"{row.tuition:.2f}",
            row.time_slot,
            row.location,
            "yes" if row.needs_config else "no",
            "\n".join(row.schedule_lines),
        ])
    return buffer.getvalue()
