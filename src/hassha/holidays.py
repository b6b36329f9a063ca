"""Public holiday calendar parsing and day-type classification."""

from __future__ import annotations

import csv
import io
import logging
from datetime import date

from hassha.models import DayClassification

logger = logging.getLogger(__name__)

# date.weekday(): Monday=0 ... Saturday=5, Sunday=6
_WEEKEND_NAMES = {5: "土曜日", 6: "日曜日"}


def date_key(day: date) -> str:
    """Calendar lookup key for a date (zero-padded YYYY-MM-DD)."""
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def _parse_date(value: str) -> date | None:
    """Parse a "YYYY/M/D" (or "YYYY-M-D") cell, tolerating stray quotes."""
    parts = value.strip().strip('"').replace("-", "/").split("/")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return None


def parse_calendar(text: str) -> dict[str, str]:
    """Parse the holiday CSV resource into a date -> name mapping.

    The first row is a header and is discarded. Each data row holds a
    YYYY/M/D date in the first column and the holiday name in the second;
    both may be quoted. Rows with fewer than two columns or an unparseable
    date are skipped.
    """
    calendar: dict[str, str] = {}
    reader = csv.reader(io.StringIO(text))
    next(reader, None)
    for row in reader:
        if len(row) < 2:
            continue
        day = _parse_date(row[0])
        if day is None:
            logger.debug("Skipping holiday row with bad date: %r", row[0])
            continue
        calendar[date_key(day)] = row[1].strip().strip('"')
    return calendar


def classify_day(day: date, calendar: dict[str, str]) -> DayClassification:
    """Classify a date as weekday or holiday.

    Calendar entries win over the weekday, so a holiday falling on a
    Saturday reports the holiday name. Weekends not in the calendar report
    the localized weekday name.
    """
    name = calendar.get(date_key(day))
    if name is not None:
        return DayClassification(is_holiday=True, name=name)
    weekend = _WEEKEND_NAMES.get(day.weekday())
    if weekend is not None:
        return DayClassification(is_holiday=True, name=weekend)
    return DayClassification(is_holiday=False, name="")
