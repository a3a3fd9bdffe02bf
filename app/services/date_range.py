"""
Resolution of stats/list query filters into concrete date intervals.

Two conventions coexist and are kept apart on purpose:

- ``startDate``/``endDate`` are calendar dates whose bounds are taken in UTC
  (``00:00:00.000Z`` to ``23:59:59.999Z``).
- ``month``/``year`` are interpreted in the configured calendar timezone
  (``CALENDAR_TIMEZONE``), like the monthly buckets of the evolution chart.

All resolved bounds are returned as UTC-aware datetimes so they compare
correctly against stored transaction timestamps on every backend.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import get_settings
from app.core.exceptions import InvalidDateRangeError

START_OF_DAY = time(0, 0, 0, 0)
END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class DateRange:
    """Inclusive interval; a ``None`` side is unbounded."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None


def get_calendar_timezone() -> tzinfo:
    return ZoneInfo(get_settings().CALENDAR_TIMEZONE)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC; naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_key(value: datetime, tz: Optional[tzinfo] = None) -> str:
    """Return the ``YYYY-MM`` bucket a timestamp falls in, in calendar time."""
    local = to_utc(value).astimezone(tz or get_calendar_timezone())
    return f"{local.year:04d}-{local.month:02d}"


def month_range(year: int, month: int, tz: Optional[tzinfo] = None) -> DateRange:
    """First day 00:00:00.000 to last day 23:59:59.999 of a calendar month."""
    tz = tz or get_calendar_timezone()
    try:
        last_day = calendar.monthrange(year, month)[1]
        start = datetime.combine(date(year, month, 1), START_OF_DAY, tzinfo=tz)
        end = datetime.combine(date(year, month, last_day), END_OF_DAY, tzinfo=tz)
        return DateRange(start=to_utc(start), end=to_utc(end))
    except (ValueError, OverflowError) as e:
        raise InvalidDateRangeError(
            f"Invalid month: {year}-{month}", details={"year": year, "month": month}
        ) from e


def year_range(year: int, tz: Optional[tzinfo] = None) -> DateRange:
    """Jan 1 00:00:00.000 to Dec 31 23:59:59.999 of a calendar year."""
    tz = tz or get_calendar_timezone()
    try:
        start = datetime.combine(date(year, 1, 1), START_OF_DAY, tzinfo=tz)
        end = datetime.combine(date(year, 12, 31), END_OF_DAY, tzinfo=tz)
        return DateRange(start=to_utc(start), end=to_utc(end))
    except (ValueError, OverflowError) as e:
        raise InvalidDateRangeError(f"Invalid year: {year}", details={"year": year}) from e


def trailing_months_range(
    months: int,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> DateRange:
    """The last ``months`` calendar months, current month included."""
    if months < 1:
        raise InvalidDateRangeError("months must be at least 1", details={"months": months})
    tz = tz or get_calendar_timezone()
    if today is None:
        today = datetime.now(tz).date()

    # Count months from year 0 to step back across year boundaries
    first_index = today.year * 12 + (today.month - 1) - (months - 1)
    first_year, first_month = divmod(first_index, 12)

    start = month_range(first_year, first_month + 1, tz).start
    end = month_range(today.year, today.month, tz).end
    return DateRange(start=start, end=end)


def parse_month(value: str) -> tuple[int, int]:
    """Parse ``YYYY-MM`` into ``(year, month)``."""
    parts = value.strip().split("-")
    if len(parts) != 2:
        raise InvalidDateRangeError(
            f"Invalid month '{value}', expected YYYY-MM", details={"month": value}
        )
    try:
        year, month = int(parts[0]), int(parts[1])
    except ValueError as e:
        raise InvalidDateRangeError(
            f"Invalid month '{value}', expected YYYY-MM", details={"month": value}
        ) from e
    return year, month


def parse_year(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as e:
        raise InvalidDateRangeError(
            f"Invalid year '{value}', expected YYYY", details={"year": value}
        ) from e


def resolve_date_range(
    month: Optional[str] = None,
    year: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> DateRange:
    """
    Turn filter parameters into an inclusive interval.

    Precedence, first match wins:
        1. start_date and/or end_date (UTC day bounds, missing side unbounded)
        2. month ``YYYY-MM`` (calendar timezone)
        3. year ``YYYY`` (calendar timezone)
        4. unbounded
    """
    if start_date is not None or end_date is not None:
        start = (
            datetime.combine(start_date, START_OF_DAY, tzinfo=timezone.utc)
            if start_date is not None
            else None
        )
        end = (
            datetime.combine(end_date, END_OF_DAY, tzinfo=timezone.utc)
            if end_date is not None
            else None
        )
        return DateRange(start=start, end=end)

    if month:
        return month_range(*parse_month(month), tz=tz)

    if year:
        return year_range(parse_year(year), tz=tz)

    return DateRange()
