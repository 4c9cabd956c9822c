"""Date range parsing helpers."""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, time, timezone
from typing import Optional, Tuple

import typer

from gf_cli.core.constants import DEFAULT_START_DATE

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_date(value: Optional[str]) -> Optional[str]:
    """Typer callback that validates YYYY-MM-DD format for date options."""
    if value is None:
        return value
    if not _DATE_RE.match(value):
        raise typer.BadParameter(
            f"Invalid date '{value}'. Expected format: YYYY-MM-DD (e.g. 2020-01-15)"
        )
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise typer.BadParameter(
            f"Invalid date '{value}'. Expected format: YYYY-MM-DD (e.g. 2020-01-15)"
        )
    return value


def parse_date(value: str) -> date:
    """Parse YYYY-MM-DD date string."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def add_months(day: date, months: int) -> date:
    """Shift a date by whole calendar months, clamping to the month's last day."""
    index = day.month - 1 + months
    year = day.year + index // 12
    month = index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def resolve_date_range(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    last_days: Optional[int] = None,
    year: Optional[int] = None,
    this_year: bool = False,
    default_start: str = DEFAULT_START_DATE,
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """Resolve CLI date flags into concrete inclusive start/end dates."""
    now = today or date.today()

    if start_date and end_date:
        return parse_date(start_date), parse_date(end_date)
    if start_date and not end_date:
        return parse_date(start_date), now
    if end_date and not start_date:
        return parse_date(default_start), parse_date(end_date)

    if last_days:
        return date.fromordinal(now.toordinal() - max(last_days - 1, 0)), now

    if year:
        return date(year, 1, 1), date(year, 12, 31)

    if this_year:
        return date(now.year, 1, 1), date(now.year, 12, 31)

    return parse_date(default_start), now


def range_bounds_utc(start: date, end: date) -> Tuple[datetime, datetime]:
    """Turn an inclusive date range into [start 00:00, end 23:59:59.999] UTC instants."""
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end, time.max, tzinfo=timezone.utc),
    )


def to_rfc3339(moment: datetime) -> str:
    """Format an aware datetime as RFC 3339 with millisecond precision."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + (
        f"{moment.microsecond // 1000:03d}Z"
    )
