from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional, Tuple

from ems_api.core.config import get_app_timezone
from ems_api.core.errors import ValidationError

DAYS_PER_WEEK = 7


def to_utc_naive(value: datetime) -> datetime:
    """Normalise to the naive-UTC form stored in DateTime columns."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def business_date(value: datetime) -> date:
    """Calendar date of a timestamp in the configured business timezone."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(get_app_timezone()).date()


def week_start_for(day: date) -> date:
    # Monday is weekday 0, so Sunday falls back six days into its own week.
    return day - timedelta(days=day.weekday())


def week_range(week_start: date) -> Tuple[date, date]:
    start = week_start_for(week_start)
    return start, start + timedelta(days=DAYS_PER_WEEK)


def day_range(day: date) -> Tuple[date, date]:
    return day, day + timedelta(days=1)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current < end:
        yield current
        current += timedelta(days=1)


def parse_iso_date(value, field: str = "date") -> date:
    """Parse YYYY-MM-DD (or pass a date through), raising ValidationError otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValidationError(f"{field} must be YYYY-MM-DD") from exc


def seconds_to_hours(seconds: float) -> float:
    return round(max(0.0, float(seconds)) / 3600.0, 2)
