"""
Read-side time aggregation.

Ranges are half-open on work_date: start <= work_date < end. Either bound may
be omitted. An entry without ended_at counts up to ``now``; negative spans
(clock skew, bad manual data) count as zero. Nothing is cached, every call
reads the current entries.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from ems_api.core.dates import business_date, day_range, iter_days, seconds_to_hours, to_utc_naive, week_range
from ems_api.models.time_entry import TimeEntry


@dataclass
class DayTotal:
    work_date: date
    worked_seconds: int = 0
    open_entries: int = 0

    @property
    def hours(self) -> float:
        return seconds_to_hours(self.worked_seconds)


def entry_seconds(entry: TimeEntry, now: datetime) -> int:
    end = to_utc_naive(now) if entry.is_open else entry.ended_at
    return max(0, int((end - entry.started_at).total_seconds()))


def _entries_in_range(
    db: Session,
    employee_id: int,
    start_date: Optional[date],
    end_date: Optional[date],
) -> Iterable[TimeEntry]:
    q = db.query(TimeEntry).filter(TimeEntry.employee_id == int(employee_id))
    if start_date is not None:
        q = q.filter(TimeEntry.work_date >= start_date)
    if end_date is not None:
        q = q.filter(TimeEntry.work_date < end_date)
    return q.order_by(TimeEntry.started_at.asc()).all()


def sum_seconds(
    db: Session,
    employee_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    *,
    now: datetime,
) -> int:
    return sum(entry_seconds(e, now) for e in _entries_in_range(db, employee_id, start_date, end_date))


def sum_hours(
    db: Session,
    employee_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    *,
    now: datetime,
) -> float:
    return seconds_to_hours(sum_seconds(db, employee_id, start_date, end_date, now=now))


def daily_totals(
    db: Session,
    employee_id: int,
    start_date: date,
    end_date: date,
    *,
    now: datetime,
) -> list[DayTotal]:
    """One DayTotal per calendar day of the range, including empty days."""
    totals = {d: DayTotal(work_date=d) for d in iter_days(start_date, end_date)}
    for entry in _entries_in_range(db, employee_id, start_date, end_date):
        bucket = totals.get(entry.work_date)
        if bucket is None:
            continue
        bucket.worked_seconds += entry_seconds(entry, now)
        if entry.is_open:
            bucket.open_entries += 1
    return [totals[d] for d in sorted(totals)]


def time_summary(db: Session, employee_id: int, *, now: datetime) -> dict[str, Any]:
    today = business_date(now)
    day_start, day_end = day_range(today)
    week_start, week_end = week_range(today)

    running = (
        db.query(TimeEntry.id)
        .filter(
            TimeEntry.employee_id == int(employee_id),
            TimeEntry.work_date == today,
            TimeEntry.ended_at.is_(None),
        )
        .first()
        is not None
    )

    today_seconds = sum_seconds(db, employee_id, day_start, day_end, now=now)
    week_seconds = sum_seconds(db, employee_id, week_start, week_end, now=now)
    total_seconds = sum_seconds(db, employee_id, now=now)

    return {
        "running": running,
        "today_seconds": today_seconds,
        "week_seconds": week_seconds,
        "total_seconds": total_seconds,
        "today_hours": seconds_to_hours(today_seconds),
        "week_hours": seconds_to_hours(week_seconds),
        "total_hours": seconds_to_hours(total_seconds),
    }
