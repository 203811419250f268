from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from ems_api.core.config import TIMESHEET_LIST_LIMIT
from ems_api.core.dates import isoformat_utc, parse_iso_date, seconds_to_hours, week_range
from ems_api.core.errors import ValidationError
from ems_api.models.employee import Employee
from ems_api.models.timesheet import TIMESHEET_STATUSES, Timesheet
from ems_api.services.aggregation import sum_seconds

CSV_COLUMNS = [
    "id",
    "employee_id",
    "employee_name",
    "week_start",
    "status",
    "hr_note",
    "submitted_at",
    "decided_at",
]


def list_timesheets(
    db: Session,
    *,
    week_start: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = TIMESHEET_LIST_LIMIT,
    now: datetime,
) -> list[dict[str, Any]]:
    """
    HR review listing.

    Filters combine with AND and are both optional. Newest submissions first,
    never more than TIMESHEET_LIST_LIMIT rows.
    """
    q = db.query(Timesheet, Employee).join(Employee, Employee.id == Timesheet.employee_id)

    if week_start:
        start, _ = week_range(parse_iso_date(week_start, "week_start"))
        q = q.filter(Timesheet.week_start == start)

    if status:
        status = status.strip().lower()
        if status not in TIMESHEET_STATUSES:
            raise ValidationError("status must be one of: " + ", ".join(TIMESHEET_STATUSES))
        q = q.filter(Timesheet.status == status)

    limit = max(1, min(int(limit), TIMESHEET_LIST_LIMIT))

    rows = (
        q.order_by(Timesheet.submitted_at.desc(), Timesheet.id.desc())
        .limit(limit)
        .all()
    )

    out = []
    for ts, employee in rows:
        start, end = week_range(ts.week_start)
        total = sum_seconds(db, ts.employee_id, start, end, now=now)
        out.append(
            {
                "id": ts.id,
                "employee_id": ts.employee_id,
                "employee_name": employee.name,
                "employee_department": employee.department,
                "week_start": ts.week_start.isoformat(),
                "status": ts.status,
                "hr_note": ts.hr_note,
                "submitted_at": isoformat_utc(ts.submitted_at),
                "decided_at": isoformat_utc(ts.decided_at),
                "total_seconds": total,
                "total_hours": seconds_to_hours(total),
            }
        )
    return out


def export_csv(rows: Iterable[dict[str, Any]]) -> str:
    """RFC-4180 table: CRLF line endings, quotes doubled, fields quoted only when needed."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(CSV_COLUMNS)
    for row in rows:
        writer.writerow(["" if row.get(col) is None else row.get(col) for col in CSV_COLUMNS])
    return buffer.getvalue()


def export_filename(week_start: Optional[str], status: Optional[str]) -> str:
    week = week_start or "all"
    if week_start:
        week = week_range(parse_iso_date(week_start, "week_start"))[0].isoformat()
    return f"timesheets_{week}_{(status or 'all').strip().lower() or 'all'}.csv"
