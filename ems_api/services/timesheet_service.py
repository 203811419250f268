import logging
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ems_api.core.dates import isoformat_utc, parse_iso_date, to_utc_naive, week_range
from ems_api.core.errors import NotFoundError, ValidationError
from ems_api.models.timesheet import Timesheet, TimesheetNote
from ems_api.services.aggregation import daily_totals

logger = logging.getLogger(__name__)

NOTE_MAX_LENGTH = 2000

DECISIONS = {
    "approve": "approved",
    "reject": "rejected",
}


def get_timesheet_row(db: Session, employee_id: int, week_start: date) -> Optional[Timesheet]:
    return (
        db.query(Timesheet)
        .filter(
            Timesheet.employee_id == int(employee_id),
            Timesheet.week_start == week_start,
        )
        .first()
    )


def week_status(row: Optional[Timesheet]) -> str:
    # A week without a row has never been submitted.
    return row.status if row is not None else "draft"


def get_week_view(
    db: Session,
    employee_id: int,
    week_start,
    *,
    now: datetime,
) -> dict[str, Any]:
    start, end = week_range(parse_iso_date(week_start, "week_start"))

    notes = {
        n.work_date: n.note
        for n in db.query(TimesheetNote)
        .filter(
            TimesheetNote.employee_id == int(employee_id),
            TimesheetNote.work_date >= start,
            TimesheetNote.work_date < end,
        )
        .all()
    }

    days = []
    for total in daily_totals(db, employee_id, start, end, now=now):
        days.append(
            {
                "date": total.work_date.isoformat(),
                "hours": total.hours,
                "worked_seconds": total.worked_seconds,
                "open": total.open_entries > 0,
                "open_entries": total.open_entries,
                "note": notes.get(total.work_date),
            }
        )

    row = get_timesheet_row(db, employee_id, start)

    return {
        "employee_id": int(employee_id),
        "week_start": start.isoformat(),
        "week_end": end.isoformat(),
        "id": None if row is None else row.id,
        "status": week_status(row),
        "hr_note": None if row is None else row.hr_note,
        "submitted_at": None if row is None else isoformat_utc(row.submitted_at),
        "decided_at": None if row is None else isoformat_utc(row.decided_at),
        "total_hours": round(sum(d["hours"] for d in days), 2),
        "total_seconds": sum(d["worked_seconds"] for d in days),
        "open_entry_count": sum(d["open_entries"] for d in days),
        "days": days,
    }


def get_note_row(db: Session, employee_id: int, work_date: date) -> Optional[TimesheetNote]:
    return (
        db.query(TimesheetNote)
        .filter(
            TimesheetNote.employee_id == int(employee_id),
            TimesheetNote.work_date == work_date,
        )
        .first()
    )


def set_note(
    db: Session,
    employee_id: int,
    work_date,
    note: Optional[str],
    *,
    now: datetime,
) -> TimesheetNote:
    day = parse_iso_date(work_date, "work_date")
    text = note or ""
    if len(text) > NOTE_MAX_LENGTH:
        raise ValidationError(f"note must be at most {NOTE_MAX_LENGTH} characters")

    row = get_note_row(db, employee_id, day)
    if row is None:
        row = TimesheetNote(
            employee_id=int(employee_id),
            work_date=day,
            note=text,
            updated_at=to_utc_naive(now),
        )
        db.add(row)
        try:
            db.flush()
            return row
        except IntegrityError:
            # Lost a race with a concurrent first save for the same day.
            db.rollback()
            row = get_note_row(db, employee_id, day)
            if row is None:
                raise

    row.note = text
    row.updated_at = to_utc_naive(now)
    db.flush()
    return row


def submit(
    db: Session,
    employee_id: int,
    week_start,
    *,
    now: datetime,
) -> Timesheet:
    """
    Move a week to "submitted", creating its row on first submission.

    Resubmitting refreshes submitted_at; hr_note and decided_at from an
    earlier decision stay until the next decision overwrites them.
    """
    start, _ = week_range(parse_iso_date(week_start, "week_start"))
    submitted_at = to_utc_naive(now)

    row = get_timesheet_row(db, employee_id, start)
    if row is None:
        row = Timesheet(
            employee_id=int(employee_id),
            week_start=start,
            status="submitted",
            submitted_at=submitted_at,
        )
        db.add(row)
        try:
            db.flush()
        except IntegrityError:
            # Lost a race with a concurrent first submission.
            db.rollback()
            row = get_timesheet_row(db, employee_id, start)
            if row is None:
                raise

    row.status = "submitted"
    row.submitted_at = submitted_at
    db.flush()

    logger.info(
        "Timesheet submitted",
        extra={"employee_id": int(employee_id), "week_start": start.isoformat(), "timesheet_id": row.id},
    )
    return row


def decide(
    db: Session,
    timesheet_id: int,
    decision: str,
    hr_note: Optional[str],
    *,
    now: datetime,
) -> Timesheet:
    # Re-deciding an already approved/rejected timesheet is allowed.
    status = DECISIONS.get(str(decision or "").strip().lower())
    if status is None:
        raise ValidationError("decision must be 'approve' or 'reject'")

    row = db.query(Timesheet).filter(Timesheet.id == int(timesheet_id)).first()
    if row is None:
        raise NotFoundError("Timesheet not found")

    note = (hr_note or "").strip()
    if len(note) > NOTE_MAX_LENGTH:
        raise ValidationError(f"hr_note must be at most {NOTE_MAX_LENGTH} characters")

    row.status = status
    row.hr_note = note or None
    row.decided_at = to_utc_naive(now)
    db.flush()

    logger.info(
        "Timesheet decided",
        extra={"timesheet_id": row.id, "status": status, "employee_id": row.employee_id},
    )
    return row


def serialize_timesheet(row: Timesheet) -> dict[str, Any]:
    return {
        "id": row.id,
        "employee_id": row.employee_id,
        "week_start": row.week_start.isoformat(),
        "status": row.status,
        "hr_note": row.hr_note,
        "submitted_at": isoformat_utc(row.submitted_at),
        "decided_at": isoformat_utc(row.decided_at),
    }
