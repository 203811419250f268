import logging
from datetime import date, datetime
from typing import NamedTuple, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ems_api.core.dates import business_date, to_utc_naive
from ems_api.database import SessionLocal
from ems_api.models.time_entry import TimeEntry

logger = logging.getLogger(__name__)


class ShiftOutcome(NamedTuple):
    entry: Optional[TimeEntry]
    changed: bool


def get_open_entry(
    db: Session,
    employee_id: int,
    work_date: date,
) -> Optional[TimeEntry]:
    return (
        db.query(TimeEntry)
        .filter(
            TimeEntry.employee_id == employee_id,
            TimeEntry.work_date == work_date,
            TimeEntry.ended_at.is_(None),
        )
        .order_by(TimeEntry.started_at.desc(), TimeEntry.id.desc())
        .first()
    )


def start_shift(
    employee_id: int,
    now: datetime,
    *,
    db: Optional[Session] = None,
) -> ShiftOutcome:
    """
    Open an interval for today unless one is already open.

    If db is provided, this function will NOT commit/close. Caller owns the transaction,
    except that losing the race against the open-entry index rolls the session back.
    If db is None, this function manages its own session + commit.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    today = business_date(now)
    try:
        open_entry = get_open_entry(db, employee_id, today)
        if open_entry is not None:
            return ShiftOutcome(entry=open_entry, changed=False)

        entry = TimeEntry(
            employee_id=employee_id,
            started_at=to_utc_naive(now),
            ended_at=None,
            work_date=today,
        )

        db.add(entry)
        try:
            db.flush()
        except IntegrityError:
            # Lost the race against the open-entry index; the session is rolled back.
            db.rollback()
            logger.info(
                "Concurrent start detected; shift already running",
                extra={"employee_id": employee_id, "work_date": today.isoformat()},
            )
            return ShiftOutcome(entry=get_open_entry(db, employee_id, today), changed=False)

        db.refresh(entry)

        if owns_db:
            db.commit()

        logger.info(
            "Shift started",
            extra={"employee_id": employee_id, "time_entry_id": entry.id, "work_date": today.isoformat()},
        )
        return ShiftOutcome(entry=entry, changed=True)
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def stop_shift(
    employee_id: int,
    now: datetime,
    *,
    db: Optional[Session] = None,
) -> ShiftOutcome:
    """
    Close today's most recent open interval, if any.

    If db is provided, this function will NOT commit/close. Caller owns the transaction.
    If db is None, this function manages its own session + commit.
    """
    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    today = business_date(now)
    try:
        open_entry = get_open_entry(db, employee_id, today)
        if open_entry is None:
            return ShiftOutcome(entry=None, changed=False)

        open_entry.ended_at = to_utc_naive(now)

        db.flush()
        db.refresh(open_entry)

        if owns_db:
            db.commit()

        logger.info(
            "Shift stopped",
            extra={"employee_id": employee_id, "time_entry_id": open_entry.id},
        )
        return ShiftOutcome(entry=open_entry, changed=True)
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()
