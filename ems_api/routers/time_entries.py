from datetime import datetime

from fastapi import APIRouter, Depends

from ems_api.core.authorization import ensure_employee_access
from ems_api.database import SessionLocal
from ems_api.deps.auth import require_auth
from ems_api.deps.clock import get_now
from ems_api.schemas.timesheet import StartShiftResponse, StopShiftResponse, TimeSummaryResponse
from ems_api.services import aggregation, time_engine
from ems_api.services.audit_service import record_audit
from ems_api.services.auth_service import Identity
from ems_api.services.employee_service import get_employee

router = APIRouter(
    prefix="/employees",
    tags=["Time Tracking"],
)


@router.post("/{employee_id}/time/start", response_model=StartShiftResponse)
def start_shift_endpoint(
    employee_id: int,
    identity: Identity = Depends(require_auth),
    now: datetime = Depends(get_now),
):
    ensure_employee_access(identity, employee_id)

    db = SessionLocal()
    try:
        get_employee(db, employee_id)
        outcome = time_engine.start_shift(employee_id, now, db=db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    if outcome.changed:
        record_audit(identity, "time.start", "time_entry", outcome.entry.id, now=now)

    return StartShiftResponse(started=outcome.changed, already_running=not outcome.changed)


@router.post("/{employee_id}/time/stop", response_model=StopShiftResponse)
def stop_shift_endpoint(
    employee_id: int,
    identity: Identity = Depends(require_auth),
    now: datetime = Depends(get_now),
):
    ensure_employee_access(identity, employee_id)

    db = SessionLocal()
    try:
        get_employee(db, employee_id)
        outcome = time_engine.stop_shift(employee_id, now, db=db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    if outcome.changed:
        record_audit(identity, "time.stop", "time_entry", outcome.entry.id, now=now)

    return StopShiftResponse(stopped=outcome.changed, not_running=not outcome.changed)


@router.get("/{employee_id}/time/summary", response_model=TimeSummaryResponse)
def time_summary_endpoint(
    employee_id: int,
    identity: Identity = Depends(require_auth),
    now: datetime = Depends(get_now),
):
    ensure_employee_access(identity, employee_id)

    db = SessionLocal()
    try:
        get_employee(db, employee_id)
        return aggregation.time_summary(db, employee_id, now=now)
    finally:
        db.close()
