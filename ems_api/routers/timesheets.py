from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from ems_api.core.authorization import Role, ensure_employee_access, require_role
from ems_api.database import SessionLocal
from ems_api.deps.auth import require_auth
from ems_api.deps.clock import get_now
from ems_api.schemas.timesheet import (
    TimesheetDecisionRequest,
    TimesheetNoteRequest,
    TimesheetSubmitRequest,
)
from ems_api.services import review_service, timesheet_service
from ems_api.services.audit_service import record_audit
from ems_api.services.auth_service import Identity
from ems_api.services.employee_service import get_employee

employee_router = APIRouter(prefix="/employees", tags=["Timesheets"])
router = APIRouter(prefix="/timesheets", tags=["Timesheets"])


@employee_router.get("/{employee_id}/timesheet/week")
def get_week_endpoint(
    employee_id: int,
    week_start: str = Query(...),
    identity: Identity = Depends(require_auth),
    now: datetime = Depends(get_now),
):
    ensure_employee_access(identity, employee_id)

    db = SessionLocal()
    try:
        get_employee(db, employee_id)
        return timesheet_service.get_week_view(db, employee_id, week_start, now=now)
    finally:
        db.close()


@employee_router.put("/{employee_id}/timesheet/note")
def set_note_endpoint(
    employee_id: int,
    payload: TimesheetNoteRequest,
    identity: Identity = Depends(require_auth),
    now: datetime = Depends(get_now),
):
    ensure_employee_access(identity, employee_id)

    db = SessionLocal()
    try:
        get_employee(db, employee_id)
        row = timesheet_service.set_note(db, employee_id, payload.work_date, payload.note, now=now)
        db.commit()
        return {"ok": True, "work_date": row.work_date.isoformat()}
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@employee_router.post("/{employee_id}/timesheet/submit")
def submit_endpoint(
    employee_id: int,
    payload: TimesheetSubmitRequest,
    identity: Identity = Depends(require_auth),
    now: datetime = Depends(get_now),
):
    ensure_employee_access(identity, employee_id)

    db = SessionLocal()
    try:
        get_employee(db, employee_id)
        row = timesheet_service.submit(db, employee_id, payload.week_start, now=now)
        db.commit()
        result = {"ok": True, "id": row.id, "week_start": row.week_start.isoformat(), "status": row.status}
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    record_audit(identity, "timesheet.submit", "timesheet", result["id"], now=now)
    return result


@router.get("")
def list_timesheets_endpoint(
    week_start: Optional[str] = None,
    status: Optional[str] = None,
    _role: Identity = Depends(require_role(Role.HR)),
    now: datetime = Depends(get_now),
):
    db = SessionLocal()
    try:
        rows = review_service.list_timesheets(db, week_start=week_start, status=status, now=now)
        return {"rows": rows}
    finally:
        db.close()


@router.get("/export.csv")
def export_timesheets_csv(
    week_start: Optional[str] = None,
    status: Optional[str] = None,
    _role: Identity = Depends(require_role(Role.HR)),
    now: datetime = Depends(get_now),
):
    db = SessionLocal()
    try:
        rows = review_service.list_timesheets(db, week_start=week_start, status=status, now=now)
    finally:
        db.close()

    filename = review_service.export_filename(week_start, status)
    return Response(
        content=review_service.export_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/{timesheet_id}/decision")
def decide_timesheet_endpoint(
    timesheet_id: int,
    payload: TimesheetDecisionRequest,
    identity: Identity = Depends(require_role(Role.HR)),
    now: datetime = Depends(get_now),
):
    db = SessionLocal()
    try:
        row = timesheet_service.decide(db, timesheet_id, payload.decision, payload.hr_note, now=now)
        db.commit()
        result = {"ok": True, **timesheet_service.serialize_timesheet(row)}
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    action = "timesheet.approve" if result["status"] == "approved" else "timesheet.reject"
    record_audit(identity, action, "timesheet", timesheet_id, now=now)
    return result
