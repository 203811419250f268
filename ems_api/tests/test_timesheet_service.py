from datetime import date, datetime, timedelta, timezone

import pytest

from ems_api.core.errors import NotFoundError, ValidationError
from ems_api.database import SessionLocal
from ems_api.models.timesheet import Timesheet, TimesheetNote
from ems_api.services import time_engine, timesheet_service

MONDAY = "2024-01-01"
NOW = datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc)


def _submit(employee_id: int, week_start: str = MONDAY, now: datetime = NOW) -> Timesheet:
    db = SessionLocal()
    try:
        row = timesheet_service.submit(db, employee_id, week_start, now=now)
        db.commit()
        return row
    finally:
        db.close()


def _decide(timesheet_id: int, decision: str, note=None, now: datetime = NOW) -> Timesheet:
    db = SessionLocal()
    try:
        row = timesheet_service.decide(db, timesheet_id, decision, note, now=now)
        db.commit()
        return row
    finally:
        db.close()


def _week(employee_id: int, week_start=MONDAY, now: datetime = NOW) -> dict:
    db = SessionLocal()
    try:
        return timesheet_service.get_week_view(db, employee_id, week_start, now=now)
    finally:
        db.close()


def _timesheet_count(employee_id: int) -> int:
    db = SessionLocal()
    try:
        return db.query(Timesheet).filter(Timesheet.employee_id == employee_id).count()
    finally:
        db.close()


def test_unsubmitted_week_reports_draft_without_a_row(employee_factory):
    employee = employee_factory()

    view = _week(employee.id)

    assert view["status"] == "draft"
    assert view["id"] is None
    assert view["hr_note"] is None
    assert view["total_hours"] == 0.0
    assert view["open_entry_count"] == 0
    assert [d["date"] for d in view["days"]] == [
        (date(2024, 1, 1) + timedelta(days=i)).isoformat() for i in range(7)
    ]
    assert _timesheet_count(employee.id) == 0


def test_week_view_normalises_week_start_to_monday(employee_factory):
    employee = employee_factory()

    view = _week(employee.id, "2024-01-07")

    assert view["week_start"] == "2024-01-01"
    assert view["week_end"] == "2024-01-08"


def test_week_view_totals_match_day_hours(employee_factory):
    employee = employee_factory()
    start = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
    for day, minutes in enumerate([125, 61, 480, 17]):
        begin = start + timedelta(days=day)
        time_engine.start_shift(employee.id, begin)
        time_engine.stop_shift(employee.id, begin + timedelta(minutes=minutes))
    time_engine.start_shift(employee.id, start + timedelta(days=4))

    view = _week(employee.id, now=start + timedelta(days=4, hours=1))

    assert view["total_hours"] == pytest.approx(sum(d["hours"] for d in view["days"]))
    assert view["open_entry_count"] == 1
    friday = view["days"][4]
    assert friday["open"] is True
    assert friday["hours"] == 1.0
    assert view["days"][0]["hours"] == round(125 / 60, 2)


def test_notes_attach_to_days_and_overwrite(employee_factory):
    employee = employee_factory()

    db = SessionLocal()
    try:
        timesheet_service.set_note(db, employee.id, "2024-01-02", "client visit", now=NOW)
        timesheet_service.set_note(db, employee.id, "2024-01-02", "client visit, 2h travel", now=NOW)
        timesheet_service.set_note(db, employee.id, "2024-01-09", "next week", now=NOW)
        db.commit()
        count = db.query(TimesheetNote).filter(TimesheetNote.employee_id == employee.id).count()
    finally:
        db.close()

    assert count == 2
    view = _week(employee.id)
    notes = {d["date"]: d["note"] for d in view["days"]}
    assert notes["2024-01-02"] == "client visit, 2h travel"
    assert notes["2024-01-01"] is None


def test_set_note_rejects_bad_dates(employee_factory):
    employee = employee_factory()

    db = SessionLocal()
    try:
        with pytest.raises(ValidationError):
            timesheet_service.set_note(db, employee.id, "tuesday", "x", now=NOW)
    finally:
        db.close()


def test_first_submit_creates_submitted_row(employee_factory):
    employee = employee_factory()

    row = _submit(employee.id)

    assert row.status == "submitted"
    assert row.week_start == date(2024, 1, 1)
    assert row.submitted_at == datetime(2024, 1, 5, 12, 0)
    assert _week(employee.id)["status"] == "submitted"


def test_repeat_submit_updates_instead_of_duplicating(employee_factory):
    employee = employee_factory()

    first = _submit(employee.id)
    second = _submit(employee.id, "2024-01-03", now=NOW + timedelta(hours=1))

    assert second.id == first.id
    assert second.submitted_at == datetime(2024, 1, 5, 13, 0)
    assert _timesheet_count(employee.id) == 1


def test_approve_sets_status_note_and_decided_at(employee_factory):
    employee = employee_factory()
    row = _submit(employee.id)

    decided = _decide(row.id, "approve", "  looks good ", now=NOW + timedelta(days=1))

    assert decided.status == "approved"
    assert decided.hr_note == "looks good"
    assert decided.decided_at == datetime(2024, 1, 6, 12, 0)


def test_deciding_again_is_allowed(employee_factory):
    employee = employee_factory()
    row = _submit(employee.id)
    _decide(row.id, "approve", "ok")

    again = _decide(row.id, "reject", "missing Friday", now=NOW + timedelta(hours=3))

    assert again.status == "rejected"
    assert again.hr_note == "missing Friday"


def test_resubmit_after_rejection_keeps_previous_decision_fields(employee_factory):
    employee = employee_factory()
    row = _submit(employee.id)
    _decide(row.id, "reject", "fix Tuesday")

    resubmitted = _submit(employee.id, now=NOW + timedelta(days=2))

    assert resubmitted.status == "submitted"
    assert resubmitted.submitted_at == datetime(2024, 1, 7, 12, 0)
    assert resubmitted.hr_note == "fix Tuesday"
    assert resubmitted.decided_at is not None


def test_decide_rejects_unknown_decision(employee_factory):
    employee = employee_factory()
    row = _submit(employee.id)

    with pytest.raises(ValidationError):
        _decide(row.id, "maybe")


def test_decide_unknown_timesheet_is_not_found():
    with pytest.raises(NotFoundError):
        _decide(999999, "approve")


def test_submit_requires_week_start(employee_factory):
    employee = employee_factory()

    with pytest.raises(ValidationError):
        _submit(employee.id, "")


def _stale_once(real_lookup):
    calls = {"n": 0}

    def lookup(*args):
        # first lookup misses the row a concurrent request just inserted
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return real_lookup(*args)

    return lookup


def test_lost_first_submit_race_updates_existing_row(employee_factory, monkeypatch):
    employee = employee_factory()
    first = _submit(employee.id)

    monkeypatch.setattr(
        timesheet_service,
        "get_timesheet_row",
        _stale_once(timesheet_service.get_timesheet_row),
    )

    second = _submit(employee.id, now=NOW + timedelta(hours=2))

    assert second.id == first.id
    assert second.status == "submitted"
    assert second.submitted_at == datetime(2024, 1, 5, 14, 0)
    assert _timesheet_count(employee.id) == 1


def test_lost_first_note_race_overwrites_existing_note(employee_factory, monkeypatch):
    employee = employee_factory()

    first = SessionLocal()
    try:
        timesheet_service.set_note(first, employee.id, "2024-01-02", "a", now=NOW)
        first.commit()
    finally:
        first.close()

    monkeypatch.setattr(
        timesheet_service,
        "get_note_row",
        _stale_once(timesheet_service.get_note_row),
    )

    second = SessionLocal()
    try:
        row = timesheet_service.set_note(second, employee.id, "2024-01-02", "b", now=NOW + timedelta(minutes=5))
        second.commit()
        count = second.query(TimesheetNote).filter(TimesheetNote.employee_id == employee.id).count()
    finally:
        second.close()

    assert row.note == "b"
    assert count == 1
    notes = {d["date"]: d["note"] for d in _week(employee.id)["days"]}
    assert notes["2024-01-02"] == "b"
