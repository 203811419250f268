import csv
import io
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from ems_api.main import app

client = TestClient(app)


def _submit(employee, headers, week_start="2024-01-01"):
    r = client.post(
        f"/employees/{employee.id}/timesheet/submit",
        json={"week_start": week_start},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    return r.json()


def test_note_submit_and_week_status(employee_factory, headers_for, clock):
    employee = employee_factory()
    headers = headers_for(employee)

    note = client.put(
        f"/employees/{employee.id}/timesheet/note",
        json={"work_date": "2024-01-02", "note": "onsite"},
        headers=headers,
    )
    assert note.status_code == 200, note.text
    assert note.json()["ok"] is True

    submitted = _submit(employee, headers)
    assert submitted["status"] == "submitted"
    assert submitted["week_start"] == "2024-01-01"

    week = client.get(
        f"/employees/{employee.id}/timesheet/week",
        params={"week_start": "2024-01-01"},
        headers=headers,
    ).json()
    assert week["status"] == "submitted"
    assert week["days"][1]["note"] == "onsite"
    assert week["submitted_at"] == "2024-01-02T09:00:00+00:00"


def test_week_view_requires_week_start(employee_factory, headers_for):
    employee = employee_factory()

    r = client.get(f"/employees/{employee.id}/timesheet/week", headers=headers_for(employee))

    assert r.status_code == 422


def test_malformed_week_start_is_a_400(employee_factory, headers_for):
    employee = employee_factory()

    r = client.post(
        f"/employees/{employee.id}/timesheet/submit",
        json={"week_start": "last week"},
        headers=headers_for(employee),
    )

    assert r.status_code == 400
    assert r.json()["code"] == "invalid_input"


def test_hr_review_flow(employee_factory, headers_for, hr_headers, clock):
    employee = employee_factory(name="Dana")
    submitted = _submit(employee, headers_for(employee))

    listing = client.get(
        "/timesheets",
        params={"week_start": "2024-01-01", "status": "submitted"},
        headers=hr_headers,
    )
    assert listing.status_code == 200, listing.text
    rows = listing.json()["rows"]
    assert len(rows) == 1
    assert rows[0]["id"] == submitted["id"]
    assert rows[0]["employee_name"] == "Dana"
    assert rows[0]["status"] == "submitted"

    clock.set(datetime(2024, 1, 8, 10, 0, tzinfo=timezone.utc))
    decision = client.post(
        f"/timesheets/{submitted['id']}/decision",
        json={"decision": "approve", "hr_note": "thanks"},
        headers=hr_headers,
    )
    assert decision.status_code == 200, decision.text
    body = decision.json()
    assert body["status"] == "approved"
    assert body["hr_note"] == "thanks"
    assert body["decided_at"] == "2024-01-08T10:00:00+00:00"

    week = client.get(
        f"/employees/{employee.id}/timesheet/week",
        params={"week_start": "2024-01-03"},
        headers=headers_for(employee),
    ).json()
    assert week["status"] == "approved"
    assert week["hr_note"] == "thanks"


def test_decision_errors(employee_factory, headers_for, hr_headers, clock):
    employee = employee_factory()
    submitted = _submit(employee, headers_for(employee))

    bad = client.post(
        f"/timesheets/{submitted['id']}/decision",
        json={"decision": "maybe"},
        headers=hr_headers,
    )
    assert bad.status_code == 400
    assert bad.json()["code"] == "invalid_input"

    missing = client.post(
        "/timesheets/999999/decision",
        json={"decision": "approve"},
        headers=hr_headers,
    )
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"


def test_review_endpoints_are_hr_only(employee_factory, headers_for, clock):
    employee = employee_factory()
    headers = headers_for(employee)
    submitted = _submit(employee, headers)

    assert client.get("/timesheets", headers=headers).status_code == 403
    assert client.get("/timesheets/export.csv", headers=headers).status_code == 403
    r = client.post(
        f"/timesheets/{submitted['id']}/decision",
        json={"decision": "approve"},
        headers=headers,
    )
    assert r.status_code == 403


def test_csv_export(employee_factory, headers_for, hr_headers, clock):
    employee = employee_factory(name='Sam "The Clock" Lee')
    submitted = _submit(employee, headers_for(employee))
    client.post(
        f"/timesheets/{submitted['id']}/decision",
        json={"decision": "reject", "hr_note": 'Add "travel", please'},
        headers=hr_headers,
    )

    r = client.get(
        "/timesheets/export.csv",
        params={"week_start": "2024-01-01", "status": "rejected"},
        headers=hr_headers,
    )

    assert r.status_code == 200, r.text
    assert r.headers["content-type"].startswith("text/csv")
    assert 'filename="timesheets_2024-01-01_rejected.csv"' in r.headers["content-disposition"]

    text = r.text
    header, first = text.split("\r\n")[:2]
    assert header == "id,employee_id,employee_name,week_start,status,hr_note,submitted_at,decided_at"
    assert '"Sam ""The Clock"" Lee"' in first
    assert '"Add ""travel"", please"' in first

    parsed = list(csv.DictReader(io.StringIO(text)))
    assert len(parsed) == 1
    assert parsed[0]["hr_note"] == 'Add "travel", please'
    assert parsed[0]["status"] == "rejected"


def test_resubmission_after_rejection(employee_factory, headers_for, hr_headers, clock):
    employee = employee_factory()
    headers = headers_for(employee)
    submitted = _submit(employee, headers)
    client.post(
        f"/timesheets/{submitted['id']}/decision",
        json={"decision": "reject", "hr_note": "redo"},
        headers=hr_headers,
    )

    clock.advance(days=1)
    again = _submit(employee, headers)

    assert again["id"] == submitted["id"]
    assert again["status"] == "submitted"
    rows = client.get("/timesheets", headers=hr_headers).json()["rows"]
    assert len(rows) == 1
    assert rows[0]["submitted_at"] == "2024-01-03T09:00:00+00:00"
