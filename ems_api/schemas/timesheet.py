from typing import Optional

from pydantic import BaseModel


class TimesheetNoteRequest(BaseModel):
    work_date: str
    note: Optional[str] = ""


class TimesheetSubmitRequest(BaseModel):
    week_start: str


class TimesheetDecisionRequest(BaseModel):
    # validated by the service so unknown values give 400, not 422
    decision: str
    hr_note: Optional[str] = None


class StartShiftResponse(BaseModel):
    started: bool
    already_running: bool


class StopShiftResponse(BaseModel):
    stopped: bool
    not_running: bool


class TimeSummaryResponse(BaseModel):
    running: bool
    today_hours: float
    week_hours: float
    total_hours: float
    today_seconds: int
    week_seconds: int
    total_seconds: int
