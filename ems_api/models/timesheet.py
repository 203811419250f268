from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.schema import UniqueConstraint

from ems_api.database import Base

TIMESHEET_STATUSES = ("draft", "submitted", "approved", "rejected")


class Timesheet(Base):
    __tablename__ = "timesheets"

    id = Column(Integer, primary_key=True, index=True)

    employee_id = Column(
        Integer,
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    week_start = Column(Date, nullable=False, index=True)

    status = Column(String, nullable=False, default="draft", index=True)
    hr_note = Column(Text, nullable=True)

    submitted_at = Column(DateTime, nullable=True)
    decided_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("employee_id", "week_start", name="uq_timesheets_employee_week"),
        CheckConstraint(
            "status IN ('draft', 'submitted', 'approved', 'rejected')",
            name="ck_timesheets_status",
        ),
    )


class TimesheetNote(Base):
    __tablename__ = "timesheet_notes"

    id = Column(Integer, primary_key=True, index=True)

    employee_id = Column(
        Integer,
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    work_date = Column(Date, nullable=False)
    note = Column(Text, nullable=False, default="")
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="uq_timesheet_notes_employee_day"),
    )
