from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, text
from sqlalchemy.schema import Index

from ems_api.database import Base


class TimeEntry(Base):
    __tablename__ = "time_entries"

    id = Column(Integer, primary_key=True, index=True)

    employee_id = Column(
        Integer,
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    started_at = Column(DateTime, nullable=False)
    ended_at = Column(DateTime, nullable=True)

    work_date = Column(Date, nullable=False, index=True)

    __table_args__ = (
        Index("ix_time_entries_employee_work_date", "employee_id", "work_date"),
        # one open interval per employee per day
        Index(
            "uq_time_entries_open",
            "employee_id",
            "work_date",
            unique=True,
            postgresql_where=text("ended_at IS NULL"),
            sqlite_where=text("ended_at IS NULL"),
        ),
    )

    @property
    def is_open(self) -> bool:
        return self.ended_at is None
