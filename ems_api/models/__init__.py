from ems_api.models.audit_log import AuditLog
from ems_api.models.employee import Employee
from ems_api.models.hr_user import HrUser
from ems_api.models.time_entry import TimeEntry
from ems_api.models.timesheet import Timesheet, TimesheetNote

__all__ = [
    "AuditLog",
    "Employee",
    "HrUser",
    "TimeEntry",
    "Timesheet",
    "TimesheetNote",
]
