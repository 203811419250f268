"""add timesheets and timesheet notes

Revision ID: c3e5a7b92d43
Revises: b2d4f6a81c32
Create Date: 2026-10-13 14:02:19.880145

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c3e5a7b92d43'
down_revision: Union[str, Sequence[str], None] = 'b2d4f6a81c32'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "timesheets",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("hr_note", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("decided_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["employee_id"],
            ["employees.id"],
            name="fk_timesheets_employee_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("employee_id", "week_start", name="uq_timesheets_employee_week"),
        sa.CheckConstraint(
            "status IN ('draft', 'submitted', 'approved', 'rejected')",
            name="ck_timesheets_status",
        ),
    )
    op.create_index("ix_timesheets_id", "timesheets", ["id"], unique=False)
    op.create_index("ix_timesheets_employee_id", "timesheets", ["employee_id"], unique=False)
    op.create_index("ix_timesheets_week_start", "timesheets", ["week_start"], unique=False)
    op.create_index("ix_timesheets_status", "timesheets", ["status"], unique=False)

    op.create_table(
        "timesheet_notes",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("note", sa.Text(), nullable=False, server_default=""),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["employee_id"],
            ["employees.id"],
            name="fk_timesheet_notes_employee_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("employee_id", "work_date", name="uq_timesheet_notes_employee_day"),
    )
    op.create_index("ix_timesheet_notes_id", "timesheet_notes", ["id"], unique=False)
    op.create_index("ix_timesheet_notes_employee_id", "timesheet_notes", ["employee_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_timesheet_notes_employee_id", table_name="timesheet_notes")
    op.drop_index("ix_timesheet_notes_id", table_name="timesheet_notes")
    op.drop_table("timesheet_notes")

    op.drop_index("ix_timesheets_status", table_name="timesheets")
    op.drop_index("ix_timesheets_week_start", table_name="timesheets")
    op.drop_index("ix_timesheets_employee_id", table_name="timesheets")
    op.drop_index("ix_timesheets_id", table_name="timesheets")
    op.drop_table("timesheets")
