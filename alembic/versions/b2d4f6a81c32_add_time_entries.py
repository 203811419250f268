"""add time entries

Revision ID: b2d4f6a81c32
Revises: a1c3e5f70b21
Create Date: 2026-10-12 09:31:47.502913

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b2d4f6a81c32'
down_revision: Union[str, Sequence[str], None] = 'a1c3e5f70b21'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "time_entries",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("ended_at", sa.DateTime(), nullable=True),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.ForeignKeyConstraint(
            ["employee_id"],
            ["employees.id"],
            name="fk_time_entries_employee_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_time_entries_id", "time_entries", ["id"], unique=False)
    op.create_index("ix_time_entries_employee_id", "time_entries", ["employee_id"], unique=False)
    op.create_index("ix_time_entries_work_date", "time_entries", ["work_date"], unique=False)
    op.create_index(
        "ix_time_entries_employee_work_date",
        "time_entries",
        ["employee_id", "work_date"],
        unique=False,
    )

    # at most one open interval per employee per day
    op.create_index(
        "uq_time_entries_open",
        "time_entries",
        ["employee_id", "work_date"],
        unique=True,
        postgresql_where=sa.text("ended_at IS NULL"),
        sqlite_where=sa.text("ended_at IS NULL"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("uq_time_entries_open", table_name="time_entries")
    op.drop_index("ix_time_entries_employee_work_date", table_name="time_entries")
    op.drop_index("ix_time_entries_work_date", table_name="time_entries")
    op.drop_index("ix_time_entries_employee_id", table_name="time_entries")
    op.drop_index("ix_time_entries_id", table_name="time_entries")
    op.drop_table("time_entries")
