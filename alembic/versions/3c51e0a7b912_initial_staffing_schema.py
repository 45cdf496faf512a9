"""Initial staffing and timesheet schema

Revision ID: 3c51e0a7b912
Revises:
Create Date: 2026-10-18 10:12:04.311842
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c51e0a7b912"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLE = ("Staff", "Admin", "CompanyUser", "CrewChief", "Employee")
SHIFT_STATUS = ("Pending", "Active", "InProgress", "Completed", "Cancelled")
WORKER_STATUS = ("Assigned", "ClockedIn", "OnBreak", "ClockedOut", "ShiftEnded", "NoShow")
TIMESHEET_STATUS = (
    "DRAFT",
    "PENDING_COMPANY_APPROVAL",
    "PENDING_MANAGER_APPROVAL",
    "COMPLETED",
    "REJECTED",
)


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_jobs_company_id"), "jobs", ["company_id"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.Enum(*USER_ROLE, name="user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=True),
        sa.Column("crew_chief_eligible", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("fork_operator_eligible", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index(op.f("ix_users_company_id"), "users", ["company_id"], unique=False)

    op.create_table(
        "shifts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("job_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.Enum(*SHIFT_STATUS, name="shift_status"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("required_crew_chiefs", sa.Integer(), nullable=False),
        sa.Column("required_stagehands", sa.Integer(), nullable=False),
        sa.Column("required_fork_operators", sa.Integer(), nullable=False),
        sa.Column("required_reach_fork_operators", sa.Integer(), nullable=False),
        sa.Column("required_riggers", sa.Integer(), nullable=False),
        sa.Column("required_general_laborers", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_shifts_job_id"), "shifts", ["job_id"], unique=False)
    op.create_index("ix_shifts_date_start", "shifts", ["date", "start_at"], unique=False)

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("shift_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role_code", sa.String(length=8), nullable=False),
        sa.Column("status", sa.Enum(*WORKER_STATUS, name="worker_status"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["shift_id"], ["shifts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shift_id", "user_id", name="uq_assignment_shift_user"),
    )
    op.create_index(op.f("ix_assignments_shift_id"), "assignments", ["shift_id"], unique=False)
    op.create_index(op.f("ix_assignments_user_id"), "assignments", ["user_id"], unique=False)

    op.create_table(
        "time_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("assignment_id", sa.Integer(), nullable=False),
        sa.Column("entry_number", sa.Integer(), nullable=False),
        sa.Column("clock_in", sa.DateTime(timezone=True), nullable=True),
        sa.Column("clock_out", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["assignment_id"], ["assignments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("assignment_id", "entry_number", name="uq_time_entry_number"),
    )
    op.create_index(op.f("ix_time_entries_assignment_id"), "time_entries", ["assignment_id"], unique=False)

    op.create_table(
        "timesheets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("shift_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.Enum(*TIMESHEET_STATUS, name="timesheet_status"), nullable=False),
        sa.Column("submitted_by", sa.Integer(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("company_signature", sa.Text(), nullable=True),
        sa.Column("company_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("company_approved_by", sa.Integer(), nullable=True),
        sa.Column("company_notes", sa.Text(), nullable=True),
        sa.Column("manager_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("manager_approved_by", sa.Integer(), nullable=True),
        sa.Column("manager_notes", sa.Text(), nullable=True),
        sa.Column("signed_pdf_url", sa.String(length=1024), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["shift_id"], ["shifts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["submitted_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["company_approved_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["manager_approved_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["rejected_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shift_id"),
    )


def downgrade() -> None:
    op.drop_table("timesheets")
    op.drop_index(op.f("ix_time_entries_assignment_id"), table_name="time_entries")
    op.drop_table("time_entries")
    op.drop_index(op.f("ix_assignments_user_id"), table_name="assignments")
    op.drop_index(op.f("ix_assignments_shift_id"), table_name="assignments")
    op.drop_table("assignments")
    op.drop_index("ix_shifts_date_start", table_name="shifts")
    op.drop_index(op.f("ix_shifts_job_id"), table_name="shifts")
    op.drop_table("shifts")
    op.drop_index(op.f("ix_users_company_id"), table_name="users")
    op.drop_table("users")
    op.drop_index(op.f("ix_jobs_company_id"), table_name="jobs")
    op.drop_table("jobs")
    op.drop_table("companies")

    # enum types only exist as separate objects on postgres
    bind = op.get_bind()
    for name in ("timesheet_status", "worker_status", "shift_status", "user_role"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
