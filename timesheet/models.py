from __future__ import annotations
from datetime import datetime
from enum import Enum
from sqlalchemy import DateTime, ForeignKey, String, Text, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from core.database import Base

class TimesheetStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING_COMPANY_APPROVAL = "PENDING_COMPANY_APPROVAL"
    PENDING_MANAGER_APPROVAL = "PENDING_MANAGER_APPROVAL"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"

PENDING_STATUSES = frozenset({
    TimesheetStatus.PENDING_COMPANY_APPROVAL,
    TimesheetStatus.PENDING_MANAGER_APPROVAL,
})

class Timesheet(Base):
    __tablename__ = "timesheets"

    id: Mapped[int] = mapped_column(primary_key=True)
    shift_id: Mapped[int] = mapped_column(
        ForeignKey("shifts.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    status: Mapped[TimesheetStatus] = mapped_column(
        SAEnum(TimesheetStatus, name="timesheet_status"), nullable=False, default=TimesheetStatus.DRAFT
    )

    submitted_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # company stage
    company_signature: Mapped[str | None] = mapped_column(Text(), nullable=True)
    company_approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    company_approved_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    company_notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    # manager stage
    manager_approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    manager_approved_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    manager_notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    signed_pdf_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    rejection_reason: Mapped[str | None] = mapped_column(Text(), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    shift = relationship("Shift", back_populates="timesheet")
