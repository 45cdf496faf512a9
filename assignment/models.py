from __future__ import annotations
from datetime import datetime
from enum import Enum
from sqlalchemy import DateTime, ForeignKey, String, Enum as SAEnum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from core.database import Base

class WorkerStatus(str, Enum):
    Assigned = "Assigned"
    ClockedIn = "ClockedIn"
    OnBreak = "OnBreak"
    ClockedOut = "ClockedOut"
    ShiftEnded = "ShiftEnded"
    NoShow = "NoShow"

TERMINAL_STATUSES = frozenset({WorkerStatus.ShiftEnded, WorkerStatus.NoShow})

class Assignment(Base):
    __tablename__ = "assignments"

    id: Mapped[int] = mapped_column(primary_key=True)
    shift_id: Mapped[int] = mapped_column(
        ForeignKey("shifts.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    # plain string so legacy codes (e.g. WR) can still be read and migrated
    role_code: Mapped[str] = mapped_column(String(8), nullable=False)
    status: Mapped[WorkerStatus] = mapped_column(
        SAEnum(WorkerStatus, name="worker_status"), nullable=False, default=WorkerStatus.Assigned
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # relationships
    shift = relationship("Shift", back_populates="assignments")
    user = relationship("User", back_populates="assignments")
    time_entries = relationship(
        "TimeEntry",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="TimeEntry.entry_number",
    )

    __table_args__ = (
        UniqueConstraint("shift_id", "user_id", name="uq_assignment_shift_user"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def active_entry(self):
        return next((e for e in self.time_entries if e.is_active), None)
