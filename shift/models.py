from __future__ import annotations

import datetime as dt
from enum import Enum
from sqlalchemy import Date, DateTime, Integer, Text, ForeignKey, Enum as SAEnum, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from core.database import Base

class ShiftStatus(str, Enum):
    Pending = "Pending"
    Active = "Active"
    InProgress = "InProgress"
    Completed = "Completed"
    Cancelled = "Cancelled"

class Shift(Base):
    __tablename__ = "shifts"

    id: Mapped[int] = mapped_column(primary_key=True)

    job_id: Mapped[int] = mapped_column(
        ForeignKey("jobs.id", ondelete="CASCADE"), index=True, nullable=False
    )

    date: Mapped[dt.date] = mapped_column(Date(), nullable=False)
    start_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at:   Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[ShiftStatus] = mapped_column(
        SAEnum(ShiftStatus, name="shift_status"), nullable=False, default=ShiftStatus.Pending
    )
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    # per-role requirement counters (crew chiefs normalized to >= 1 on read)
    required_crew_chiefs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required_stagehands: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required_fork_operators: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required_reach_fork_operators: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required_riggers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    required_general_laborers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # relationships
    job = relationship("Job", back_populates="shifts")
    assignments = relationship(
        "Assignment", back_populates="shift", cascade="all, delete-orphan", order_by="Assignment.id"
    )
    timesheet = relationship("Timesheet", back_populates="shift", uselist=False, cascade="all, delete-orphan")

# conflict lookups go by date
Index("ix_shifts_date_start", Shift.date, Shift.start_at)
