# shift/service.py
from __future__ import annotations
from datetime import date
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from core.errors import NotFound
from job.models import Job
from .models import Shift
from .schemas import ShiftCreate

def get_shift(db: Session, shift_id: int) -> Shift | None:
    return db.get(Shift, shift_id)

def get_shift_or_404(db: Session, shift_id: int) -> Shift:
    shift = db.get(Shift, shift_id)
    if shift is None:
        raise NotFound("shift not found")
    return shift

def get_shifts(
    db: Session,
    *,
    job_id: Optional[int] = None,
    company_id: Optional[int] = None,
    on_date: Optional[date] = None,
) -> list[Shift]:
    stmt = select(Shift)
    if job_id is not None:
        stmt = stmt.where(Shift.job_id == job_id)
    if company_id is not None:
        stmt = stmt.join(Job, Job.id == Shift.job_id).where(Job.company_id == company_id)
    if on_date is not None:
        stmt = stmt.where(Shift.date == on_date)
    stmt = stmt.order_by(Shift.start_at, Shift.id)
    return list(db.scalars(stmt))

def create_shift(db: Session, dto: ShiftCreate) -> Shift:
    # imported here: requirement.service imports this module
    from requirement.service import apply_requirements

    if db.get(Job, dto.job_id) is None:
        raise NotFound("job not found")

    row = Shift(
        job_id=dto.job_id,
        date=dto.date or dto.start_at.date(),
        start_at=dto.start_at,
        end_at=dto.end_at,
        notes=dto.notes,
    )
    apply_requirements(row, dto.requirements)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
