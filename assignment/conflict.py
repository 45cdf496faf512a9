"""
Double-booking check for worker assignments.
A worker may not hold two assignments whose shifts overlap on the same date.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from company.models import Company
from job.models import Job
from shift.models import Shift
from shift.service import get_shift_or_404
from .models import Assignment, WorkerStatus


@dataclass(frozen=True)
class ShiftConflict:
    shift_id: int
    company_name: str
    job_name: str
    start_at: datetime
    end_at: datetime


def find_conflicts(db: Session, user_id: int, candidate_shift_id: int) -> list[ShiftConflict]:
    """
    All of the worker's other same-day assignments overlapping the candidate.

    Intervals are half-open, so a shift ending at 13:00 does not clash with
    one starting at 13:00. No-show assignments never block.
    """
    candidate = get_shift_or_404(db, candidate_shift_id)

    stmt = (
        select(Shift, Job.name, Company.name)
        .join(Assignment, Assignment.shift_id == Shift.id)
        .join(Job, Job.id == Shift.job_id)
        .join(Company, Company.id == Job.company_id)
        .where(
            Assignment.user_id == user_id,
            Assignment.status != WorkerStatus.NoShow,
            Shift.id != candidate.id,
            Shift.date == candidate.date,
            Shift.start_at < candidate.end_at,
            Shift.end_at > candidate.start_at,
        )
        .order_by(Shift.start_at, Shift.id)
    )
    return [
        ShiftConflict(
            shift_id=shift.id,
            company_name=company_name,
            job_name=job_name,
            start_at=shift.start_at,
            end_at=shift.end_at,
        )
        for shift, job_name, company_name in db.execute(stmt)
    ]


def has_conflict(db: Session, user_id: int, candidate_shift_id: int) -> Optional[ShiftConflict]:
    conflicts = find_conflicts(db, user_id, candidate_shift_id)
    return conflicts[0] if conflicts else None
