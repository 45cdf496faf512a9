"""Shift completion detection.

A shift is wound down once every assignment on it is ShiftEnded or NoShow.
The first time that holds, a timesheet is opened for company approval and
the shift is marked Completed; both writes commit together or not at all.
The worker transition that triggered the check is committed beforehand by
the caller and is never undone here.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from assignment.models import Assignment, TERMINAL_STATUSES
from shift.models import Shift, ShiftStatus
from timesheet.models import Timesheet, TimesheetStatus
from user.models import User

log = structlog.get_logger(__name__)


@dataclass
class CompletionOutcome:
    shift_complete: bool
    timesheet: Optional[Timesheet] = None
    created: bool = False
    error: Optional[str] = None


def is_shift_complete(db: Session, shift_id: int) -> bool:
    statuses = list(db.scalars(select(Assignment.status).where(Assignment.shift_id == shift_id)))
    return bool(statuses) and all(s in TERMINAL_STATUSES for s in statuses)


def get_timesheet_for_shift(db: Session, shift_id: int) -> Timesheet | None:
    return db.scalars(select(Timesheet).where(Timesheet.shift_id == shift_id)).first()


def open_timesheet(
    db: Session,
    shift: Shift,
    *,
    actor: User,
    now: datetime,
    status: TimesheetStatus = TimesheetStatus.PENDING_COMPANY_APPROVAL,
) -> Timesheet:
    """Stage a timesheet and the shift status change; the caller commits."""
    ts = Timesheet(shift_id=shift.id, status=status)
    if status == TimesheetStatus.PENDING_COMPANY_APPROVAL:
        ts.submitted_by = actor.id
        ts.submitted_at = now
    db.add(ts)
    shift.status = ShiftStatus.Completed
    return ts


def complete_shift_if_done(
    db: Session,
    shift_id: int,
    *,
    actor: User,
    now: Optional[datetime] = None,
) -> CompletionOutcome:
    now = now or datetime.now(timezone.utc)

    if not is_shift_complete(db, shift_id):
        return CompletionOutcome(shift_complete=False)

    existing = get_timesheet_for_shift(db, shift_id)
    if existing is not None:
        return CompletionOutcome(shift_complete=True, timesheet=existing)

    shift = db.get(Shift, shift_id)
    try:
        ts = open_timesheet(db, shift, actor=actor, now=now)
        db.commit()
    except IntegrityError:
        # another request opened it first
        db.rollback()
        existing = get_timesheet_for_shift(db, shift_id)
        return CompletionOutcome(shift_complete=True, timesheet=existing)
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("shift_completion_failed", shift_id=shift_id, error=str(exc))
        return CompletionOutcome(shift_complete=True, error=str(exc))

    db.refresh(ts)
    log.info("shift_completed", shift_id=shift_id, timesheet_id=ts.id, submitted_by=actor.id)
    return CompletionOutcome(shift_complete=True, timesheet=ts, created=True)
