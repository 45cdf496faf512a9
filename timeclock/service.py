from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

import structlog
from sqlalchemy.orm import Session

from assignment.models import Assignment, WorkerStatus
from assignment.service import get_assignment
from authz.policy import Action, Authorizer, authorize
from completion.service import CompletionOutcome, complete_shift_if_done
from core.cache import TaggedCache, invalidate_shift
from core.config_loader import settings
from core.errors import AlreadyEnded, InvalidTransition
from shift.models import ShiftStatus
from shift.service import get_shift_or_404
from user.models import User
from .models import TimeEntry

log = structlog.get_logger(__name__)


@dataclass
class EndShiftResult:
    assignment: Assignment
    completion: CompletionOutcome


@dataclass
class EndAllResult:
    shift_id: int
    ended: list[Assignment] = field(default_factory=list)
    completion: Optional[CompletionOutcome] = None


@dataclass
class BreakAllResult:
    shift_id: int
    on_break: list[Assignment] = field(default_factory=list)


def presence_label(assignment: Assignment) -> str:
    """Display status; a worker clocked out between segments reads as on break."""
    if assignment.status == WorkerStatus.ClockedOut and assignment.time_entries:
        return "on_break"
    return {
        WorkerStatus.Assigned: "not_started",
        WorkerStatus.ClockedIn: "working",
        WorkerStatus.OnBreak: "on_break",
        WorkerStatus.ShiftEnded: "shift_ended",
        WorkerStatus.NoShow: "no_show",
    }.get(assignment.status, assignment.status.value)


def worked_minutes(entries: Iterable[TimeEntry], *, now: Optional[datetime] = None) -> int:
    """Minutes across closed segments, plus the open one up to ``now`` if given."""
    total = 0.0
    for e in entries:
        if e.clock_in is None:
            continue
        end = e.clock_out or (now if e.is_active else None)
        if end is None:
            continue
        # sqlite hands back naive UTC
        if end.tzinfo is not None and e.clock_in.tzinfo is None:
            end = end.astimezone(timezone.utc).replace(tzinfo=None)
        total += (end - e.clock_in).total_seconds() / 60
    return int(total)


def _ensure_not_terminal(row: Assignment, action: str) -> None:
    if row.status == WorkerStatus.NoShow:
        raise InvalidTransition(f"cannot {action} a worker marked as no show")
    if row.status == WorkerStatus.ShiftEnded:
        raise InvalidTransition(f"cannot {action} - worker shift has already ended")


def clock_in(
    db: Session,
    assignment_id: int,
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> TimeEntry:
    now = now or datetime.now(timezone.utc)
    row = get_assignment(db, assignment_id)
    authorize(db, actor, Action.TRACK_TIME, row.shift, authorizer=authorizer)

    _ensure_not_terminal(row, "clock in")
    if row.active_entry is not None:
        raise InvalidTransition("worker is already clocked in")
    limit = settings.MAX_TIME_ENTRIES
    if limit is not None and len(row.time_entries) >= limit:
        raise InvalidTransition(f"maximum time entries ({limit}) reached for this shift")

    entry = TimeEntry(
        entry_number=len(row.time_entries) + 1,
        clock_in=now,
        clock_out=None,
        is_active=True,
    )
    row.time_entries.append(entry)
    row.status = WorkerStatus.ClockedIn
    if row.shift.status in (ShiftStatus.Pending, ShiftStatus.Active):
        row.shift.status = ShiftStatus.InProgress
    db.commit()
    db.refresh(entry)
    invalidate_shift(cache, row.shift)

    log.info("worker_clocked_in", assignment_id=row.id, entry_number=entry.entry_number)
    return entry


def clock_out(
    db: Session,
    assignment_id: int,
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> TimeEntry:
    now = now or datetime.now(timezone.utc)
    row = get_assignment(db, assignment_id)
    authorize(db, actor, Action.TRACK_TIME, row.shift, authorizer=authorizer)

    _ensure_not_terminal(row, "clock out")
    entry = row.active_entry
    if entry is None:
        raise InvalidTransition("no active clock-in found for this worker")

    entry.clock_out = now
    entry.is_active = False
    row.status = WorkerStatus.ClockedOut
    db.commit()
    db.refresh(entry)
    invalidate_shift(cache, row.shift)

    log.info("worker_clocked_out", assignment_id=row.id, entry_number=entry.entry_number)
    return entry


def _close_out(row: Assignment, now: datetime) -> bool:
    entry = row.active_entry
    if entry is not None:
        entry.clock_out = now
        entry.is_active = False
    row.status = WorkerStatus.ShiftEnded
    return entry is not None


def end_worker_shift(
    db: Session,
    assignment_id: int,
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> EndShiftResult:
    now = now or datetime.now(timezone.utc)
    row = get_assignment(db, assignment_id)
    authorize(db, actor, Action.TRACK_TIME, row.shift, authorizer=authorizer)

    if row.status == WorkerStatus.ShiftEnded:
        raise AlreadyEnded()
    if row.status == WorkerStatus.NoShow:
        raise InvalidTransition("cannot end shift for a no-show worker")

    had_active = _close_out(row, now)
    db.commit()
    log.info("worker_shift_ended", assignment_id=row.id, shift_id=row.shift_id, closed_active_entry=had_active)

    outcome = complete_shift_if_done(db, row.shift_id, actor=actor, now=now)
    db.refresh(row)
    invalidate_shift(cache, row.shift)
    return EndShiftResult(assignment=row, completion=outcome)


def end_all_worker_shifts(
    db: Session,
    shift_id: int,
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> EndAllResult:
    """End every worker who has clocked in at least once and is still on the shift."""
    now = now or datetime.now(timezone.utc)
    shift = get_shift_or_404(db, shift_id)
    authorize(db, actor, Action.TRACK_TIME, shift, authorizer=authorizer)

    active = [a for a in shift.assignments if not a.is_terminal and a.time_entries]
    if not active:
        raise InvalidTransition("no workers have active shifts to end")

    for row in active:
        _close_out(row, now)
    db.commit()
    log.info("shift_workers_ended", shift_id=shift.id, workers=len(active))

    outcome = complete_shift_if_done(db, shift.id, actor=actor, now=now)
    for row in active:
        db.refresh(row)
    invalidate_shift(cache, shift)
    return EndAllResult(shift_id=shift.id, ended=active, completion=outcome)


def start_break_for_all(
    db: Session,
    shift_id: int,
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> BreakAllResult:
    """Clock out every worker currently on the clock so the crew breaks together."""
    now = now or datetime.now(timezone.utc)
    shift = get_shift_or_404(db, shift_id)
    authorize(db, actor, Action.TRACK_TIME, shift, authorizer=authorizer)

    working = [a for a in shift.assignments if not a.is_terminal and a.active_entry is not None]
    if not working:
        raise InvalidTransition("no workers are currently clocked in")

    for row in working:
        entry = row.active_entry
        entry.clock_out = now
        entry.is_active = False
        row.status = WorkerStatus.ClockedOut
    db.commit()
    for row in working:
        db.refresh(row)
    invalidate_shift(cache, shift)

    log.info("shift_break_started", shift_id=shift.id, workers=len(working))
    return BreakAllResult(shift_id=shift.id, on_break=working)


def get_time_entries(db: Session, assignment_id: int) -> list[TimeEntry]:
    return list(get_assignment(db, assignment_id).time_entries)
