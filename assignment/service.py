from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional, List

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from authz.policy import Action, Authorizer, authorize
from completion.service import CompletionOutcome, complete_shift_if_done
from core.cache import TaggedCache, invalidate_shift
from core.errors import (
    AlreadyAssigned,
    AssignmentLocked,
    InvalidTransition,
    NotEligible,
    NotFound,
    TimeConflict,
)
from shift.service import get_shift_or_404
from user.eligibility import EligibilityLookup, default_eligibility
from user.models import User
from requirement.roles import role_info
from .conflict import has_conflict
from .models import Assignment, WorkerStatus
from .schema import AssignmentCreate

log = structlog.get_logger(__name__)


# LIST
def get_assignments(
    db: Session,
    *,
    shift_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> List[Assignment]:
    stmt = select(Assignment)
    if shift_id is not None:
        stmt = stmt.where(Assignment.shift_id == shift_id)
    if user_id is not None:
        stmt = stmt.where(Assignment.user_id == user_id)

    stmt = stmt.order_by(Assignment.shift_id, Assignment.id)
    return list(db.scalars(stmt))


def get_assignment(db: Session, assignment_id: int) -> Assignment:
    row = db.get(Assignment, assignment_id)
    if row is None:
        raise NotFound("assignment not found")
    return row


def get_assignment_for_user(db: Session, shift_id: int, user_id: int) -> Assignment | None:
    stmt = select(Assignment).where(Assignment.shift_id == shift_id, Assignment.user_id == user_id)
    return db.scalars(stmt).first()


def assign_worker(
    db: Session,
    dto: AssignmentCreate,
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    eligibility: Optional[EligibilityLookup] = None,
    cache: Optional[TaggedCache] = None,
) -> Assignment:
    shift = get_shift_or_404(db, dto.shift_id)
    authorize(db, actor, Action.MANAGE_ASSIGNMENTS, shift, authorizer=authorizer)

    worker_flags = (eligibility or default_eligibility).lookup(db, dto.user_id)
    if worker_flags is None:
        raise NotFound("worker not found")

    replaced: Assignment | None = None
    if dto.replace_assignment_id is not None:
        replaced = db.get(Assignment, dto.replace_assignment_id)
        if replaced is None or replaced.shift_id != shift.id:
            raise NotFound("assignment to replace not found")
        if replaced.time_entries or replaced.status != WorkerStatus.Assigned:
            raise AssignmentLocked("cannot replace an assignment with clock activity")

    existing = get_assignment_for_user(db, shift.id, dto.user_id)
    if existing is not None and existing is not replaced:
        raise AlreadyAssigned()

    if not worker_flags.allows(dto.role_code):
        raise NotEligible(f"worker is not eligible for {role_info(dto.role_code).display_name}")

    conflict = has_conflict(db, dto.user_id, shift.id)
    if conflict is not None:
        log.info(
            "assignment_time_conflict",
            shift_id=shift.id,
            user_id=dto.user_id,
            conflicting_shift_id=conflict.shift_id,
        )
        raise TimeConflict(conflict)

    if replaced is not None:
        db.delete(replaced)
        # the delete must hit the table before the insert reuses (shift_id, user_id)
        db.flush()

    row = Assignment(
        shift_id=shift.id,
        user_id=dto.user_id,
        role_code=dto.role_code.value,
        status=WorkerStatus.Assigned,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyAssigned()
    db.refresh(row)
    invalidate_shift(cache, shift)

    log.info(
        "worker_assigned",
        assignment_id=row.id,
        shift_id=shift.id,
        user_id=row.user_id,
        role_code=row.role_code,
        replaced_assignment_id=dto.replace_assignment_id,
    )
    return row


def unassign_worker(
    db: Session,
    assignment_id: int,
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
) -> None:
    row = get_assignment(db, assignment_id)
    shift = row.shift
    authorize(db, actor, Action.MANAGE_ASSIGNMENTS, shift, authorizer=authorizer)

    if row.time_entries or row.status != WorkerStatus.Assigned:
        raise AssignmentLocked()

    db.delete(row)
    db.commit()
    invalidate_shift(cache, shift)
    log.info("worker_unassigned", assignment_id=assignment_id, shift_id=shift.id)


def mark_no_show(
    db: Session,
    assignment_id: int,
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> tuple[Assignment, CompletionOutcome]:
    now = now or datetime.now(timezone.utc)
    row = get_assignment(db, assignment_id)
    authorize(db, actor, Action.MANAGE_ASSIGNMENTS, row.shift, authorizer=authorizer)

    if row.status == WorkerStatus.NoShow:
        raise InvalidTransition("worker is already marked as no show")
    if row.time_entries or row.status != WorkerStatus.Assigned:
        raise InvalidTransition("worker has already started their shift")

    row.status = WorkerStatus.NoShow
    db.commit()
    log.info("worker_marked_no_show", assignment_id=row.id, shift_id=row.shift_id)

    outcome = complete_shift_if_done(db, row.shift_id, actor=actor, now=now)
    db.refresh(row)
    invalidate_shift(cache, row.shift)
    return row, outcome
