"""Timesheet approval workflow.

DRAFT -> PENDING_COMPANY_APPROVAL -> PENDING_MANAGER_APPROVAL -> COMPLETED,
with REJECTED reachable from either pending state. COMPLETED and REJECTED
are terminal.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, List

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from assignment.models import Assignment
from authz.policy import Action, Authorizer, authorize
from completion.service import get_timesheet_for_shift, is_shift_complete, open_timesheet
from core.cache import TaggedCache, invalidate_shift
from core.errors import Conflict, ExternalServiceFailure, Forbidden, InvalidState, NotFound
from job.models import Job
from requirement.roles import RoleCode
from shift.models import Shift
from shift.service import get_shift_or_404
from timeclock.service import worked_minutes
from user.models import User, UserRole
from .documents import DocumentGenerationError, DocumentGenerator, HttpDocumentGenerator
from .models import PENDING_STATUSES, Timesheet, TimesheetStatus

log = structlog.get_logger(__name__)


@dataclass
class ApprovalResult:
    timesheet: Timesheet
    document_error: Optional[ExternalServiceFailure] = None

    @property
    def document_generated(self) -> bool:
        return self.document_error is None and bool(self.timesheet.signed_pdf_url)


@dataclass
class WorkerHours:
    assignment: Assignment
    worked_minutes: int


@dataclass
class TimesheetReview:
    timesheet: Timesheet
    workers: List[WorkerHours]

    @property
    def total_minutes(self) -> int:
        return sum(w.worked_minutes for w in self.workers)


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _require_status(ts: Timesheet, *allowed: TimesheetStatus) -> None:
    if ts.status not in allowed:
        wanted = " or ".join(s.value for s in allowed)
        raise InvalidState(f"timesheet is {ts.status.value}, expected {wanted}")


# VISIBILITY
def _visible_stmt(actor: User):
    stmt = select(Timesheet).join(Shift, Timesheet.shift_id == Shift.id)
    if actor.role in (UserRole.Admin, UserRole.Staff):
        return stmt
    if actor.role == UserRole.CrewChief:
        cc_shifts = select(Assignment.shift_id).where(
            Assignment.user_id == actor.id,
            Assignment.role_code == RoleCode.CC.value,
        )
        return stmt.where(Timesheet.shift_id.in_(cc_shifts))
    if actor.role == UserRole.CompanyUser and actor.company_id is not None:
        return stmt.join(Job, Shift.job_id == Job.id).where(Job.company_id == actor.company_id)
    return None


def list_timesheets(
    db: Session,
    actor: User,
    *,
    status: Optional[TimesheetStatus] = None,
) -> List[Timesheet]:
    stmt = _visible_stmt(actor)
    if stmt is None:
        return []
    if status is not None:
        stmt = stmt.where(Timesheet.status == status)
    stmt = stmt.order_by(Timesheet.created_at.desc(), Timesheet.id.desc())
    return list(db.scalars(stmt))


def get_timesheet(db: Session, timesheet_id: int, actor: Optional[User] = None) -> Timesheet:
    ts = db.get(Timesheet, timesheet_id)
    if ts is None:
        raise NotFound("timesheet not found")
    if actor is not None:
        stmt = _visible_stmt(actor)
        if stmt is None or db.scalars(stmt.where(Timesheet.id == ts.id)).first() is None:
            raise Forbidden("not allowed to view this timesheet")
    return ts


def review_timesheet(db: Session, timesheet_id: int, actor: Optional[User] = None) -> TimesheetReview:
    """Timesheet plus each worker's ordered time entries; only closed segments count."""
    ts = get_timesheet(db, timesheet_id, actor)
    rows = sorted(ts.shift.assignments, key=lambda a: a.id)
    return TimesheetReview(
        timesheet=ts,
        workers=[WorkerHours(assignment=a, worked_minutes=worked_minutes(a.time_entries)) for a in rows],
    )


# CREATE
def create_timesheet(
    db: Session,
    shift_id: int,
    *,
    actor: User,
    submit: bool = True,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> Timesheet:
    shift = get_shift_or_404(db, shift_id)
    authorize(db, actor, Action.CREATE_TIMESHEET, shift, authorizer=authorizer)

    if get_timesheet_for_shift(db, shift.id) is not None:
        raise Conflict()
    if not is_shift_complete(db, shift.id):
        raise InvalidState("shift still has workers who have not finished")

    status = TimesheetStatus.PENDING_COMPANY_APPROVAL if submit else TimesheetStatus.DRAFT
    ts = open_timesheet(db, shift, actor=actor, now=_now(now), status=status)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict()
    db.refresh(ts)
    invalidate_shift(cache, shift)

    log.info("timesheet_created", timesheet_id=ts.id, shift_id=shift.id, status=ts.status.value)
    return ts


def submit_timesheet(
    db: Session,
    timesheet_id: int,
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> Timesheet:
    ts = get_timesheet(db, timesheet_id)
    authorize(db, actor, Action.CREATE_TIMESHEET, ts.shift, authorizer=authorizer)
    _require_status(ts, TimesheetStatus.DRAFT)

    ts.status = TimesheetStatus.PENDING_COMPANY_APPROVAL
    ts.submitted_by = actor.id
    ts.submitted_at = _now(now)
    db.commit()
    db.refresh(ts)
    invalidate_shift(cache, ts.shift)

    log.info("timesheet_submitted", timesheet_id=ts.id, submitted_by=actor.id)
    return ts


# APPROVALS
def _attach_document(db: Session, ts: Timesheet, generator: DocumentGenerator) -> None:
    try:
        url = generator.generate_signed(ts.id, ts.company_signature)
    except DocumentGenerationError as e:
        raise ExternalServiceFailure(f"signed document generation failed: {e}") from e
    except Exception as e:
        log.exception("timesheet_document_renderer_crashed", timesheet_id=ts.id)
        raise ExternalServiceFailure(f"signed document generation failed: {e}") from e
    ts.signed_pdf_url = url
    db.commit()
    db.refresh(ts)


def approve_as_company(
    db: Session,
    timesheet_id: int,
    *,
    signature: str,
    notes: Optional[str] = None,
    actor: User,
    generator: Optional[DocumentGenerator] = None,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> ApprovalResult:
    ts = get_timesheet(db, timesheet_id)
    authorize(db, actor, Action.APPROVE_AS_COMPANY, ts.shift, authorizer=authorizer)
    _require_status(ts, TimesheetStatus.PENDING_COMPANY_APPROVAL)
    if not signature or not signature.strip():
        raise InvalidState("company signature is required")

    ts.company_signature = signature
    ts.company_approved_at = _now(now)
    ts.company_approved_by = actor.id
    ts.company_notes = notes
    ts.status = TimesheetStatus.PENDING_MANAGER_APPROVAL
    db.commit()
    db.refresh(ts)
    invalidate_shift(cache, ts.shift)
    log.info("timesheet_company_approved", timesheet_id=ts.id, approved_by=actor.id)

    # document rendering happens outside the approval transaction
    error: Optional[ExternalServiceFailure] = None
    try:
        _attach_document(db, ts, generator or HttpDocumentGenerator())
    except ExternalServiceFailure as e:
        db.rollback()
        error = e
        log.warning("timesheet_document_failed", timesheet_id=ts.id, error=str(e.detail))
    return ApprovalResult(timesheet=ts, document_error=error)


def regenerate_signed_document(
    db: Session,
    timesheet_id: int,
    *,
    actor: User,
    generator: Optional[DocumentGenerator] = None,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
) -> Timesheet:
    ts = get_timesheet(db, timesheet_id)
    authorize(db, actor, Action.GENERATE_DOCUMENT, ts.shift, authorizer=authorizer)
    _require_status(ts, TimesheetStatus.PENDING_MANAGER_APPROVAL, TimesheetStatus.COMPLETED)
    if not ts.company_signature:
        raise InvalidState("timesheet has no company signature")

    try:
        _attach_document(db, ts, generator or HttpDocumentGenerator())
    except ExternalServiceFailure:
        db.rollback()
        log.warning("timesheet_document_failed", timesheet_id=ts.id)
        raise
    invalidate_shift(cache, ts.shift)
    log.info("timesheet_document_generated", timesheet_id=ts.id)
    return ts


def approve_as_manager(
    db: Session,
    timesheet_id: int,
    *,
    notes: Optional[str] = None,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> Timesheet:
    ts = get_timesheet(db, timesheet_id)
    authorize(db, actor, Action.APPROVE_AS_MANAGER, ts.shift, authorizer=authorizer)
    _require_status(ts, TimesheetStatus.PENDING_MANAGER_APPROVAL)

    ts.manager_approved_at = _now(now)
    ts.manager_approved_by = actor.id
    ts.manager_notes = notes
    ts.status = TimesheetStatus.COMPLETED
    db.commit()
    db.refresh(ts)
    invalidate_shift(cache, ts.shift)

    log.info("timesheet_manager_approved", timesheet_id=ts.id, approved_by=actor.id)
    return ts


def reject_timesheet(
    db: Session,
    timesheet_id: int,
    *,
    reason: str,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
    now: Optional[datetime] = None,
) -> Timesheet:
    ts = get_timesheet(db, timesheet_id)
    authorize(db, actor, Action.REJECT_TIMESHEET, ts.shift, authorizer=authorizer)
    if ts.status not in PENDING_STATUSES:
        raise InvalidState(f"cannot reject a timesheet that is {ts.status.value}")

    ts.status = TimesheetStatus.REJECTED
    ts.rejection_reason = reason
    ts.rejected_at = _now(now)
    ts.rejected_by = actor.id
    db.commit()
    db.refresh(ts)
    invalidate_shift(cache, ts.shift)

    log.info("timesheet_rejected", timesheet_id=ts.id, rejected_by=actor.id)
    return ts
