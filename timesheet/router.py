from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from assignment.schema import TimeEntrySchema
from auth.services.auth_service import get_current_active_user
from authz.deps import get_authorizer
from core.cache import TIMESHEETS_TAG, TaggedCache, cache_key, get_cache
from core.database import get_db
from . import service
from .documents import get_document_generator
from .models import TimesheetStatus
from .schema import (
    ApprovalResponse,
    CompanyApprovalPayload,
    ManagerApprovalPayload,
    RejectPayload,
    TimesheetCreatePayload,
    TimesheetReviewSchema,
    TimesheetSchema,
    WorkerHoursSchema,
    )

timesheet_router = APIRouter(tags=["Timesheets"])

# List timesheets visible to the caller
@timesheet_router.get("/timesheets", response_model=list[TimesheetSchema])
def list_timesheets(
    status_filter: Optional[TimesheetStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    cache: TaggedCache = Depends(get_cache),
    ):
    key = cache_key("timesheets", {"status": status_filter}, user.id)
    return cache.get_or_set(
        key,
        lambda: [
            TimesheetSchema.model_validate(ts)
            for ts in service.list_timesheets(db, user, status=status_filter)
        ],
        tags=[TIMESHEETS_TAG],
    )

@timesheet_router.get("/timesheets/{timesheet_id}", response_model=TimesheetSchema)
def get_timesheet(
    timesheet_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    return service.get_timesheet(db, timesheet_id, user)

# Worked hours per worker, for approvers
@timesheet_router.get("/timesheets/{timesheet_id}/review", response_model=TimesheetReviewSchema)
def review_timesheet(
    timesheet_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    review = service.review_timesheet(db, timesheet_id, user)
    return TimesheetReviewSchema(
        timesheet=TimesheetSchema.model_validate(review.timesheet),
        workers=[
            WorkerHoursSchema(
                assignment_id=w.assignment.id,
                user_id=w.assignment.user_id,
                user_name=w.assignment.user.name if w.assignment.user else None,
                role_code=w.assignment.role_code,
                status=w.assignment.status,
                worked_minutes=w.worked_minutes,
                entries=[TimeEntrySchema.model_validate(e) for e in w.assignment.time_entries],
            )
            for w in review.workers
        ],
        total_minutes=review.total_minutes,
    )

# Explicit creation (scheduler)
@timesheet_router.post("/shifts/{shift_id}/timesheet", response_model=TimesheetSchema, status_code=status.HTTP_201_CREATED)
def create_timesheet(
    shift_id: int,
    payload: TimesheetCreatePayload = TimesheetCreatePayload(),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    return service.create_timesheet(
        db, shift_id, actor=user, submit=payload.submit, authorizer=authorizer, cache=cache
    )

@timesheet_router.post("/timesheets/{timesheet_id}/submit", response_model=TimesheetSchema)
def submit_timesheet(
    timesheet_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    return service.submit_timesheet(db, timesheet_id, actor=user, authorizer=authorizer, cache=cache)

@timesheet_router.post("/timesheets/{timesheet_id}/company-approval", response_model=ApprovalResponse)
def company_approval(
    timesheet_id: int,
    payload: CompanyApprovalPayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    generator = Depends(get_document_generator),
    ):
    result = service.approve_as_company(
        db,
        timesheet_id,
        signature=payload.signature,
        notes=payload.notes,
        actor=user,
        generator=generator,
        authorizer=authorizer,
        cache=cache,
    )
    return ApprovalResponse(
        timesheet=TimesheetSchema.model_validate(result.timesheet),
        document_generated=result.document_generated,
        document_error=str(result.document_error.detail) if result.document_error else None,
    )

@timesheet_router.post("/timesheets/{timesheet_id}/regenerate-document", response_model=TimesheetSchema)
def regenerate_document(
    timesheet_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    generator = Depends(get_document_generator),
    ):
    return service.regenerate_signed_document(
        db, timesheet_id, actor=user, generator=generator, authorizer=authorizer, cache=cache
    )

@timesheet_router.post("/timesheets/{timesheet_id}/manager-approval", response_model=TimesheetSchema)
def manager_approval(
    timesheet_id: int,
    payload: ManagerApprovalPayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    return service.approve_as_manager(
        db, timesheet_id, notes=payload.notes, actor=user, authorizer=authorizer, cache=cache
    )

@timesheet_router.post("/timesheets/{timesheet_id}/reject", response_model=TimesheetSchema)
def reject_timesheet(
    timesheet_id: int,
    payload: RejectPayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    return service.reject_timesheet(
        db, timesheet_id, reason=payload.reason, actor=user, authorizer=authorizer, cache=cache
    )
