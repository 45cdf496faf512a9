from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from assignment.schema import AssignmentSchema, TimeEntrySchema
from auth.services.auth_service import get_current_active_user
from authz.deps import get_authorizer
from core.cache import TaggedCache, get_cache
from completion.schema import completion_schema
from core.database import get_db
from . import service
from .schema import BreakAllResponse, EndAllResponse, EndShiftResponse, TimeEntriesResponse

timeclock_router = APIRouter(tags=["Time Tracking"])

@timeclock_router.post("/assignments/{assignment_id}/clock-in", response_model=TimeEntrySchema)
def clock_in(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    return service.clock_in(db, assignment_id, actor=user, authorizer=authorizer, cache=cache)

@timeclock_router.post("/assignments/{assignment_id}/clock-out", response_model=TimeEntrySchema)
def clock_out(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    return service.clock_out(db, assignment_id, actor=user, authorizer=authorizer, cache=cache)

@timeclock_router.post("/assignments/{assignment_id}/end-shift", response_model=EndShiftResponse)
def end_shift(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    result = service.end_worker_shift(db, assignment_id, actor=user, authorizer=authorizer, cache=cache)
    return EndShiftResponse(
        assignment=AssignmentSchema.model_validate(result.assignment),
        completion=completion_schema(result.completion),
    )

@timeclock_router.post("/shifts/{shift_id}/end-all", response_model=EndAllResponse)
def end_all(
    shift_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    result = service.end_all_worker_shifts(db, shift_id, actor=user, authorizer=authorizer, cache=cache)
    return EndAllResponse(
        shift_id=result.shift_id,
        ended=[AssignmentSchema.model_validate(a) for a in result.ended],
        completion=completion_schema(result.completion) if result.completion else None,
    )

@timeclock_router.post("/shifts/{shift_id}/break-all", response_model=BreakAllResponse)
def break_all(
    shift_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    result = service.start_break_for_all(db, shift_id, actor=user, authorizer=authorizer, cache=cache)
    return BreakAllResponse(
        shift_id=result.shift_id,
        on_break=[AssignmentSchema.model_validate(a) for a in result.on_break],
    )

@timeclock_router.get("/assignments/{assignment_id}/time-entries", response_model=TimeEntriesResponse)
def list_time_entries(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    row = service.get_assignment(db, assignment_id)
    return TimeEntriesResponse(
        assignment_id=row.id,
        presence=service.presence_label(row),
        worked_minutes=service.worked_minutes(row.time_entries, now=datetime.now(timezone.utc)),
        entries=[TimeEntrySchema.model_validate(e) for e in row.time_entries],
    )
