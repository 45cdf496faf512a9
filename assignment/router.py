from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from core.cache import TaggedCache, cache_key, get_cache, shift_tag
from auth.services.auth_service import get_current_active_user
from authz.deps import get_authorizer
from completion.schema import completion_schema
from .schema import (
    AssignmentSchema,
    AssignmentCreatePayload,
    AssignmentCreate,
    ConflictCheckResponse,
    ConflictSchema,
    NoShowResponse,
    )
from . import service
from .conflict import find_conflicts

assignment_router = APIRouter(tags=["Assignments"])

# List a shift's assignments
@assignment_router.get("/shifts/{shift_id}/assignments", response_model=list[AssignmentSchema])
def list_assignments(
    shift_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    cache: TaggedCache = Depends(get_cache),
    ):
    service.get_shift_or_404(db, shift_id)
    key = cache_key("assignments", {"shift_id": shift_id}, user.id)
    return cache.get_or_set(
        key,
        lambda: [AssignmentSchema.model_validate(a) for a in service.get_assignments(db, shift_id=shift_id)],
        tags=[shift_tag(shift_id)],
    )

# Assign a worker (optionally replacing an untouched assignment)
@assignment_router.post(
    "/shifts/{shift_id}/assignments",
    response_model=AssignmentSchema,
    status_code=status.HTTP_201_CREATED,
    )
def assign_worker(
    shift_id: int,
    payload: AssignmentCreatePayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    dto = AssignmentCreate(shift_id=shift_id, **payload.model_dump())
    return service.assign_worker(db, dto, actor=user, authorizer=authorizer, cache=cache)

# Read-only double-booking pre-check
@assignment_router.get("/shifts/{shift_id}/conflicts", response_model=ConflictCheckResponse)
def check_conflicts(
    shift_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    conflicts = find_conflicts(db, user_id, shift_id)
    return ConflictCheckResponse(
        has_conflicts=bool(conflicts),
        conflicts=[ConflictSchema.model_validate(c) for c in conflicts],
    )

@assignment_router.get("/assignments/{assignment_id}", response_model=AssignmentSchema)
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    return service.get_assignment(db, assignment_id)

@assignment_router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def unassign_worker(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    service.unassign_worker(db, assignment_id, actor=user, authorizer=authorizer, cache=cache)
    return None

@assignment_router.post("/assignments/{assignment_id}/no-show", response_model=NoShowResponse)
def mark_no_show(
    assignment_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    row, outcome = service.mark_no_show(db, assignment_id, actor=user, authorizer=authorizer, cache=cache)
    return NoShowResponse(
        assignment=AssignmentSchema.model_validate(row),
        completion=completion_schema(outcome),
    )
