from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth.services.auth_service import get_current_active_user
from authz.deps import get_authorizer
from core.cache import TaggedCache, get_cache
from core.database import get_db
from . import service
from .schema import RequirementsPayload, ShiftRequirementsSchema

requirement_router = APIRouter(prefix="/shifts", tags=["Requirements"])

@requirement_router.get("/{shift_id}/requirements", response_model=ShiftRequirementsSchema)
def get_requirements(
    shift_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    return service.get_requirements(db, shift_id)

@requirement_router.put("/{shift_id}/requirements", response_model=ShiftRequirementsSchema)
def set_requirements(
    shift_id: int,
    payload: RequirementsPayload,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    return service.set_requirements(
        db, shift_id, payload.requirements, actor=user, authorizer=authorizer, cache=cache
    )
