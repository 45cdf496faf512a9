from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth.services.auth_service import get_current_active_user
from core.cache import TaggedCache, cache_key, get_cache, shift_tag
from core.database import get_db
from . import service
from .schema import RoleFulfillmentSchema, ShiftFulfillmentSchema

fulfillment_router = APIRouter(prefix="/shifts", tags=["Fulfillment"])

@fulfillment_router.get("/{shift_id}/fulfillment", response_model=ShiftFulfillmentSchema)
def get_fulfillment(
    shift_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    cache: TaggedCache = Depends(get_cache),
    ):
    key = cache_key("fulfillment", {"shift_id": shift_id}, user.id)
    return cache.get_or_set(key, lambda: service.shift_fulfillment(db, shift_id), tags=[shift_tag(shift_id)])

@fulfillment_router.get("/{shift_id}/workers-needed", response_model=list[RoleFulfillmentSchema])
def get_workers_needed(
    shift_id: int,
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
    ):
    return service.shift_workers_needed(db, shift_id)
