from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from authz.deps import get_authorizer, require_admin
from core.cache import TaggedCache, get_cache
from core.database import get_db
from . import service
from .schema import LegacyRoleMigrationPayload, LegacyRoleMigrationReport

maintenance_router = APIRouter(prefix="/admin", tags=["Admin"])

@maintenance_router.post("/migrate-legacy-roles", response_model=LegacyRoleMigrationReport)
def migrate_legacy_roles(
    payload: LegacyRoleMigrationPayload = LegacyRoleMigrationPayload(),
    db: Session = Depends(get_db),
    admin = Depends(require_admin),
    authorizer = Depends(get_authorizer),
    cache: TaggedCache = Depends(get_cache),
    ):
    return service.migrate_legacy_role(
        db,
        payload.legacy_code,
        payload.target,
        actor=admin,
        authorizer=authorizer,
        cache=cache,
    )
