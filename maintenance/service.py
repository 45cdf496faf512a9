"""
One-off data repair: convert assignments still carrying a retired role code
(e.g. WR) to a current one and raise the matching shift requirement so the
converted workers remain counted. Running it again finds nothing to convert.
"""
from __future__ import annotations
from collections import Counter
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from assignment.models import Assignment
from authz.policy import Action, Authorizer, authorize
from core.cache import TaggedCache, invalidate_shift
from core.errors import InvalidRequirement
from requirement.roles import RoleCode, parse_role_code, role_info
from shift.models import Shift
from user.models import User
from .schema import LegacyRoleMigrationReport, ShiftMigrationSchema

log = structlog.get_logger(__name__)


def migrate_legacy_role(
    db: Session,
    legacy: str = "WR",
    target: RoleCode = RoleCode.SH,
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
) -> LegacyRoleMigrationReport:
    authorize(db, actor, Action.MIGRATE_ROLES, authorizer=authorizer)
    if parse_role_code(legacy) is not None:
        raise InvalidRequirement(f"{legacy} is a current role code, not a legacy one")

    field = role_info(target).requirement_field
    rows = list(db.scalars(select(Assignment).where(Assignment.role_code == legacy)))
    per_shift = Counter(a.shift_id for a in rows)

    shifts: list[ShiftMigrationSchema] = []
    touched: list[Shift] = []
    for a in rows:
        a.role_code = target.value
    for shift_id, converted in sorted(per_shift.items()):
        shift = db.get(Shift, shift_id)
        previous = getattr(shift, field) or 0
        setattr(shift, field, previous + converted)
        touched.append(shift)
        shifts.append(
            ShiftMigrationSchema(
                shift_id=shift_id,
                converted=converted,
                previous_required=previous,
                new_required=previous + converted,
            )
        )
    db.commit()

    for shift in touched:
        invalidate_shift(cache, shift)

    log.info(
        "legacy_role_migrated",
        legacy_code=legacy,
        target=target.value,
        assignments_updated=len(rows),
        shifts_updated=len(shifts),
    )
    return LegacyRoleMigrationReport(
        legacy_code=legacy,
        target=target,
        assignments_updated=len(rows),
        shifts_updated=len(shifts),
        shifts=shifts,
    )
