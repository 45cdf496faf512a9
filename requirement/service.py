from __future__ import annotations
from typing import Iterable, Optional

import structlog
from sqlalchemy.orm import Session

from authz.policy import Action, Authorizer, authorize
from core.cache import TaggedCache, invalidate_shift
from core.errors import InvalidRequirement
from shift.models import Shift
from shift.service import get_shift_or_404
from user.models import User
from .roles import ROLE_TABLE, RoleCode
from .schema import RoleRequirementItem, ShiftRequirementsSchema

log = structlog.get_logger(__name__)


def normalized_counts(shift: Shift) -> dict[RoleCode, int]:
    counts = {code: int(getattr(shift, info.requirement_field) or 0) for code, info in ROLE_TABLE.items()}
    counts[RoleCode.CC] = max(counts[RoleCode.CC], 1)
    return counts


def _validate(items: Iterable[RoleRequirementItem]) -> dict[RoleCode, int]:
    counts: dict[RoleCode, int] = {}
    for item in items:
        code = RoleCode(item.role_code)
        if code in counts:
            raise InvalidRequirement(f"role {code.value} listed more than once")
        if item.required_count < 0:
            raise InvalidRequirement(f"required count for {code.value} must be >= 0")
        counts[code] = int(item.required_count)
    return counts


def apply_requirements(shift: Shift, items: Iterable[RoleRequirementItem]) -> None:
    """Overwrite all six counters on ``shift``; roles not listed become 0."""
    counts = _validate(items)
    for code, info in ROLE_TABLE.items():
        setattr(shift, info.requirement_field, counts.get(code, 0))


def get_requirements(db: Session, shift_id: int) -> ShiftRequirementsSchema:
    shift = get_shift_or_404(db, shift_id)
    counts = normalized_counts(shift)
    return ShiftRequirementsSchema(shift_id=shift.id, **{code.value: n for code, n in counts.items()})


def set_requirements(
    db: Session,
    shift_id: int,
    items: list[RoleRequirementItem],
    *,
    actor: User,
    authorizer: Optional[Authorizer] = None,
    cache: Optional[TaggedCache] = None,
) -> ShiftRequirementsSchema:
    shift = get_shift_or_404(db, shift_id)
    authorize(db, actor, Action.MANAGE_REQUIREMENTS, shift, authorizer=authorizer)

    apply_requirements(shift, items)
    db.commit()
    db.refresh(shift)
    invalidate_shift(cache, shift)

    log.info("shift_requirements_set", shift_id=shift.id, actor_id=actor.id)
    return get_requirements(db, shift.id)
