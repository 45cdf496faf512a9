"""Authorization collaborator.

Services ask ``authorize(...)`` before mutating anything; the default
``RoleAuthorizer`` answers from the actor's global role, their company and
whether they run the shift as its crew chief.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.errors import Forbidden
from assignment.models import Assignment
from requirement.roles import RoleCode
from shift.models import Shift
from user.models import User, UserRole


class Action(str, Enum):
    MANAGE_REQUIREMENTS = "manage_requirements"
    MANAGE_ASSIGNMENTS = "manage_assignments"
    TRACK_TIME = "track_time"
    CREATE_TIMESHEET = "create_timesheet"
    APPROVE_AS_COMPANY = "approve_as_company"
    APPROVE_AS_MANAGER = "approve_as_manager"
    REJECT_TIMESHEET = "reject_timesheet"
    GENERATE_DOCUMENT = "generate_document"
    MIGRATE_ROLES = "migrate_roles"


class Authorizer(Protocol):
    def allows(self, db: Session, actor: User, action: Action, shift: Optional[Shift]) -> bool:
        ...


def is_crew_chief_on_shift(db: Session, user_id: int, shift_id: int) -> bool:
    stmt = select(Assignment.id).where(
        Assignment.shift_id == shift_id,
        Assignment.user_id == user_id,
        Assignment.role_code == RoleCode.CC.value,
    )
    return db.scalar(stmt) is not None


def owns_shift_company(actor: User, shift: Optional[Shift]) -> bool:
    if shift is None or actor.company_id is None:
        return False
    return shift.job is not None and shift.job.company_id == actor.company_id


class RoleAuthorizer:
    def allows(self, db: Session, actor: User, action: Action, shift: Optional[Shift]) -> bool:
        if actor is None or not actor.is_active:
            return False
        role = actor.role

        if role == UserRole.Admin:
            return True

        if action in (Action.MANAGE_REQUIREMENTS, Action.CREATE_TIMESHEET):
            return role == UserRole.Staff

        if action in (Action.MANAGE_ASSIGNMENTS, Action.TRACK_TIME):
            if role == UserRole.Staff:
                return True
            return role == UserRole.CrewChief and shift is not None and is_crew_chief_on_shift(db, actor.id, shift.id)

        if action in (Action.APPROVE_AS_COMPANY, Action.REJECT_TIMESHEET, Action.GENERATE_DOCUMENT):
            if role == UserRole.CompanyUser:
                return owns_shift_company(actor, shift)
            if role == UserRole.CrewChief:
                return shift is not None and is_crew_chief_on_shift(db, actor.id, shift.id)
            return False

        # APPROVE_AS_MANAGER and MIGRATE_ROLES are admin-only
        return False


default_authorizer = RoleAuthorizer()


def authorize(
    db: Session,
    actor: User,
    action: Action,
    shift: Optional[Shift] = None,
    *,
    authorizer: Optional[Authorizer] = None,
) -> None:
    authorizer = authorizer or default_authorizer
    if not authorizer.allows(db, actor, action, shift):
        raise Forbidden(f"not allowed to {action.value.replace('_', ' ')}")
