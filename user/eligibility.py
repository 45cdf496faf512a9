from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from requirement.roles import RoleCode, role_info
from .models import User, UserRole


@dataclass(frozen=True)
class Eligibility:
    crew_chief_eligible: bool
    fork_operator_eligible: bool
    global_role: UserRole

    def can_bypass_eligibility(self) -> bool:
        return self.global_role == UserRole.Admin

    def allows(self, role_code: RoleCode) -> bool:
        if self.can_bypass_eligibility():
            return True
        flag = role_info(role_code).eligibility_flag
        if flag is None:
            return True
        return bool(getattr(self, flag))


class EligibilityLookup(Protocol):
    def lookup(self, db: Session, user_id: int) -> Optional[Eligibility]:
        ...


class UserEligibilityLookup:
    """Reads eligibility flags straight off the users table."""

    def lookup(self, db: Session, user_id: int) -> Optional[Eligibility]:
        user = db.get(User, user_id)
        if user is None:
            return None
        return Eligibility(
            crew_chief_eligible=user.crew_chief_eligible,
            fork_operator_eligible=user.fork_operator_eligible,
            global_role=user.role,
        )


default_eligibility = UserEligibilityLookup()
