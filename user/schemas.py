from typing import Optional
from pydantic import BaseModel, EmailStr, ConfigDict

from user.models import UserRole

class UserSchema(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole
    is_active: bool
    company_id: Optional[int] = None
    crew_chief_eligible: bool
    fork_operator_eligible: bool
    model_config = ConfigDict(from_attributes=True)

class UserCreate(BaseModel):
    name: str
    email: EmailStr
    role: UserRole = UserRole.Staff
    company_id: Optional[int] = None
    crew_chief_eligible: bool = False
    fork_operator_eligible: bool = False
    model_config = ConfigDict(extra="forbid")

class EligibilityUpdate(BaseModel):
    crew_chief_eligible: Optional[bool] = None
    fork_operator_eligible: Optional[bool] = None
    model_config = ConfigDict(extra="forbid")
