from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from completion.schema import CompletionSchema
from requirement.roles import RoleCode
from .models import WorkerStatus


class TimeEntrySchema(BaseModel):
    id: int
    entry_number: int
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class AssignmentSchema(BaseModel):
    id: int
    shift_id: int
    user_id: int
    role_code: str
    status: WorkerStatus
    time_entries: list[TimeEntrySchema] = []
    model_config = ConfigDict(from_attributes=True)


# PUBLIC payload from clients
class AssignmentCreatePayload(BaseModel):
    user_id: int
    role_code: RoleCode
    replace_assignment_id: Optional[int] = None
    model_config = ConfigDict(extra="forbid")


# INTERNAL DTO for the service
class AssignmentCreate(BaseModel):
    shift_id: int
    user_id: int
    role_code: RoleCode
    replace_assignment_id: Optional[int] = None


class ConflictSchema(BaseModel):
    shift_id: int
    company_name: str
    job_name: str
    start_at: datetime
    end_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ConflictCheckResponse(BaseModel):
    has_conflicts: bool
    conflicts: list[ConflictSchema]


class NoShowResponse(BaseModel):
    assignment: AssignmentSchema
    completion: CompletionSchema
