from __future__ import annotations
from typing import Optional
from pydantic import BaseModel

from assignment.schema import AssignmentSchema, TimeEntrySchema
from completion.schema import CompletionSchema


class EndShiftResponse(BaseModel):
    assignment: AssignmentSchema
    completion: CompletionSchema


class EndAllResponse(BaseModel):
    shift_id: int
    ended: list[AssignmentSchema]
    completion: Optional[CompletionSchema] = None


class TimeEntriesResponse(BaseModel):
    assignment_id: int
    presence: str
    worked_minutes: int
    entries: list[TimeEntrySchema]


class BreakAllResponse(BaseModel):
    shift_id: int
    on_break: list[AssignmentSchema]
