from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from assignment.models import WorkerStatus
from assignment.schema import TimeEntrySchema
from .models import TimesheetStatus


class TimesheetSchema(BaseModel):
    id: int
    shift_id: int
    status: TimesheetStatus
    submitted_by: Optional[int] = None
    submitted_at: Optional[datetime] = None
    company_signature: Optional[str] = None
    company_approved_at: Optional[datetime] = None
    company_approved_by: Optional[int] = None
    company_notes: Optional[str] = None
    manager_approved_at: Optional[datetime] = None
    manager_approved_by: Optional[int] = None
    manager_notes: Optional[str] = None
    signed_pdf_url: Optional[str] = None
    rejection_reason: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    model_config = ConfigDict(from_attributes=True)


class TimesheetCreatePayload(BaseModel):
    submit: bool = True
    model_config = ConfigDict(extra="forbid")


class CompanyApprovalPayload(BaseModel):
    signature: str = Field(min_length=1)
    notes: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class ManagerApprovalPayload(BaseModel):
    notes: Optional[str] = None
    model_config = ConfigDict(extra="forbid")


class RejectPayload(BaseModel):
    reason: str = Field(min_length=1)
    model_config = ConfigDict(extra="forbid")


class ApprovalResponse(BaseModel):
    timesheet: TimesheetSchema
    document_generated: bool
    document_error: Optional[str] = None


class WorkerHoursSchema(BaseModel):
    assignment_id: int
    user_id: int
    user_name: Optional[str] = None
    role_code: str
    status: WorkerStatus
    worked_minutes: int
    entries: list[TimeEntrySchema]


class TimesheetReviewSchema(BaseModel):
    timesheet: TimesheetSchema
    workers: list[WorkerHoursSchema]
    total_minutes: int
