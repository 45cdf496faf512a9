import datetime as dt
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator

from shift.models import ShiftStatus
from requirement.schema import RoleRequirementItem

class ShiftSchema(BaseModel):
    id: int
    job_id: int
    date: dt.date
    start_at: datetime
    end_at: datetime
    status: ShiftStatus
    notes: Optional[str] = None
    required_crew_chiefs: int = 0
    required_stagehands: int = 0
    required_fork_operators: int = 0
    required_reach_fork_operators: int = 0
    required_riggers: int = 0
    required_general_laborers: int = 0

    model_config = ConfigDict(from_attributes=True)

class ShiftCreate(BaseModel):
    job_id: int
    date: Optional[dt.date] = Field(None, description="Defaults to the calendar date of start_at")
    start_at: datetime
    end_at: datetime
    notes: Optional[str] = None
    requirements: list[RoleRequirementItem] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        return self
