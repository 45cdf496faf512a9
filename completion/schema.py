from __future__ import annotations
from typing import Optional
from pydantic import BaseModel


class CompletionSchema(BaseModel):
    shift_complete: bool
    timesheet_id: Optional[int] = None
    timesheet_created: bool = False
    error: Optional[str] = None


def completion_schema(outcome) -> CompletionSchema:
    return CompletionSchema(
        shift_complete=outcome.shift_complete,
        timesheet_id=outcome.timesheet.id if outcome.timesheet is not None else None,
        timesheet_created=outcome.created,
        error=outcome.error,
    )
