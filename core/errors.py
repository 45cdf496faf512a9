"""Error kinds raised by the staffing and timesheet services.

Every kind is an ``HTTPException`` so routers can let them propagate and
FastAPI renders them with the right status code. ``kind`` is the stable,
machine-readable name callers (and tests) switch on.
"""
from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class EngineError(HTTPException):
    kind: str = "EngineError"
    status_code_default: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "request could not be processed"

    def __init__(self, detail: Any = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=detail if detail is not None else self.default_detail,
        )

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.detail}


class InvalidRequirement(EngineError):
    kind = "InvalidRequirement"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "invalid role requirement"


class AlreadyAssigned(EngineError):
    kind = "AlreadyAssigned"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "worker is already assigned to this shift"


class NotEligible(EngineError):
    kind = "NotEligible"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "worker is not eligible for this role"


class TimeConflict(EngineError):
    kind = "TimeConflict"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "worker has an overlapping shift"

    def __init__(self, conflict):
        self.conflict = conflict
        super().__init__(
            {
                "message": self.default_detail,
                "conflict": {
                    "shift_id": conflict.shift_id,
                    "company_name": conflict.company_name,
                    "job_name": conflict.job_name,
                    "start_at": conflict.start_at.isoformat(),
                    "end_at": conflict.end_at.isoformat(),
                },
            }
        )


class AssignmentLocked(EngineError):
    kind = "AssignmentLocked"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "assignment has clock activity and cannot be removed"


class InvalidTransition(EngineError):
    kind = "InvalidTransition"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "transition not allowed from the current worker status"


class AlreadyEnded(EngineError):
    kind = "AlreadyEnded"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "worker shift has already ended"


class NotFound(EngineError):
    kind = "NotFound"
    status_code_default = status.HTTP_404_NOT_FOUND
    default_detail = "not found"


class Forbidden(EngineError):
    kind = "Forbidden"
    status_code_default = status.HTTP_403_FORBIDDEN
    default_detail = "not allowed"


class InvalidState(EngineError):
    kind = "InvalidState"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "timesheet is not in a state that allows this action"


class Conflict(EngineError):
    kind = "Conflict"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "timesheet already exists for this shift"


class ExternalServiceFailure(EngineError):
    kind = "ExternalServiceFailure"
    status_code_default = status.HTTP_502_BAD_GATEWAY
    default_detail = "external service call failed"
