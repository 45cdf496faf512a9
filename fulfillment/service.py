from __future__ import annotations
from collections import Counter
from typing import Iterable

from sqlalchemy.orm import Session

from assignment.models import Assignment, WorkerStatus
from requirement.roles import ROLE_TABLE, RoleCode
from requirement.service import normalized_counts
from shift.service import get_shift_or_404
from .calculator import calculate_fulfillment, fulfillment_percentage
from .schema import RoleFulfillmentSchema, ShiftFulfillmentSchema


def _assigned_by_role(assignments: Iterable[Assignment]) -> Counter:
    # no-shows never count toward staffing
    return Counter(a.role_code for a in assignments if a.status != WorkerStatus.NoShow)


def role_breakdown(required: dict[RoleCode, int], assignments: Iterable[Assignment]) -> list[RoleFulfillmentSchema]:
    assigned = _assigned_by_role(assignments)
    return [
        RoleFulfillmentSchema(
            role_code=code,
            role_name=info.display_name,
            required=required.get(code, 0),
            assigned=assigned.get(code.value, 0),
            needed=max(0, required.get(code, 0) - assigned.get(code.value, 0)),
        )
        for code, info in ROLE_TABLE.items()
    ]


def workers_needed(required: dict[RoleCode, int], assignments: Iterable[Assignment]) -> list[RoleFulfillmentSchema]:
    """Roles that are required on the shift and still have open slots."""
    return [r for r in role_breakdown(required, assignments) if r.required > 0 and r.needed > 0]


def shift_fulfillment(db: Session, shift_id: int) -> ShiftFulfillmentSchema:
    shift = get_shift_or_404(db, shift_id)
    required = normalized_counts(shift)
    roles = role_breakdown(required, shift.assignments)

    total_required = sum(required.values())
    # legacy role codes still count as staffed heads
    total_assigned = sum(_assigned_by_role(shift.assignments).values())
    return ShiftFulfillmentSchema(
        shift_id=shift.id,
        required=total_required,
        assigned=total_assigned,
        percentage=fulfillment_percentage(total_required, total_assigned),
        status=calculate_fulfillment(total_required, total_assigned),
        roles=roles,
    )


def shift_workers_needed(db: Session, shift_id: int) -> list[RoleFulfillmentSchema]:
    shift = get_shift_or_404(db, shift_id)
    return workers_needed(normalized_counts(shift), shift.assignments)
