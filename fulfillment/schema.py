from __future__ import annotations
from pydantic import BaseModel

from requirement.roles import RoleCode
from .calculator import Fulfillment


class RoleFulfillmentSchema(BaseModel):
    role_code: RoleCode
    role_name: str
    required: int
    assigned: int
    needed: int


class ShiftFulfillmentSchema(BaseModel):
    shift_id: int
    required: int
    assigned: int
    percentage: int
    status: Fulfillment
    roles: list[RoleFulfillmentSchema]
