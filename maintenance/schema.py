from __future__ import annotations
from pydantic import BaseModel, ConfigDict

from requirement.roles import RoleCode


class LegacyRoleMigrationPayload(BaseModel):
    legacy_code: str = "WR"
    target: RoleCode = RoleCode.SH
    model_config = ConfigDict(extra="forbid")


class ShiftMigrationSchema(BaseModel):
    shift_id: int
    converted: int
    previous_required: int
    new_required: int


class LegacyRoleMigrationReport(BaseModel):
    legacy_code: str
    target: RoleCode
    assignments_updated: int
    shifts_updated: int
    shifts: list[ShiftMigrationSchema]
