from __future__ import annotations
from pydantic import BaseModel, ConfigDict

from .roles import RoleCode


class RoleRequirementItem(BaseModel):
    role_code: RoleCode
    # sign checked by the service so negatives surface as InvalidRequirement
    required_count: int

    model_config = ConfigDict(extra="forbid")


class RequirementsPayload(BaseModel):
    requirements: list[RoleRequirementItem]

    model_config = ConfigDict(extra="forbid")


class ShiftRequirementsSchema(BaseModel):
    shift_id: int
    CC: int
    SH: int
    FO: int
    RFO: int
    RG: int
    GL: int

    @property
    def total(self) -> int:
        return self.CC + self.SH + self.FO + self.RFO + self.RG + self.GL
