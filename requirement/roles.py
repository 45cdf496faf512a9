from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RoleCode(str, Enum):
    CC = "CC"
    SH = "SH"
    FO = "FO"
    RFO = "RFO"
    RG = "RG"
    GL = "GL"


@dataclass(frozen=True)
class RoleInfo:
    display_name: str
    requirement_field: str
    eligibility_flag: Optional[str] = None


ROLE_TABLE: dict[RoleCode, RoleInfo] = {
    RoleCode.CC: RoleInfo("Crew Chief", "required_crew_chiefs", "crew_chief_eligible"),
    RoleCode.SH: RoleInfo("Stagehand", "required_stagehands"),
    RoleCode.FO: RoleInfo("Fork Operator", "required_fork_operators", "fork_operator_eligible"),
    RoleCode.RFO: RoleInfo("Reach Fork Operator", "required_reach_fork_operators", "fork_operator_eligible"),
    RoleCode.RG: RoleInfo("Rigger", "required_riggers"),
    RoleCode.GL: RoleInfo("General Laborer", "required_general_laborers"),
}


def role_info(code: RoleCode | str) -> RoleInfo:
    return ROLE_TABLE[RoleCode(code)]


def parse_role_code(value: str) -> Optional[RoleCode]:
    try:
        return RoleCode(value)
    except ValueError:
        return None
