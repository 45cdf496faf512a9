from __future__ import annotations
from datetime import datetime
from enum import Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Boolean, DateTime, ForeignKey, Enum as SAEnum, text
from core.database import Base

class UserRole(str, Enum):
    Staff = "Staff"
    Admin = "Admin"
    CompanyUser = "CompanyUser"
    CrewChief = "CrewChief"
    Employee = "Employee"

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role"), nullable=False, default=UserRole.Staff
    )
    is_active: Mapped[bool] = mapped_column(Boolean, server_default=text("true"), default=True, nullable=False)

    # company users are scoped to one company
    company_id: Mapped[int | None] = mapped_column(ForeignKey("companies.id"), index=True, nullable=True)

    # role eligibility flags
    crew_chief_eligible: Mapped[bool] = mapped_column(Boolean, server_default=text("false"), default=False, nullable=False)
    fork_operator_eligible: Mapped[bool] = mapped_column(Boolean, server_default=text("false"), default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # relationships
    company = relationship("Company", back_populates="users")
    assignments = relationship("Assignment", back_populates="user")

    def can_bypass_eligibility(self) -> bool:
        return self.role == UserRole.Admin
