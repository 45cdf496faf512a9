from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from auth.services.auth_service import get_current_active_user
from authz.deps import require_scheduler
from user.models import UserRole
from .schemas import ShiftSchema, ShiftCreate
from shift import service

shift_router = APIRouter(prefix="/shifts", tags=["Shifts"])

@shift_router.get("", response_model=list[ShiftSchema])
def list_shifts(
    job_id: Optional[int] = Query(None, description="Filter by job"),
    on_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    user = Depends(get_current_active_user),
):
    # company users only ever see their own company's shifts
    company_id = user.company_id if user.role == UserRole.CompanyUser else None
    return service.get_shifts(db, job_id=job_id, company_id=company_id, on_date=on_date)

@shift_router.get("/{shift_id}", response_model=ShiftSchema)
def get_shift(shift_id: int, db: Session = Depends(get_db), user = Depends(get_current_active_user)):
    return service.get_shift_or_404(db, shift_id)

@shift_router.post("", response_model=ShiftSchema, status_code=status.HTTP_201_CREATED)
def create_shift(payload: ShiftCreate, db: Session = Depends(get_db), user = Depends(require_scheduler)):
    return service.create_shift(db, payload)
