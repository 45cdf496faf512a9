from fastapi import Depends, HTTPException, Request
from auth.services.auth_service import get_current_active_user
from user.models import User, UserRole
from .policy import Authorizer, default_authorizer

def require_admin(user: User = Depends(get_current_active_user)) -> User:
    if user.role != UserRole.Admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user

def require_scheduler(user: User = Depends(get_current_active_user)) -> User:
    if user.role not in (UserRole.Admin, UserRole.Staff):
        raise HTTPException(status_code=403, detail="Admin or Staff role required")
    return user

def get_authorizer(request: Request) -> Authorizer:
    return getattr(request.app.state, "authorizer", None) or default_authorizer
