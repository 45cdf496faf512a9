from fastapi import APIRouter, Depends, HTTPException, status

from sqlalchemy.orm import Session

from auth.services.auth_service import get_current_active_user
from core.cache import TaggedCache, get_cache
from core.database import get_db
from user.models import User
from authz.deps import require_admin, require_scheduler
from user.schemas import UserSchema, UserCreate, EligibilityUpdate
from user.service import get_users, create_user, get_user, update_eligibility

user_router = APIRouter(
    prefix='/users',
    tags=['Users']
)

# Get all users
@user_router.get('', response_model=list[UserSchema])
def user_list(db: Session = Depends(get_db), _sched: User = Depends(require_scheduler)):
    return get_users(db)

# Get current user
@user_router.get('/me', response_model=UserSchema)
def user_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# Get user details
@user_router.get('/{user_id}', response_model=UserSchema)
def user_detail(user_id: int, db: Session = Depends(get_db), _sched: User = Depends(require_scheduler)):
    db_user = get_user(db, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")

    return db_user

# Create a user (admin only)
@user_router.post('', response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def user_post(user: UserCreate, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    return create_user(db, user)

# Change role eligibility flags (admin only)
@user_router.patch('/{user_id}/eligibility', response_model=UserSchema)
def user_eligibility(
    user_id: int,
    patch: EligibilityUpdate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
    cache: TaggedCache = Depends(get_cache),
):
    return update_eligibility(db, user_id, patch, cache)
