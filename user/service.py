import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.cache import TaggedCache
from core.errors import Conflict, NotFound
from user.models import User
from user.schemas import UserCreate, EligibilityUpdate

log = structlog.get_logger(__name__)


def get_users(db: Session):
    return list(db.scalars(select(User).order_by(User.id)))


def get_user(db: Session, user_id: int):
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str):
    return db.scalars(select(User).where(User.email == email)).first()


def create_user(db: Session, user: UserCreate):
    db_user = User(
        name=user.name,
        email=str(user.email),
        role=user.role,
        company_id=user.company_id,
        crew_chief_eligible=user.crew_chief_eligible,
        fork_operator_eligible=user.fork_operator_eligible,
        is_active=True,
    )
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("a user with this email already exists")
    db.refresh(db_user)
    return db_user


def update_eligibility(db: Session, user_id: int, patch: EligibilityUpdate, cache: TaggedCache | None = None):
    db_user = get_user(db, user_id)
    if db_user is None:
        raise NotFound("user not found")
    for field, value in patch.model_dump(exclude_unset=True).items():
        setattr(db_user, field, value)
    db.commit()
    db.refresh(db_user)
    if cache is not None:
        # eligibility feeds cached assignment views
        cache.clear()
    log.info("user_eligibility_updated", user_id=db_user.id)
    return db_user
