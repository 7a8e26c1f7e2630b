from typing import Iterable, List, Optional, Tuple
import uuid
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from socialgraph.core.exceptions import ConflictError, NotFoundError
from socialgraph.modules.user_management.models.user import User
from socialgraph.modules.user_management.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def get_user_or_404(db: Session, user_id: str) -> User:
    """Get user by ID, raising NotFoundError when missing"""
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError("User not found", {"user_id": user_id})
    return user

def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """Get user by username"""
    return db.query(User).filter(User.username == username).first()

def get_users_by_ids(
    db: Session,
    user_ids: Iterable[str],
    after_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[User]:
    """Get users for a set of IDs, ordered by ID, optionally starting after ``after_id``"""
    ids = list(user_ids)
    if not ids:
        return []
    query = db.query(User).filter(User.id.in_(ids))
    if after_id is not None:
        query = query.filter(User.id > after_id)
    query = query.order_by(User.id)
    if limit is not None:
        query = query.limit(limit)
    return query.all()

def page_users(
    db: Session,
    user_ids: Iterable[str],
    limit: int,
    cursor: Optional[str] = None,
) -> Tuple[List[User], Optional[str]]:
    """One id-ordered page of users plus the cursor for the next page (None on the last)"""
    users = get_users_by_ids(db, user_ids, after_id=cursor, limit=limit + 1)
    if len(users) > limit:
        users = users[:limit]
        return users, users[-1].id
    return users, None

def create_user(db: Session, user_in: UserCreate) -> User:
    """Create a user profile"""
    user = User(
        id=user_in.id or str(uuid.uuid4()),
        username=user_in.username,
        display_name=user_in.display_name,
        location_city=user_in.location_city,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Duplicate user {user_in.id or ''} / {user_in.username}")
        raise ConflictError("User id or username already taken", {"username": user_in.username})
    db.refresh(user)
    logger.info(f"Created user {user.id} ({user.username})")
    return user

def update_user(db: Session, user: User, user_in: UserUpdate) -> User:
    """Update user"""
    update_data = user_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return user
