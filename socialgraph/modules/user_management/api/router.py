from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from socialgraph.db.session import get_db
from socialgraph.deps import get_current_user
from socialgraph.modules.user_management.models.user import User
from socialgraph.modules.user_management.schemas.user import User as UserSchema, UserCreate, UserUpdate
from socialgraph.modules.user_management.services.user import create_user, get_user_or_404, update_user

router = APIRouter()

@router.post("/", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def register_user(
    *,
    db: Session = Depends(get_db),
    user_in: UserCreate,
) -> Any:
    """Register a user profile. Identity itself is issued elsewhere."""
    return create_user(db, user_in)

@router.get("/me", response_model=UserSchema)
def read_user_me(
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get current user"""
    return current_user

@router.put("/me", response_model=UserSchema)
def update_user_me(
    *,
    db: Session = Depends(get_db),
    user_in: UserUpdate,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Update current user"""
    return update_user(db, current_user, user_in)

@router.get("/{user_id}", response_model=UserSchema)
def read_user(
    *,
    db: Session = Depends(get_db),
    user_id: str,
) -> Any:
    return get_user_or_404(db, user_id)
