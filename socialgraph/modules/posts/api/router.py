from typing import Any, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from socialgraph.core.exceptions import NotFoundError
from socialgraph.db.session import get_db
from socialgraph.deps import get_current_user
from socialgraph.modules.user_management.models.user import User
from socialgraph.modules.posts.schemas.post import Post as PostSchema, PostCreate
from socialgraph.modules.posts.services.post import create_post, get_post, get_user_posts

router = APIRouter()

@router.post("/", response_model=PostSchema, status_code=status.HTTP_201_CREATED)
def create_new_post(
    *,
    db: Session = Depends(get_db),
    post_in: PostCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    return create_post(db, post_in, current_user.id)

@router.get("/by-user/{user_id}", response_model=List[PostSchema])
def read_user_posts(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> Any:
    return get_user_posts(db, user_id, skip=skip, limit=limit)

@router.get("/{post_id}", response_model=PostSchema)
def read_post(
    *,
    db: Session = Depends(get_db),
    post_id: str,
) -> Any:
    post = get_post(db, post_id)
    if not post:
        raise NotFoundError("Post not found", {"post_id": post_id})
    return post

