from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from socialgraph.core.config import settings
from socialgraph.db.session import get_db
from socialgraph.deps import get_current_user
from socialgraph.modules.user_management.models.user import User
from socialgraph.modules.user_management.schemas.user import User as UserSchema, UserPage
from socialgraph.modules.friendships.schemas.friendship import ActionResult
from socialgraph.modules.follows.schemas.follow import (
    Follow as FollowSchema,
    FollowStats,
    IsFollowing,
    MutualFollows,
)
from socialgraph.modules.follows.services.follow import (
    follow,
    get_follow_stats,
    get_followers,
    get_following,
    get_mutual_follows,
    get_suggested_follows,
    is_following,
    unfollow,
)

router = APIRouter()

@router.get("/followers", response_model=UserPage)
def read_followers(
    *,
    db: Session = Depends(get_db),
    user_id: Optional[str] = None,
    limit: int = Query(settings.LIST_DEFAULT_LIMIT, ge=1, le=settings.LIST_MAX_LIMIT),
    cursor: Optional[str] = None,
    current_user: User = Depends(get_current_user),
) -> Any:
    users, next_cursor = get_followers(db, user_id or current_user.id, limit, cursor)
    return UserPage(users=users, next_cursor=next_cursor)

@router.get("/following", response_model=UserPage)
def read_following(
    *,
    db: Session = Depends(get_db),
    user_id: Optional[str] = None,
    limit: int = Query(settings.LIST_DEFAULT_LIMIT, ge=1, le=settings.LIST_MAX_LIMIT),
    cursor: Optional[str] = None,
    current_user: User = Depends(get_current_user),
) -> Any:
    users, next_cursor = get_following(db, user_id or current_user.id, limit, cursor)
    return UserPage(users=users, next_cursor=next_cursor)

@router.get("/is-following", response_model=IsFollowing)
def check_is_following(
    *,
    db: Session = Depends(get_db),
    follower_id: str,
    following_id: str,
) -> Any:
    return IsFollowing(is_following=is_following(db, follower_id, following_id))

@router.get("/stats/{user_id}", response_model=FollowStats)
def read_follow_stats(
    *,
    db: Session = Depends(get_db),
    user_id: str,
) -> Any:
    followers_count, following_count = get_follow_stats(db, user_id)
    return FollowStats(followers_count=followers_count, following_count=following_count)

@router.get("/mutual/{other_id}", response_model=MutualFollows)
def read_mutual_follows(
    *,
    db: Session = Depends(get_db),
    other_id: str,
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
) -> Any:
    users, count = get_mutual_follows(db, current_user.id, other_id, limit)
    return MutualFollows(users=users, count=count)

@router.get("/suggestions", response_model=List[UserSchema])
def read_suggested_follows(
    *,
    db: Session = Depends(get_db),
    limit: int = Query(settings.SUGGESTED_FOLLOWS_DEFAULT_LIMIT, ge=1, le=20),
    current_user: User = Depends(get_current_user),
) -> Any:
    return get_suggested_follows(db, current_user.id, limit)

@router.post("/{user_id}", response_model=FollowSchema, status_code=status.HTTP_201_CREATED)
def follow_user(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    return follow(db, current_user.id, user_id)

@router.delete("/{user_id}", response_model=ActionResult)
def unfollow_user(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    unfollow(db, current_user.id, user_id)
    return ActionResult()
