from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from socialgraph.core.config import settings
from socialgraph.db.session import get_db
from socialgraph.deps import get_current_user
from socialgraph.modules.user_management.models.user import User
from socialgraph.modules.user_management.schemas.user import UserPage
from socialgraph.modules.user_management.services.user import get_user_or_404
from socialgraph.modules.friendships.schemas.friendship import (
    ActionResult,
    AreFriends,
    FriendEdge as FriendEdgeSchema,
    FriendRequestCreate,
    FriendRequestStatus,
    MutualFriends,
    RequestDirection,
)
from socialgraph.modules.friendships.services.friendship import (
    accept_request,
    block_user,
    cancel_request,
    get_pending_requests,
    reject_request,
    remove_friend,
    send_request,
    unblock_user,
)
from socialgraph.modules.friendships.services.graph import (
    are_friends,
    get_friend_request_status,
    get_friends_page,
    mutual_friends,
)

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/request", response_model=FriendEdgeSchema, status_code=status.HTTP_201_CREATED)
def send_friend_request(
    *,
    db: Session = Depends(get_db),
    request_in: FriendRequestCreate,
    current_user: User = Depends(get_current_user),
) -> Any:
    return send_request(db, current_user.id, request_in.receiver_id)

@router.post("/request/{request_id}/accept", response_model=FriendEdgeSchema)
def accept_friend_request(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    return accept_request(db, request_id, current_user.id)

@router.post("/request/{request_id}/reject", response_model=FriendEdgeSchema)
def reject_friend_request(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    return reject_request(db, request_id, current_user.id)

@router.delete("/request/{request_id}", response_model=ActionResult)
def cancel_friend_request(
    *,
    db: Session = Depends(get_db),
    request_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    cancel_request(db, request_id, current_user.id)
    return ActionResult()

@router.get("/requests", response_model=List[FriendEdgeSchema])
def get_my_pending_requests(
    *,
    db: Session = Depends(get_db),
    direction: RequestDirection = RequestDirection.ALL,
    current_user: User = Depends(get_current_user),
) -> Any:
    return get_pending_requests(db, current_user.id, direction)

@router.get("/are-friends", response_model=AreFriends)
def check_are_friends(
    *,
    db: Session = Depends(get_db),
    user_id_1: str,
    user_id_2: str,
) -> Any:
    return AreFriends(are_friends=are_friends(db, user_id_1, user_id_2))

@router.get("/status/{user_id}", response_model=FriendRequestStatus)
def check_friendship_status(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    get_user_or_404(db, user_id)
    relationship, request_id = get_friend_request_status(db, current_user.id, user_id)
    return FriendRequestStatus(status=relationship, request_id=request_id)

@router.get("/mutual/{other_id}", response_model=MutualFriends)
def get_mutual_friends(
    *,
    db: Session = Depends(get_db),
    other_id: str,
    limit: int = Query(settings.MUTUAL_FRIENDS_DEFAULT_LIMIT, ge=1, le=100),
    current_user: User = Depends(get_current_user),
) -> Any:
    users, count = mutual_friends(db, current_user.id, other_id, limit)
    return MutualFriends(users=users, count=count)

@router.post("/block/{user_id}", response_model=FriendEdgeSchema)
def block(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    return block_user(db, current_user.id, user_id)

@router.delete("/block/{user_id}", response_model=ActionResult)
def unblock(
    *,
    db: Session = Depends(get_db),
    user_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    unblock_user(db, current_user.id, user_id)
    return ActionResult()

@router.get("/", response_model=UserPage)
def get_friend_list(
    *,
    db: Session = Depends(get_db),
    user_id: Optional[str] = None,
    limit: int = Query(settings.LIST_DEFAULT_LIMIT, ge=1, le=settings.LIST_MAX_LIMIT),
    cursor: Optional[str] = None,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Friends of ``user_id``, or of the current user when omitted, one page at a time"""
    users, next_cursor = get_friends_page(db, user_id or current_user.id, limit, cursor)
    return UserPage(users=users, next_cursor=next_cursor)

@router.delete("/{friend_id}", response_model=ActionResult)
def unfriend(
    *,
    db: Session = Depends(get_db),
    friend_id: str,
    current_user: User = Depends(get_current_user),
) -> Any:
    removed = remove_friend(db, current_user.id, friend_id)
    if not removed:
        logger.debug(f"Unfriend {current_user.id} -> {friend_id} was a no-op")
    return ActionResult()
