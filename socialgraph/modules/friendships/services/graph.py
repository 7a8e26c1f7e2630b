"""Read-side friendship queries. Edges are stored directionally, so every query looks both ways."""
from typing import List, Optional, Set, Tuple
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from socialgraph.core.config import settings
from socialgraph.modules.friendships.models.friendship import FriendEdge, FriendStatus
from socialgraph.modules.friendships.schemas.friendship import RelationshipStatus
from socialgraph.modules.friendships.services.friendship import bidirectional_edge_filter, get_active_edge
from socialgraph.modules.user_management.models.user import User
from socialgraph.modules.user_management.services.user import get_users_by_ids, page_users

logger = logging.getLogger(__name__)

def _counterpart_ids(db: Session, user_id: str, status: FriendStatus) -> Set[str]:
    rows = db.query(FriendEdge.sender_id, FriendEdge.receiver_id).filter(
        or_(FriendEdge.sender_id == user_id, FriendEdge.receiver_id == user_id),
        FriendEdge.status == status.value,
    ).all()
    return {
        receiver_id if sender_id == user_id else sender_id
        for sender_id, receiver_id in rows
    } - {user_id}

def are_friends(db: Session, user_id_1: str, user_id_2: str) -> bool:
    """Check if two users are friends"""
    if user_id_1 == user_id_2:
        return False
    edge = db.query(FriendEdge.id).filter(
        bidirectional_edge_filter(user_id_1, user_id_2),
        FriendEdge.status == FriendStatus.ACCEPTED.value,
    ).first()
    return edge is not None

def get_blocked_user_ids(db: Session, user_id: str) -> Set[str]:
    """Users in a blocked relationship with this user, whichever side blocked"""
    return _counterpart_ids(db, user_id, FriendStatus.BLOCKED)

def get_friend_ids(db: Session, user_id: str) -> Set[str]:
    """IDs of everyone with an accepted edge to this user"""
    return _counterpart_ids(db, user_id, FriendStatus.ACCEPTED) - get_blocked_user_ids(db, user_id)

def get_friends(db: Session, user_id: str) -> List[User]:
    """Get a user's friends (as User objects)"""
    friend_ids = get_friend_ids(db, user_id)
    friends = get_users_by_ids(db, friend_ids)
    if len(friends) != len(friend_ids):
        missing = friend_ids - {friend.id for friend in friends}
        logger.warning(f"Friend relationship exists but user not found: {sorted(missing)}")
    return friends

def get_friends_page(
    db: Session,
    user_id: str,
    limit: int = settings.LIST_DEFAULT_LIMIT,
    cursor: Optional[str] = None,
) -> Tuple[List[User], Optional[str]]:
    """One id-ordered page of a user's friends, plus the next cursor"""
    return page_users(db, get_friend_ids(db, user_id), limit, cursor)

def mutual_friends(db: Session, user_id_1: str, user_id_2: str, limit: int) -> Tuple[List[User], int]:
    """Friends both users share, truncated to ``limit``, plus the untruncated count"""
    shared = get_friend_ids(db, user_id_1) & get_friend_ids(db, user_id_2)
    # Sorted so the truncated slice is the same whichever user asks
    selected = sorted(shared)[:limit]
    return get_users_by_ids(db, selected), len(shared)

def get_friend_request_status(
    db: Session,
    viewer_id: str,
    other_id: str,
) -> Tuple[RelationshipStatus, Optional[str]]:
    """Resolve the edge between two users into a status relative to ``viewer_id``"""
    if viewer_id == other_id:
        return RelationshipStatus.NONE, None

    edge = get_active_edge(db, viewer_id, other_id)
    if edge is None:
        return RelationshipStatus.NONE, None

    status = FriendStatus(edge.status)
    if status == FriendStatus.ACCEPTED:
        return RelationshipStatus.ACCEPTED, edge.id
    if status == FriendStatus.BLOCKED:
        return RelationshipStatus.BLOCKED, edge.id
    if edge.sender_id == viewer_id:
        return RelationshipStatus.PENDING_OUTGOING, edge.id
    return RelationshipStatus.PENDING_INCOMING, edge.id
