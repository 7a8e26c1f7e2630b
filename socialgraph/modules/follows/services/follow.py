from typing import List, Optional, Set, Tuple
import uuid
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from socialgraph.core.config import settings
from socialgraph.core.exceptions import ConflictError, NotFoundError, SelfReferenceError, StorageError
from socialgraph.modules.follows.models.follow import Follow
from socialgraph.modules.user_management.models.user import User
from socialgraph.modules.user_management.services.user import get_user_or_404, get_users_by_ids, page_users

logger = logging.getLogger(__name__)

def get_follow(db: Session, follower_id: str, following_id: str) -> Optional[Follow]:
    """Get follow edge by follower and followed IDs"""
    return db.query(Follow).filter(
        Follow.follower_id == follower_id,
        Follow.following_id == following_id,
    ).first()

def is_following(db: Session, follower_id: str, following_id: str) -> bool:
    return get_follow(db, follower_id, following_id) is not None

def follow(db: Session, follower_id: str, following_id: str) -> Follow:
    """Follow a user. The unique constraint decides races between duplicate follows."""
    if follower_id == following_id:
        raise SelfReferenceError("Cannot follow yourself")

    get_user_or_404(db, following_id)

    if is_following(db, follower_id, following_id):
        raise ConflictError("Already following this user")

    edge = Follow(id=str(uuid.uuid4()), follower_id=follower_id, following_id=following_id)
    db.add(edge)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Concurrent follow {follower_id} -> {following_id}")
        raise ConflictError("Already following this user") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage failure following {following_id}: {e}")
        raise StorageError("Storage failure, please retry") from e

    db.refresh(edge)
    logger.info(f"User {follower_id} followed {following_id}")
    return edge

def unfollow(db: Session, follower_id: str, following_id: str) -> None:
    edge = get_follow(db, follower_id, following_id)
    if not edge:
        raise NotFoundError("Not following this user")

    db.delete(edge)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage failure unfollowing {following_id}: {e}")
        raise StorageError("Storage failure, please retry") from e
    logger.info(f"User {follower_id} unfollowed {following_id}")

def get_following_ids(db: Session, user_id: str) -> Set[str]:
    rows = db.query(Follow.following_id).filter(Follow.follower_id == user_id).all()
    return {row.following_id for row in rows}

def get_follower_ids(db: Session, user_id: str) -> Set[str]:
    rows = db.query(Follow.follower_id).filter(Follow.following_id == user_id).all()
    return {row.follower_id for row in rows}

def get_following(
    db: Session,
    user_id: str,
    limit: int = settings.LIST_DEFAULT_LIMIT,
    cursor: Optional[str] = None,
) -> Tuple[List[User], Optional[str]]:
    """One id-ordered page of users this user follows, plus the next cursor"""
    return page_users(db, get_following_ids(db, user_id), limit, cursor)

def get_followers(
    db: Session,
    user_id: str,
    limit: int = settings.LIST_DEFAULT_LIMIT,
    cursor: Optional[str] = None,
) -> Tuple[List[User], Optional[str]]:
    """One id-ordered page of users following this user, plus the next cursor"""
    return page_users(db, get_follower_ids(db, user_id), limit, cursor)

def get_follow_stats(db: Session, user_id: str) -> Tuple[int, int]:
    """(followers_count, following_count) for a user"""
    get_user_or_404(db, user_id)
    followers = db.query(func.count(Follow.id)).filter(Follow.following_id == user_id).scalar() or 0
    following = db.query(func.count(Follow.id)).filter(Follow.follower_id == user_id).scalar() or 0
    return followers, following

def get_mutual_follows(db: Session, user_id_1: str, user_id_2: str, limit: int) -> Tuple[List[User], int]:
    """Users that both users follow"""
    shared = get_following_ids(db, user_id_1) & get_following_ids(db, user_id_2)
    return get_users_by_ids(db, sorted(shared)[:limit]), len(shared)

def get_suggested_follows(db: Session, user_id: str, limit: int) -> List[User]:
    """Users followed by people this user follows, ranked by how many of them follow each"""
    following_ids = get_following_ids(db, user_id)
    if not following_ids:
        return []

    popularity = func.count(Follow.id).label("popularity")
    rows = (
        db.query(Follow.following_id, popularity)
        .filter(
            Follow.follower_id.in_(following_ids),
            Follow.following_id.notin_(following_ids | {user_id}),
        )
        .group_by(Follow.following_id)
        .order_by(popularity.desc(), Follow.following_id)
        .limit(limit)
        .all()
    )
    ranked_ids = [row.following_id for row in rows]
    users_by_id = {user.id: user for user in get_users_by_ids(db, ranked_ids)}
    return [users_by_id[uid] for uid in ranked_ids if uid in users_by_id]
