"""
Friend request lifecycle.

Every mutation goes through the declared transition table below. Uniqueness of
the active edge for a pair is enforced by the unique ``active_pair_key`` column,
so the existence check here only produces a friendlier error; a racing insert
still fails at commit and is reported as a ConflictError.
"""
from typing import Dict, FrozenSet, List, Optional
import uuid
import logging

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from socialgraph.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    SelfReferenceError,
    StorageError,
)
from socialgraph.modules.friendships.models.friendship import (
    ACTIVE_STATUSES,
    FriendEdge,
    FriendStatus,
    canonical_pair_key,
)
from socialgraph.modules.friendships.schemas.friendship import RequestDirection
from socialgraph.modules.user_management.services.user import get_user_or_404

logger = logging.getLogger(__name__)

# None stands for "no edge". Removal (ACCEPTED -> none) and unblocking delete the row.
ALLOWED_TRANSITIONS: Dict[Optional[FriendStatus], FrozenSet[FriendStatus]] = {
    None: frozenset({FriendStatus.PENDING, FriendStatus.BLOCKED}),
    FriendStatus.PENDING: frozenset({FriendStatus.ACCEPTED, FriendStatus.REJECTED, FriendStatus.BLOCKED}),
    FriendStatus.ACCEPTED: frozenset({FriendStatus.BLOCKED}),
    FriendStatus.REJECTED: frozenset(),
    FriendStatus.BLOCKED: frozenset(),
}

_CONFLICT_MESSAGES = {
    FriendStatus.PENDING: "Friend request already pending",
    FriendStatus.ACCEPTED: "Already friends",
    FriendStatus.BLOCKED: "Cannot send friend request",
}


def can_transition(current: Optional[FriendStatus], target: FriendStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


# Lookups
def bidirectional_edge_filter(user_id: str, other_id: str):
    """Create a filter matching edges between two users in either direction"""
    return or_(
        and_(FriendEdge.sender_id == user_id, FriendEdge.receiver_id == other_id),
        and_(FriendEdge.sender_id == other_id, FriendEdge.receiver_id == user_id),
    )

def get_active_edge(db: Session, user_id: str, other_id: str) -> Optional[FriendEdge]:
    """Get the single non-rejected edge between two users, if any"""
    return db.query(FriendEdge).filter(
        bidirectional_edge_filter(user_id, other_id),
        FriendEdge.status.in_([s.value for s in ACTIVE_STATUSES]),
    ).first()

def get_friend_request_by_id(db: Session, request_id: str) -> Optional[FriendEdge]:
    """Get friend edge by ID"""
    return db.query(FriendEdge).filter(FriendEdge.id == request_id).first()

def _get_edge_or_404(db: Session, request_id: str) -> FriendEdge:
    edge = get_friend_request_by_id(db, request_id)
    if not edge:
        raise NotFoundError("Friend request not found", {"request_id": request_id})
    return edge

def get_pending_requests(
    db: Session,
    user_id: str,
    direction: RequestDirection = RequestDirection.ALL,
) -> List[FriendEdge]:
    """Get pending requests sent by, received by, or involving a user"""
    query = db.query(FriendEdge).filter(FriendEdge.status == FriendStatus.PENDING.value)

    if direction == RequestDirection.SENT:
        query = query.filter(FriendEdge.sender_id == user_id)
    elif direction == RequestDirection.RECEIVED:
        query = query.filter(FriendEdge.receiver_id == user_id)
    else:
        query = query.filter(or_(FriendEdge.sender_id == user_id, FriendEdge.receiver_id == user_id))

    return query.order_by(FriendEdge.created_at.desc(), FriendEdge.id).all()


# Write helpers
def _commit(db: Session, conflict_message: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity conflict: {conflict_message} ({e.orig})")
        raise ConflictError(conflict_message) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage failure: {e}")
        raise StorageError("Storage failure, please retry") from e

def _transition(db: Session, edge: FriendEdge, target: FriendStatus, **values) -> FriendEdge:
    """Move an edge to ``target`` if the table allows it and nobody changed it first"""
    current = FriendStatus(edge.status)
    if not can_transition(current, target):
        logger.warning(f"Rejected transition {current.value} -> {target.value} on edge {edge.id}")
        raise InvalidStateError(
            f"Friend request is {current.value.lower()}, cannot become {target.value.lower()}",
            {"request_id": edge.id, "status": current.value},
        )

    values["status"] = target.value
    values["updated_at"] = func.now()
    try:
        # Conditional on the status we validated against; 0 rows means a concurrent transition won
        updated = (
            db.query(FriendEdge)
            .filter(FriendEdge.id == edge.id, FriendEdge.status == current.value)
            .update(values, synchronize_session=False)
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage failure updating edge {edge.id}: {e}")
        raise StorageError("Storage failure, please retry") from e

    if updated == 0:
        db.rollback()
        raise InvalidStateError("Friend request was modified concurrently", {"request_id": edge.id})

    _commit(db, "Friend edge changed concurrently")
    db.refresh(edge)
    logger.info(f"Edge {edge.id} {current.value} -> {target.value}")
    return edge


# State machine operations
def send_request(db: Session, sender_id: str, receiver_id: str) -> FriendEdge:
    """Create a pending request from sender to receiver"""
    if sender_id == receiver_id:
        raise SelfReferenceError("Cannot send friend request to yourself")

    get_user_or_404(db, receiver_id)

    existing = get_active_edge(db, sender_id, receiver_id)
    if existing:
        status = FriendStatus(existing.status)
        logger.warning(f"Friend request {sender_id} -> {receiver_id} refused, edge is {status.value}")
        raise ConflictError(_CONFLICT_MESSAGES[status], {"status": status.value})

    edge = FriendEdge(
        id=str(uuid.uuid4()),
        sender_id=sender_id,
        receiver_id=receiver_id,
        status=FriendStatus.PENDING.value,
        active_pair_key=canonical_pair_key(sender_id, receiver_id),
    )
    db.add(edge)
    _commit(db, "An active friend edge already exists between these users")
    db.refresh(edge)
    logger.info(f"Friend request {edge.id} sent: {sender_id} -> {receiver_id}")
    return edge

def _validate_receiver(db: Session, request_id: str, acting_user_id: str, action: str) -> FriendEdge:
    edge = _get_edge_or_404(db, request_id)
    if edge.receiver_id != acting_user_id:
        raise AuthorizationError(f"You can only {action} requests sent to you")
    return edge

def accept_request(db: Session, request_id: str, acting_user_id: str) -> FriendEdge:
    edge = _validate_receiver(db, request_id, acting_user_id, "accept")
    return _transition(db, edge, FriendStatus.ACCEPTED)

def reject_request(db: Session, request_id: str, acting_user_id: str) -> FriendEdge:
    edge = _validate_receiver(db, request_id, acting_user_id, "reject")
    # Clearing the pair key frees the pair for a later request
    return _transition(db, edge, FriendStatus.REJECTED, active_pair_key=None)

def cancel_request(db: Session, request_id: str, acting_user_id: str) -> None:
    """Withdraw a pending request; only the sender may do this"""
    edge = _get_edge_or_404(db, request_id)
    if edge.sender_id != acting_user_id:
        raise AuthorizationError("You can only cancel requests you sent")
    if edge.status != FriendStatus.PENDING.value:
        raise InvalidStateError(
            f"Friend request is {edge.status.lower()}, only pending requests can be cancelled",
            {"request_id": edge.id, "status": edge.status},
        )

    db.delete(edge)
    _commit(db, "Friend request changed concurrently")
    logger.info(f"Friend request {request_id} cancelled by {acting_user_id}")

def remove_friend(db: Session, user_id: str, friend_id: str) -> bool:
    """Remove the accepted edge between two users, whoever sent it. No-op if none."""
    try:
        removed = db.query(FriendEdge).filter(
            bidirectional_edge_filter(user_id, friend_id),
            FriendEdge.status == FriendStatus.ACCEPTED.value,
        ).delete(synchronize_session=False)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage failure removing friendship {user_id} <-> {friend_id}: {e}")
        raise StorageError("Storage failure, please retry") from e

    _commit(db, "Friendship changed concurrently")
    if removed:
        logger.info(f"Removed friendship: {user_id} <-> {friend_id}")
    return bool(removed)

def block_user(db: Session, blocker_id: str, blocked_id: str) -> FriendEdge:
    """Block another user, converting any active edge or creating a new one"""
    if blocker_id == blocked_id:
        raise SelfReferenceError("Cannot block yourself")

    get_user_or_404(db, blocked_id)

    existing = get_active_edge(db, blocker_id, blocked_id)
    if existing is None:
        edge = FriendEdge(
            id=str(uuid.uuid4()),
            sender_id=blocker_id,
            receiver_id=blocked_id,
            status=FriendStatus.BLOCKED.value,
            active_pair_key=canonical_pair_key(blocker_id, blocked_id),
            blocked_by=blocker_id,
        )
        db.add(edge)
        try:
            _commit(db, "An active friend edge already exists between these users")
        except ConflictError:
            # Someone created an edge between the check and the insert; block that one instead
            existing = get_active_edge(db, blocker_id, blocked_id)
            if existing is None:
                raise
        else:
            db.refresh(edge)
            logger.info(f"User {blocker_id} blocked {blocked_id}")
            return edge

    if existing.status == FriendStatus.BLOCKED.value:
        if existing.blocked_by != blocker_id:
            logger.warning(f"Block {blocker_id} -> {blocked_id} refused, already blocked by the other user")
            raise ConflictError(
                "This user has already blocked you", {"blocked_by": existing.blocked_by}
            )
        logger.info(f"Pair {blocker_id} / {blocked_id} already blocked by {blocker_id}")
        return existing

    edge = _transition(db, existing, FriendStatus.BLOCKED, blocked_by=blocker_id)
    logger.info(f"User {blocker_id} blocked {blocked_id}")
    return edge

def unblock_user(db: Session, blocker_id: str, blocked_id: str) -> None:
    """Lift a block. Only the user who placed it may; the pair reverts to no relationship."""
    edge = db.query(FriendEdge).filter(
        bidirectional_edge_filter(blocker_id, blocked_id),
        FriendEdge.status == FriendStatus.BLOCKED.value,
    ).first()
    if not edge:
        raise NotFoundError("No block exists between these users")
    if edge.blocked_by != blocker_id:
        raise AuthorizationError("Only the user who placed the block can lift it")

    db.delete(edge)
    _commit(db, "Block changed concurrently")
    logger.info(f"User {blocker_id} unblocked {blocked_id}")
