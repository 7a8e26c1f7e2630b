import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.sql import func

from socialgraph.db.session import Base


class FriendStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    BLOCKED = "BLOCKED"


# Statuses that occupy the pair; REJECTED edges release it
ACTIVE_STATUSES = (FriendStatus.PENDING, FriendStatus.ACCEPTED, FriendStatus.BLOCKED)


def canonical_pair_key(user_id_1: str, user_id_2: str) -> str:
    """Order-independent key for an unordered pair of user ids"""
    low, high = sorted((user_id_1, user_id_2))
    return f"{low}:{high}"


# Friend edge: one directed record per proposal, undirected once accepted
class FriendEdge(Base):
    __tablename__ = "friend_edges"

    id = Column(String, primary_key=True, index=True)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=FriendStatus.PENDING.value)
    # Canonical pair key while the edge is active, NULL once rejected.
    # The unique index is what makes concurrent opposite-direction requests collide.
    active_pair_key = Column(String, unique=True, nullable=True)
    blocked_by = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("sender_id != receiver_id", name="no_self_friendship"),
        CheckConstraint(
            "status IN ('PENDING', 'ACCEPTED', 'REJECTED', 'BLOCKED')",
            name="valid_friend_status",
        ),
        Index("ix_friend_edges_sender_status", "sender_id", "status"),
        Index("ix_friend_edges_receiver_status", "receiver_id", "status"),
    )

    def other_party(self, user_id: str) -> str:
        return self.receiver_id if self.sender_id == user_id else self.sender_id
