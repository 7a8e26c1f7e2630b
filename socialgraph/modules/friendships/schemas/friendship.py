import enum
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from socialgraph.modules.friendships.models.friendship import FriendStatus
from socialgraph.modules.user_management.schemas.user import User


class RequestDirection(str, enum.Enum):
    SENT = "sent"
    RECEIVED = "received"
    ALL = "all"


class RelationshipStatus(str, enum.Enum):
    """Friend request status as seen from one user's side"""
    NONE = "NONE"
    PENDING_OUTGOING = "PENDING_OUTGOING"
    PENDING_INCOMING = "PENDING_INCOMING"
    ACCEPTED = "ACCEPTED"
    BLOCKED = "BLOCKED"


class FriendRequestCreate(BaseModel):
    receiver_id: str


class FriendEdge(BaseModel):
    """Friend edge returned to client"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    sender_id: str
    receiver_id: str
    status: FriendStatus
    created_at: datetime
    updated_at: datetime


class FriendRequestStatus(BaseModel):
    status: RelationshipStatus
    request_id: Optional[str] = None


class AreFriends(BaseModel):
    are_friends: bool


class MutualFriends(BaseModel):
    users: List[User]
    count: int


class ActionResult(BaseModel):
    success: bool = True
