from typing import List
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from socialgraph.modules.user_management.schemas.user import User

class Follow(BaseModel):
    """Follow edge returned to client"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    follower_id: str
    following_id: str
    created_at: datetime

class IsFollowing(BaseModel):
    is_following: bool

class FollowStats(BaseModel):
    followers_count: int
    following_count: int

class MutualFollows(BaseModel):
    users: List[User]
    count: int
