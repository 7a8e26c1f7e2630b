import enum
from typing import List, Optional
from pydantic import BaseModel

from socialgraph.modules.posts.schemas.post import Post


class FeedSource(str, enum.Enum):
    FOLLOWED = "followed"
    FRIENDS = "friends"
    TRENDING = "trending"
    GEO = "geo"


class FeedMode(str, enum.Enum):
    CHRONOLOGICAL = "chronological"
    PERSONALIZED = "personalized"


class FeedItem(BaseModel):
    """Feed item returned to client, tagged with the source it was attributed to"""
    post: Post
    source: FeedSource


class FeedStats(BaseModel):
    total_posts: int = 0
    from_followed: int = 0
    from_friends: int = 0
    from_trending: int = 0
    from_nearby: int = 0
    has_location: bool = False
    has_follows: bool = False
    has_friends: bool = False


class FeedResponse(BaseModel):
    """Feed page returned to client"""
    posts: List[FeedItem]
    next_cursor: Optional[int] = None
    has_more_pages: bool
    stats: FeedStats
