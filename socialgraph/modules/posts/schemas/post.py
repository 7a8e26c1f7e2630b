from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

class PostBase(BaseModel):
    caption: Optional[str] = None
    location_city: Optional[str] = None

class PostCreate(PostBase):
    pass

class Post(PostBase):
    """Post model returned to client"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    author_id: str
    likes_count: int = 0
    comments_count: int = 0
    created_at: datetime
