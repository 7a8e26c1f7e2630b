from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

class UserBase(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    display_name: Optional[str] = None
    location_city: Optional[str] = None

class UserCreate(UserBase):
    id: Optional[str] = None

class UserUpdate(BaseModel):
    display_name: Optional[str] = None
    location_city: Optional[str] = None

class User(UserBase):
    """User model returned to client"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime

class UserPage(BaseModel):
    """A page of users; pass next_cursor back as ``cursor`` for the following page"""
    users: List[User]
    next_cursor: Optional[str] = None
