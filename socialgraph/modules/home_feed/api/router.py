from typing import Any
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from socialgraph.core.config import settings
from socialgraph.db.session import get_db
from socialgraph.deps import get_current_user
from socialgraph.modules.user_management.models.user import User
from socialgraph.modules.home_feed.schemas.feed import FeedMode, FeedResponse
from socialgraph.modules.home_feed.services.feed import get_home_feed

router = APIRouter()

@router.get("/", response_model=FeedResponse)
@router.get("", response_model=FeedResponse, include_in_schema=False)
def read_home_feed(
    *,
    db: Session = Depends(get_db),
    cursor: int = Query(0, ge=0),
    page_size: int = Query(settings.FEED_DEFAULT_PAGE_SIZE, ge=1, le=settings.FEED_MAX_PAGE_SIZE),
    mode: FeedMode = FeedMode.CHRONOLOGICAL,
    current_user: User = Depends(get_current_user),
) -> Any:
    """Get the merged home feed for the current user, one page at a time"""
    return get_home_feed(db, current_user.id, cursor=cursor, page_size=page_size, mode=mode)
