"""
Home feed composition.

Candidates are gathered per source, deduplicated by post id in the order given by
FEED_SOURCE_PRIORITY, ordered according to the feed mode and sliced at an integer
offset cursor. Nothing is persisted; every call recomputes the page.
"""
from dataclasses import dataclass
from datetime import timezone
from typing import Dict, List, Optional, Sequence, Tuple
import logging

from sqlalchemy.orm import Session

from socialgraph.core.config import settings
from socialgraph.modules.follows.services.follow import get_following_ids
from socialgraph.modules.friendships.services.graph import get_blocked_user_ids, get_friend_ids
from socialgraph.modules.home_feed.schemas.feed import FeedItem, FeedMode, FeedResponse, FeedSource, FeedStats
from socialgraph.modules.posts.models.post import Post
from socialgraph.modules.posts.schemas.post import Post as PostSchema
from socialgraph.modules.posts.services.post import get_posts_by_authors, get_posts_in_city, get_trending_posts
from socialgraph.modules.user_management.services.user import get_user_or_404

logger = logging.getLogger(__name__)

# Highest priority first. A post found by several sources is attributed to the earliest one.
FEED_SOURCE_PRIORITY: List[FeedSource] = [
    FeedSource.FOLLOWED,
    FeedSource.FRIENDS,
    FeedSource.TRENDING,
    FeedSource.GEO,
]
SOURCE_RANK: Dict[FeedSource, int] = {source: rank for rank, source in enumerate(FEED_SOURCE_PRIORITY)}

_STATS_FIELDS = {
    FeedSource.FOLLOWED: "from_followed",
    FeedSource.FRIENDS: "from_friends",
    FeedSource.TRENDING: "from_trending",
    FeedSource.GEO: "from_nearby",
}


@dataclass(frozen=True)
class FeedCandidate:
    post: Post
    source: FeedSource


def merge_candidates(candidates: Dict[FeedSource, Sequence[Post]]) -> List[FeedCandidate]:
    """Deduplicate posts across sources, keeping the highest-priority attribution"""
    seen = set()
    merged = []
    for source in FEED_SOURCE_PRIORITY:
        for post in candidates.get(source, ()):
            if post.id in seen:
                continue
            seen.add(post.id)
            merged.append(FeedCandidate(post=post, source=source))
    return merged


def _timestamp(candidate: FeedCandidate) -> float:
    created_at = candidate.post.created_at
    # Stored datetimes are naive UTC
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at.timestamp()


def order_candidates(
    merged: List[FeedCandidate],
    mode: FeedMode,
    window_hours: int,
) -> List[FeedCandidate]:
    """Sort merged candidates for the given mode.

    chronological: newest first.
    personalized: posts are bucketed into fixed time windows; newer windows come
    first, and inside one window source priority wins before recency.
    """
    if mode == FeedMode.CHRONOLOGICAL:
        return sorted(merged, key=lambda c: (-_timestamp(c), c.post.id))

    window_seconds = max(1, window_hours) * 3600

    def personalized_key(candidate: FeedCandidate) -> Tuple[int, int, float, str]:
        ts = _timestamp(candidate)
        return (-int(ts // window_seconds), SOURCE_RANK[candidate.source], -ts, candidate.post.id)

    return sorted(merged, key=personalized_key)


def compose_page(
    candidates: Dict[FeedSource, Sequence[Post]],
    cursor: int,
    page_size: int,
    mode: FeedMode,
    window_hours: int,
) -> Tuple[List[FeedCandidate], bool]:
    """Merge, order and slice candidates. Returns the page and whether more pages exist."""
    ordered = order_candidates(merge_candidates(candidates), mode, window_hours)
    page = ordered[cursor:cursor + page_size]
    return page, len(ordered) > cursor + page_size


def build_stats(
    page: List[FeedCandidate],
    has_location: bool,
    has_follows: bool,
    has_friends: bool,
) -> FeedStats:
    stats = FeedStats(
        total_posts=len(page),
        has_location=has_location,
        has_follows=has_follows,
        has_friends=has_friends,
    )
    for candidate in page:
        field = _STATS_FIELDS[candidate.source]
        setattr(stats, field, getattr(stats, field) + 1)
    return stats


def _gather_candidates(
    db: Session,
    user_id: str,
    followed_ids: set,
    friend_ids: set,
    blocked_ids: set,
    city: Optional[str],
    source_limit: int,
) -> Dict[FeedSource, List[Post]]:
    excluded_authors = blocked_ids | {user_id}
    candidates = {
        FeedSource.FOLLOWED: get_posts_by_authors(db, followed_ids - blocked_ids, source_limit),
        FeedSource.FRIENDS: get_posts_by_authors(db, friend_ids, source_limit),
        FeedSource.TRENDING: get_trending_posts(
            db,
            min_engagement=settings.FEED_TRENDING_MIN_ENGAGEMENT,
            limit=source_limit,
            exclude_author_ids=excluded_authors,
        ),
        FeedSource.GEO: [],
    }
    if city:
        candidates[FeedSource.GEO] = get_posts_in_city(
            db, city, limit=source_limit, exclude_author_ids=excluded_authors
        )
    return candidates


def get_home_feed(
    db: Session,
    user_id: str,
    cursor: int = 0,
    page_size: Optional[int] = None,
    mode: FeedMode = FeedMode.CHRONOLOGICAL,
) -> FeedResponse:
    user = get_user_or_404(db, user_id)
    page_size = page_size or settings.FEED_DEFAULT_PAGE_SIZE

    followed_ids = get_following_ids(db, user_id)
    friend_ids = get_friend_ids(db, user_id)
    blocked_ids = get_blocked_user_ids(db, user_id)

    # A fixed window per source keeps the merged list identical for every cursor
    source_limit = settings.FEED_CANDIDATE_LIMIT
    candidates = _gather_candidates(
        db, user_id, followed_ids, friend_ids, blocked_ids, user.location_city, source_limit
    )

    page, has_more_pages = compose_page(
        candidates, cursor, page_size, mode, settings.FEED_TIME_WINDOW_HOURS
    )
    stats = build_stats(
        page,
        has_location=bool(user.location_city),
        has_follows=bool(followed_ids),
        has_friends=bool(friend_ids),
    )

    logger.info(
        f"Feed for {user_id} ({mode.value}, cursor={cursor}): {stats.total_posts} posts, "
        f"{stats.from_followed} followed, {stats.from_friends} friends, "
        f"{stats.from_trending} trending, {stats.from_nearby} nearby"
    )

    return FeedResponse(
        posts=[
            FeedItem(post=PostSchema.model_validate(c.post), source=c.source)
            for c in page
        ],
        next_cursor=cursor + page_size if has_more_pages else None,
        has_more_pages=has_more_pages,
        stats=stats,
    )
