"""
Client-side infinite scroll controller.

Holds the posts loaded so far and decides, from the post currently on screen,
when to ask for the next feed page. Runs on a single event loop; the
``is_loading_more`` flag is the only guard, so a fetch that is already in flight
makes every further check a no-op instead of queueing another request.
"""
from typing import Awaitable, Callable, List, Optional
import logging
import math

from socialgraph.core.config import settings
from socialgraph.modules.home_feed.schemas.feed import FeedItem, FeedResponse, FeedStats

logger = logging.getLogger(__name__)

FeedFetcher = Callable[[int], Awaitable[FeedResponse]]


class FeedPrefetchController:
    def __init__(
        self,
        fetch_page: FeedFetcher,
        min_threshold: int = settings.PREFETCH_MIN_THRESHOLD,
        ratio: float = settings.PREFETCH_RATIO,
    ):
        self._fetch_page = fetch_page
        self.min_threshold = min_threshold
        self.ratio = ratio

        self.loaded_posts: List[FeedItem] = []
        self.has_more_pages = True
        self.is_loading = False
        self.is_loading_more = False
        self.next_cursor: Optional[int] = 0
        self.stats: Optional[FeedStats] = None
        # Bumped by reset(); responses for an older generation are dropped
        self.generation = 0

    def threshold_index(self) -> int:
        """Index from which scrolling triggers a prefetch. May be negative for tiny feeds."""
        count = len(self.loaded_posts)
        threshold = max(self.min_threshold, math.floor(self.ratio * count))
        return count - threshold

    def index_of(self, post_id: str) -> Optional[int]:
        for index, item in enumerate(self.loaded_posts):
            if item.post.id == post_id:
                return index
        return None

    def should_load_more(self, current_post: FeedItem) -> bool:
        index = self.index_of(current_post.post.id)
        if index is None:
            return False
        return (
            index >= self.threshold_index()
            and self.has_more_pages
            and not self.is_loading_more
            and not self.is_loading
        )

    async def check_for_more_posts(self, current_post: FeedItem) -> bool:
        """Call as each post becomes visible. Returns True if this call issued a fetch."""
        if not self.should_load_more(current_post):
            return False
        logger.debug(
            f"Prefetch triggered at index {self.index_of(current_post.post.id)} "
            f"(threshold index {self.threshold_index()})"
        )
        return await self.load_more()

    async def load_more(self) -> bool:
        if self.is_loading_more or self.is_loading or not self.has_more_pages or self.next_cursor is None:
            return False

        # Set before the first await so concurrent checks see it
        self.is_loading_more = True
        generation = self.generation
        try:
            response = await self._fetch_page(self.next_cursor)
        except Exception as e:
            logger.error(f"Failed to load more posts at cursor {self.next_cursor}: {e}")
            raise
        finally:
            if generation == self.generation:
                self.is_loading_more = False

        if generation != self.generation:
            logger.info("Dropping feed page for a feed that was reset")
            return False

        self._apply(response, append=True)
        logger.info(f"Loaded {len(response.posts)} more posts, total: {len(self.loaded_posts)}")
        return True

    async def load_initial(self) -> None:
        """Fetch the first page, replacing whatever was loaded"""
        self.reset()
        self.is_loading = True
        generation = self.generation
        try:
            response = await self._fetch_page(0)
        finally:
            if generation == self.generation:
                self.is_loading = False

        if generation != self.generation:
            logger.info("Dropping initial feed page for a feed that was reset")
            return
        self._apply(response, append=False)

    def reset(self) -> None:
        """Clear state, e.g. on navigation away or pull to refresh"""
        self.generation += 1
        self.loaded_posts = []
        self.has_more_pages = True
        self.is_loading = False
        self.is_loading_more = False
        self.next_cursor = 0
        self.stats = None

    def _apply(self, response: FeedResponse, append: bool) -> None:
        if append:
            known = {item.post.id for item in self.loaded_posts}
            self.loaded_posts.extend(item for item in response.posts if item.post.id not in known)
        else:
            self.loaded_posts = list(response.posts)
        self.has_more_pages = response.has_more_pages
        self.next_cursor = response.next_cursor
        self.stats = response.stats
