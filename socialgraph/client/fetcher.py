from typing import Optional
import logging

import httpx

from socialgraph.core.config import settings
from socialgraph.modules.home_feed.schemas.feed import FeedMode, FeedResponse

logger = logging.getLogger(__name__)


class HttpFeedFetcher:
    """Fetches feed pages from the service's HTTP API for FeedPrefetchController"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str,
        page_size: int = settings.FEED_DEFAULT_PAGE_SIZE,
        mode: FeedMode = FeedMode.CHRONOLOGICAL,
        path: Optional[str] = None,
    ):
        self.client = client
        self.token = token
        self.page_size = page_size
        self.mode = mode
        self.path = path or f"{settings.API_V1_STR}/feed/"

    async def __call__(self, cursor: int) -> FeedResponse:
        response = await self.client.get(
            self.path,
            params={"cursor": cursor, "page_size": self.page_size, "mode": self.mode.value},
            headers={"Authorization": f"Bearer {self.token}"},
        )
        if response.status_code >= 400:
            logger.warning(f"Feed request failed with {response.status_code}: {response.text}")
        response.raise_for_status()
        return FeedResponse.model_validate(response.json())
