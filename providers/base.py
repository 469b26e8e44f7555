"""
Base Provider
Abstract base for every content provider
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional
import asyncio
import logging
import time

from config import Settings, get_settings
from curation.dedup import merge_items
from models import NewsItem, Topic

if TYPE_CHECKING:
    from storage import BaseNewsStore


logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """
    Provider capability: fetch fresh, keyword-matched items for a topic.

    ``fetch`` is a template method. Subclasses implement
    ``_fetch_candidates`` and must swallow (and log) failures of their own
    sub-fetches so one bad upstream call only shrinks the result.
    """

    # providers that serve canned data do not need topic sources
    requires_sources: bool = True

    def __init__(
        self,
        store: Optional["BaseNewsStore"] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self._session = None

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Provider kind, also the key into a topic's source map"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name"""
        pass

    @abstractmethod
    async def _fetch_candidates(self, topic: Topic, sources: List[str]) -> List[NewsItem]:
        """
        Pull items for the configured sources.

        Args:
            topic: topic definition (keywords, sources)
            sources: this provider's source identifiers from the topic

        Returns:
            Fresh, keyword-filtered items
        """
        pass

    def is_configured(self) -> bool:
        """Subclasses override to check credentials"""
        return True

    async def fetch(self, topic: Topic) -> List[NewsItem]:
        """Fetch, deduplicate and persist items for ``topic``."""
        sources = topic.sources_for(self.source_type)
        if self.requires_sources and not sources:
            logger.info(
                f"[{self.name}] No sources configured for topic {topic.name}, skipping"
            )
            return []

        logger.info(f"[{self.name}] Fetching posts for topic: {topic.name}")
        candidates = await self._fetch_candidates(topic, sources)

        unique = merge_items([candidates])
        self._log_fetch(topic.name, len(unique))
        return self._persist(unique)

    def _persist(self, items: List[NewsItem]) -> List[NewsItem]:
        """Store unseen items and swap seen ones for their persisted record."""
        if self.store is None:
            return items

        saved: List[NewsItem] = []
        for item in items:
            try:
                existing = self.store.find_by_url(item.url)
                if existing is not None:
                    saved.append(existing)
                    continue
                item_id = self.store.insert_item(item)
                saved.append(item.model_copy(update={"id": item_id}))
            except Exception as exc:
                self._log_error(f"Error saving news item {item.url}", exc)
        return saved

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Release the HTTP session"""
        if self._session:
            await self._session.close()
            self._session = None

    def _log_fetch(self, topic: str, count: int):
        logger.info(f"[{self.name}] Found {count} unique posts for '{topic}'")

    def _log_error(self, message: str, error: Exception):
        logger.warning(f"[{self.name}] {message}: {error}")


class RateLimitedProvider(BaseProvider):
    """
    Provider with a requests-per-second limiter
    """

    def __init__(
        self,
        requests_per_second: float = 1.0,
        store: Optional["BaseNewsStore"] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(store=store, settings=settings)
        self._rate_limit = max(0.01, float(requests_per_second))
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()

    async def _wait_for_rate_limit(self):
        async with self._lock:
            current_time = time.monotonic()
            time_since_last = current_time - self._last_request_time
            min_interval = 1.0 / self._rate_limit

            if time_since_last < min_interval:
                await asyncio.sleep(min_interval - time_since_last)

            self._last_request_time = time.monotonic()
