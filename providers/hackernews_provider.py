"""
Hacker News Provider
Keyword-matched stories from the official Firebase API lists
API docs: https://github.com/HackerNews/API
"""
import asyncio
from typing import Any, Dict, List, Optional
import logging

import aiohttp

from config import Settings
from models import NewsItem, Topic
from utils import canonicalize_url
from .base import RateLimitedProvider
from .keywords import find_matching_keywords, is_recent, recency_cutoff


logger = logging.getLogger(__name__)


class HackerNewsProvider(RateLimitedProvider):
    """
    Hacker News provider (Firebase API)

    Topic sources name the story lists to scan: ``top``, ``new``, ``best``.
    Only stories whose title matches a keyword are kept.
    """

    FIREBASE_URL = "https://hacker-news.firebaseio.com/v0"

    STORY_LISTS = {
        "top": "topstories",
        "new": "newstories",
        "best": "beststories",
    }

    def __init__(self, store=None, settings: Optional[Settings] = None):
        super().__init__(store=store, settings=settings)
        self._hn_settings = self.settings.hackernews
        self._rate_limit = max(0.01, float(self._hn_settings.requests_per_second))

    @property
    def source_type(self) -> str:
        return "hackernews"

    @property
    def name(self) -> str:
        return "Hacker News"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.general.request_timeout),
            )
        return self._session

    async def _get_json(self, url: str) -> Any:
        await self._wait_for_rate_limit()
        session = await self._get_session()
        async with session.get(url) as response:
            response.raise_for_status()
            return await response.json()

    async def _fetch_story_ids(self, endpoint: str) -> List[int]:
        try:
            data = await self._get_json(f"{self.FIREBASE_URL}/{endpoint}.json")
        except Exception as exc:
            self._log_error(f"Error fetching {endpoint}", exc)
            return []
        return [story_id for story_id in (data or []) if isinstance(story_id, int)]

    async def _fetch_story(self, story_id: int) -> Optional[Dict[str, Any]]:
        return await self._get_json(f"{self.FIREBASE_URL}/item/{story_id}.json")

    async def _fetch_candidates(self, topic: Topic, sources: List[str]) -> List[NewsItem]:
        story_ids: List[int] = []
        for source in sources:
            endpoint = self.STORY_LISTS.get(source.strip().lower())
            if endpoint is None:
                logger.warning(f"[Hacker News] Unknown story list '{source}', skipping")
                continue
            ids = await self._fetch_story_ids(endpoint)
            story_ids.extend(ids[: self._hn_settings.max_stories_per_list])

        story_ids = list(dict.fromkeys(story_ids))
        cutoff = recency_cutoff()
        items: List[NewsItem] = []

        batch_size = max(1, self._hn_settings.batch_size)
        for i in range(0, len(story_ids), batch_size):
            batch_ids = story_ids[i:i + batch_size]
            batch_results = await asyncio.gather(
                *[self._fetch_story(story_id) for story_id in batch_ids],
                return_exceptions=True,
            )

            for story_id, result in zip(batch_ids, batch_results):
                if isinstance(result, Exception):
                    self._log_error(f"Error fetching story {story_id}", result)
                    continue
                item = self._convert_story(result, topic.keywords, cutoff)
                if item:
                    items.append(item)

        return items

    def _convert_story(
        self,
        story: Optional[Dict[str, Any]],
        keywords: List[str],
        cutoff: int,
    ) -> Optional[NewsItem]:
        """Map a Firebase item to a NewsItem, or None when it is filtered out"""
        if not story or not story.get("id") or not story.get("title"):
            return None
        if story.get("deleted") or story.get("dead"):
            return None
        if story.get("type", "story") != "story":
            return None

        created_at = story.get("time")
        if not is_recent(created_at, cutoff):
            return None

        matched = find_matching_keywords(story["title"], keywords)
        if not matched:
            return None

        story_id = story["id"]
        url = story.get("url") or f"https://news.ycombinator.com/item?id={story_id}"

        return NewsItem(
            title=story["title"],
            url=canonicalize_url(url),
            source="Hacker News",
            source_type=self.source_type,
            score=story.get("score") or 0,
            matched_keywords=matched,
            created_at=created_at,
        )
