"""
Reddit Provider
Hot posts from configured subreddits plus site-wide keyword search
"""
import asyncio
import time
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

import aiohttp
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from config import Settings
from models import NewsItem, Topic
from utils import ProviderError, canonicalize_url
from .base import RateLimitedProvider
from .keywords import find_matching_keywords, is_recent, recency_cutoff


logger = logging.getLogger(__name__)


class RedditTokenCache:
    """
    Application-only OAuth token shared by all requests of a provider.

    Safe for concurrent use: refreshes are serialized by a lock and the
    token is treated as expired ``skew_seconds`` before its real expiry.
    """

    AUTH_URL = "https://www.reddit.com/api/v1/access_token"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        user_agent: str,
        skew_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._user_agent = user_agent
        self._skew = float(skew_seconds)
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    def is_valid(self) -> bool:
        return bool(self._token) and self._clock() < self._expires_at - self._skew

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    async def get_token(self, session: aiohttp.ClientSession) -> str:
        if self.is_valid():
            return self._token

        async with self._lock:
            # another coroutine may have refreshed while we waited
            if self.is_valid():
                return self._token

            token, expires_in = await self._request_token(session)
            self._token = token
            self._expires_at = self._clock() + expires_in
            logger.debug(f"[Reddit] Access token refreshed, expires in {expires_in:.0f}s")
            return token

    async def _request_token(self, session: aiohttp.ClientSession) -> Tuple[str, float]:
        async with session.post(
            self.AUTH_URL,
            data={"grant_type": "client_credentials"},
            auth=aiohttp.BasicAuth(self._client_id, self._client_secret),
            headers={"User-Agent": self._user_agent},
        ) as response:
            response.raise_for_status()
            payload = await response.json()

        token = (payload or {}).get("access_token")
        if not token:
            raise ProviderError("Reddit token response has no access_token", source="reddit")
        return str(token), float(payload.get("expires_in") or 3600)


class RedditProvider(RateLimitedProvider):
    """
    Reddit provider (OAuth API)

    Posts from a topic's subreddits are implicitly relevant when
    ``include_unmatched_from_sources`` is set; keyword search hits must
    always match at least one keyword.
    """

    API_URL = "https://oauth.reddit.com"

    def __init__(
        self,
        store=None,
        settings: Optional[Settings] = None,
        token_cache: Optional[RedditTokenCache] = None,
    ):
        super().__init__(store=store, settings=settings)
        self._reddit_settings = self.settings.reddit
        self._rate_limit = max(0.01, float(self._reddit_settings.requests_per_second))
        self.include_unmatched_from_sources = self._reddit_settings.include_unmatched_from_sources
        self._token_cache = token_cache or RedditTokenCache(
            client_id=self._reddit_settings.client_id or "",
            client_secret=self._reddit_settings.client_secret or "",
            user_agent=self._reddit_settings.user_agent,
        )

    @property
    def source_type(self) -> str:
        return "reddit"

    @property
    def name(self) -> str:
        return "Reddit"

    def is_configured(self) -> bool:
        return bool(
            self._reddit_settings.client_id and
            self._reddit_settings.client_secret
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.general.request_timeout),
            )
        return self._session

    @retry(
        retry=retry_if_exception_type((aiohttp.ClientError, asyncio.TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        await self._wait_for_rate_limit()
        session = await self._get_session()
        token = await self._token_cache.get_token(session)

        async with session.get(
            f"{self.API_URL}{path}",
            params=params,
            headers={
                "Authorization": f"Bearer {token}",
                "User-Agent": self._reddit_settings.user_agent,
            },
        ) as response:
            if response.status == 401:
                self._token_cache.invalidate()
            response.raise_for_status()
            return await response.json()

    async def _get_listing(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        payload = await self._get_json(path, params)
        children = ((payload or {}).get("data") or {}).get("children") or []
        return [child.get("data") or {} for child in children if isinstance(child, dict)]

    async def _fetch_candidates(self, topic: Topic, sources: List[str]) -> List[NewsItem]:
        if not self.is_configured():
            raise ProviderError(
                "Reddit API credentials not configured. "
                "Set REDDIT_CLIENT_ID and REDDIT_CLIENT_SECRET",
                source="reddit",
            )

        keywords = topic.keywords
        cutoff = recency_cutoff()
        posts: Dict[str, NewsItem] = {}

        logger.info(f"[Reddit] Subreddits: {', '.join(sources)}")

        for subreddit in sources:
            try:
                listing = await self._get_listing(
                    f"/r/{subreddit}/hot",
                    {"limit": self._reddit_settings.hot_limit},
                )
            except Exception as exc:
                self._log_error(f"Error fetching from r/{subreddit}", exc)
                continue

            for post in listing:
                item = self._convert_post(
                    post,
                    keywords,
                    cutoff,
                    allow_unmatched=self.include_unmatched_from_sources,
                )
                if item and item.url not in posts:
                    posts[item.url] = item

        for keyword in keywords[: self._reddit_settings.max_keyword_searches]:
            try:
                listing = await self._get_listing(
                    "/search",
                    {
                        "q": keyword,
                        "t": "day",
                        "sort": "hot",
                        "limit": self._reddit_settings.search_limit,
                        "type": "link",
                    },
                )
            except Exception as exc:
                self._log_error(f"Error searching for keyword {keyword}", exc)
                continue

            for post in listing:
                item = self._convert_post(post, keywords, cutoff, allow_unmatched=False)
                if item and item.url not in posts:
                    posts[item.url] = item

        return list(posts.values())

    def _convert_post(
        self,
        post: Dict[str, Any],
        keywords: List[str],
        cutoff: int,
        allow_unmatched: bool,
    ) -> Optional[NewsItem]:
        """Map a listing entry to a NewsItem, or None when it is filtered out"""
        permalink = post.get("permalink")
        title = post.get("title")
        if not permalink or not title:
            return None

        created_at = post.get("created_utc")
        if not is_recent(created_at, cutoff):
            return None

        matched = find_matching_keywords(f"{title} {post.get('selftext') or ''}", keywords)
        if not matched and not allow_unmatched:
            return None

        return NewsItem(
            title=title,
            url=canonicalize_url(f"https://reddit.com{permalink}"),
            source=post.get("subreddit") or "",
            source_type=self.source_type,
            score=post.get("score") or 0,
            matched_keywords=matched,
            created_at=created_at,
        )
