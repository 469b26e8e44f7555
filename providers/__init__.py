"""
Providers module
Fetch fresh, keyword-matched items for a topic
"""
from .base import BaseProvider, RateLimitedProvider
from .keywords import (
    RECENCY_WINDOW_SECONDS,
    find_matching_keywords,
    is_recent,
    recency_cutoff,
)
from .reddit_provider import RedditProvider, RedditTokenCache
from .hackernews_provider import HackerNewsProvider
from .mock_reddit_provider import MockRedditProvider
from .registry import ProviderRegistry, build_default_registry


__all__ = [
    "BaseProvider",
    "RateLimitedProvider",
    "RECENCY_WINDOW_SECONDS",
    "find_matching_keywords",
    "is_recent",
    "recency_cutoff",
    "RedditProvider",
    "RedditTokenCache",
    "HackerNewsProvider",
    "MockRedditProvider",
    "ProviderRegistry",
    "build_default_registry",
]
