"""
Data Models
"""
from .schemas import (
    UNKNOWN_SOURCE_TYPE,
    NewsItem,
    Topic,
    SelectionConfig,
    SelectionResult,
    Digest,
    DigestWithSources,
    NotificationResult,
    DigestRunResult,
)

__all__ = [
    "UNKNOWN_SOURCE_TYPE",
    "NewsItem",
    "Topic",
    "SelectionConfig",
    "SelectionResult",
    "Digest",
    "DigestWithSources",
    "NotificationResult",
    "DigestRunResult",
]
