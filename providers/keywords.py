"""Keyword matching and freshness helpers shared by providers."""

from __future__ import annotations

import re
import time
from functools import lru_cache
from typing import Iterable, List, Optional, Pattern

RECENCY_WINDOW_SECONDS = 24 * 60 * 60


@lru_cache(maxsize=512)
def _keyword_pattern(keyword: str) -> Pattern[str]:
    # lookarounds instead of \b so keywords like "C++" still match
    return re.compile(r"(?<!\w)" + re.escape(keyword) + r"(?!\w)", flags=re.IGNORECASE)


def find_matching_keywords(text: str, keywords: Iterable[str]) -> List[str]:
    """Return the keywords that occur in ``text`` as whole words, in keyword order."""
    haystack = str(text or "")
    matched: List[str] = []
    if not haystack:
        return matched
    for keyword in keywords:
        needle = str(keyword or "").strip()
        if not needle or needle in matched:
            continue
        if _keyword_pattern(needle).search(haystack):
            matched.append(needle)
    return matched


def recency_cutoff(now: Optional[float] = None, window: int = RECENCY_WINDOW_SECONDS) -> int:
    """Oldest creation timestamp still considered fresh."""
    current = time.time() if now is None else float(now)
    return int(current) - int(window)


def is_recent(created_at: Optional[float], cutoff: int) -> bool:
    if created_at is None:
        return False
    try:
        return float(created_at) >= cutoff
    except (TypeError, ValueError):
        return False
