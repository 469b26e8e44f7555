"""
Mock Reddit Provider
Canned recent posts for demos and offline development
"""
import asyncio
import time
from typing import List, Optional
import logging

from config import Settings
from models import NewsItem, Topic
from .base import BaseProvider


logger = logging.getLogger(__name__)


# (title, subreddit, slug, score, matched keywords, age in hours)
_MOCK_POSTS = [
    ("OpenAI announces GPT-5 with groundbreaking multimodal capabilities",
     "artificial", "mock1", 2847, "OpenAI, GPT, AI", 1),
    ("Anthropic's Claude 4 achieves 95% on advanced reasoning benchmarks",
     "MachineLearning", "mock2", 1923, "Claude, Anthropic, AI", 2),
    ("NVIDIA releases new AI chip with 10x performance improvement",
     "artificial", "mock3", 1654, "Nvidia, AI", 3),
    ("Local LLM breakthrough: Running 70B models on consumer GPUs",
     "LocalLLaMA", "mock4", 1432, "LLM, Machine Learning", 4),
    ("New research paper: Transformers architecture fundamentally reimagined",
     "MachineLearning", "mock5", 1287, "Machine Learning, Deep Learning", 5),
    ("OpenAI safety research reveals new alignment techniques",
     "OpenAI", "mock6", 891, "OpenAI, AI", 6),
    ("Meta's LLaMA 4 open source release draws community praise",
     "LocalLLaMA", "mock7", 743, "LLM, AI", 7),
    ("AI agents successfully complete complex software engineering tasks",
     "artificial", "mock8", 632, "AI, Artificial Intelligence", 8),
]


class MockRedditProvider(BaseProvider):
    """Serves the same eight posts for every topic, stamped relative to now"""

    requires_sources = False

    def __init__(self, store=None, settings: Optional[Settings] = None, delay: float = 1.0):
        super().__init__(store=store, settings=settings)
        self.delay = delay

    @property
    def source_type(self) -> str:
        return "reddit"

    @property
    def name(self) -> str:
        return "Reddit (mock)"

    async def _fetch_candidates(self, topic: Topic, sources: List[str]) -> List[NewsItem]:
        # simulate API latency
        if self.delay > 0:
            await asyncio.sleep(self.delay)

        now = int(time.time())
        posts = [
            NewsItem(
                title=title,
                url=f"https://reddit.com/r/{subreddit}/{slug}",
                source=subreddit,
                source_type=self.source_type,
                score=score,
                matched_keywords=keywords,
                created_at=now - hours * 3600,
            )
            for title, subreddit, slug, score, keywords, hours in _MOCK_POSTS
        ]
        logger.info(f"[{self.name}] Generated {len(posts)} mock posts")
        return posts
