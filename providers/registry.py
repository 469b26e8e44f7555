"""
Provider Registry
Named providers and the active subset used by a digest run
"""
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from config import Settings, get_settings
from .base import BaseProvider
from .hackernews_provider import HackerNewsProvider
from .mock_reddit_provider import MockRedditProvider
from .reddit_provider import RedditProvider


logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Explicit provider registry.

    Active providers are always returned in registration order, whatever
    order the active names are listed in, so merge results are stable.
    """

    def __init__(self):
        self._providers: Dict[str, BaseProvider] = {}

    def register(self, name: str, provider: BaseProvider) -> None:
        key = name.strip().lower()
        if key in self._providers:
            logger.info(f"Replacing provider registered as '{key}'")
        self._providers[key] = provider

    def get(self, name: str) -> Optional[BaseProvider]:
        return self._providers.get(name.strip().lower())

    def names(self) -> List[str]:
        return list(self._providers)

    def get_active(self, names: Iterable[str]) -> List[Tuple[str, BaseProvider]]:
        wanted = {name.strip().lower() for name in names if name and name.strip()}
        for unknown in sorted(wanted - set(self._providers)):
            logger.warning(f"Active provider '{unknown}' is not registered, ignoring")
        return [(key, provider) for key, provider in self._providers.items() if key in wanted]

    async def close(self) -> None:
        for provider in self._providers.values():
            await provider.close()

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None


def build_default_registry(settings: Optional[Settings] = None, store=None) -> ProviderRegistry:
    """Register ``reddit`` (mock or real) then ``hackernews``."""
    settings = settings or get_settings()
    registry = ProviderRegistry()

    if settings.general.use_mock_data:
        logger.info("Using mock Reddit data")
        registry.register("reddit", MockRedditProvider(store=store, settings=settings))
    else:
        registry.register("reddit", RedditProvider(store=store, settings=settings))
    registry.register("hackernews", HackerNewsProvider(store=store, settings=settings))

    return registry
