"""Orchestrator service layer for on-demand and scheduled digest runs."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from curation import describe_truncation, merge_items, select_items
from generation import BaseSummaryGenerator
from models import (
    DigestRunResult,
    DigestWithSources,
    NewsItem,
    NotificationResult,
    SelectionConfig,
    Topic,
)
from notifications import SlackNotifier
from providers import BaseProvider, ProviderRegistry
from storage import BaseNewsStore
from utils import TopicNotFoundError


logger = logging.getLogger(__name__)


def empty_digest_text(topic_name: str) -> str:
    return f"No new posts found for {topic_name} in the last 24 hours."


class DigestOrchestrator:
    """
    Central orchestrator: fetch, merge, select, summarize, persist, notify.

    Provider results are merged in registration order whatever order they
    complete in. Empty merged output never reaches the generator or the
    notifier.
    """

    def __init__(
        self,
        *,
        store: BaseNewsStore,
        registry: ProviderRegistry,
        generator: BaseSummaryGenerator,
        notifier: Optional[SlackNotifier] = None,
        selection_config: Optional[SelectionConfig] = None,
        active_providers: Optional[Iterable[str]] = None,
        provider_timeout: float = 120.0,
        auto_notify: bool = False,
    ) -> None:
        self.store = store
        self.registry = registry
        self.generator = generator
        self.notifier = notifier
        self.selection_config = selection_config or SelectionConfig()
        self.active_providers = list(active_providers) if active_providers is not None else registry.names()
        self.provider_timeout = float(provider_timeout)
        self.auto_notify = auto_notify

    async def _run_provider(self, name: str, provider: BaseProvider, topic: Topic):
        try:
            return await asyncio.wait_for(provider.fetch(topic), timeout=self.provider_timeout)
        except asyncio.TimeoutError as exc:
            logger.warning(f"{name} provider timed out after {self.provider_timeout:.0f}s")
            return exc
        except Exception as exc:
            logger.warning(f"{name} provider skipped: {exc}")
            return exc

    async def fetch_candidates(self, topic: Topic) -> Tuple[List[NewsItem], Dict[str, str]]:
        """Fan out to active providers; returns merged items and per-provider errors."""
        providers = self.registry.get_active(self.active_providers)
        logger.info(f"Using providers: {', '.join(name for name, _ in providers) or 'none'}")

        # gather keeps argument order, which is registration order
        results = await asyncio.gather(
            *[self._run_provider(name, provider, topic) for name, provider in providers]
        )

        batches: List[List[NewsItem]] = []
        errors: Dict[str, str] = {}
        for (name, _), result in zip(providers, results):
            if isinstance(result, Exception):
                errors[name] = str(result) or type(result).__name__
                batches.append([])
            else:
                batches.append(list(result or []))

        return merge_items(batches), errors

    async def generate_digest(self, topic_name: str) -> DigestRunResult:
        """
        Produce, persist and optionally publish a digest for ``topic_name``.

        Raises:
            TopicNotFoundError: topic is not in the store
            GenerationError: the generator failed; nothing was persisted
        """
        logger.info(f"=== Starting summary generation for topic: {topic_name} ===")

        topic = self.store.get_topic_by_name(topic_name)
        if topic is None:
            raise TopicNotFoundError(topic_name)

        logger.info(
            f"Using {self.generator.provider_name} LLM ({self.generator.model_name})"
        )

        unique_items, provider_errors = await self.fetch_candidates(topic)

        if not unique_items:
            logger.info("No news items found, creating empty summary")
            text = empty_digest_text(topic_name)
            digest_id = self.store.insert_digest(topic_name, text)
            digest = self.store.get_digest_with_sources(digest_id)
            return DigestRunResult(digest=digest, provider_errors=provider_errors)

        selection = select_items(unique_items, self.selection_config)
        if selection.truncated:
            logger.info(describe_truncation(len(unique_items), selection))

        summary_markdown = await self.generator.summarize(selection.selected, topic_name)

        digest_id = self.store.insert_digest(topic_name, summary_markdown)
        for item in selection.selected:
            if item.id is not None:
                self.store.link_digest_source(digest_id, item.id)

        stored = self.store.get_digest(digest_id)
        digest = DigestWithSources(**stored.model_dump(), sources=selection.selected)
        logger.info(f"Summary created with ID: {digest_id}")

        result = DigestRunResult(
            digest=digest,
            selection=selection,
            provider_errors=provider_errors,
        )

        if self.auto_notify and self.notifier is not None and selection.selected:
            await self._notify(result)

        logger.info("=== Summary generation complete ===")
        return result

    async def _notify(self, result: DigestRunResult) -> None:
        try:
            notification = await self.notifier.publish(result.digest)
        except Exception as exc:
            logger.error(f"Error posting to Slack: {exc}")
            notification = NotificationResult(success=False, error=str(exc) or type(exc).__name__)

        result.notification = notification
        if notification.success:
            logger.info("Summary posted to Slack successfully")
        else:
            logger.warning(f"Failed to post to Slack: {notification.error}")
            result.warnings.append(f"Notification failed: {notification.error}")

    async def publish_digest(self, digest_id: int) -> NotificationResult:
        """Publish a stored digest on demand."""
        if self.notifier is None:
            return NotificationResult(success=False, error="No notifier configured")
        digest = self.get_digest(digest_id)
        if digest is None:
            return NotificationResult(success=False, error=f"Summary {digest_id} not found")
        return await self.notifier.publish(digest)

    def get_latest_digest(self) -> Optional[DigestWithSources]:
        latest = self.store.get_latest_digest()
        if latest is None or latest.id is None:
            return None
        return self.store.get_digest_with_sources(latest.id)

    def list_digests(self, date: Optional[str] = None, topic: Optional[str] = None) -> List[DigestWithSources]:
        return [
            DigestWithSources(**digest.model_dump(), sources=self.store.get_digest_sources(digest.id))
            for digest in self.store.list_digests(date=date, topic=topic)
        ]

    def get_digest(self, digest_id: int) -> Optional[DigestWithSources]:
        return self.store.get_digest_with_sources(digest_id)

    async def aclose(self) -> None:
        await self.registry.close()
        await self.generator.aclose()
