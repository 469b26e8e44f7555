"""Wire settings into a ready-to-run orchestrator."""

from __future__ import annotations

import logging
from typing import Optional

from config import Settings, get_settings
from generation import get_generator
from notifications import get_notifier
from providers import build_default_registry
from storage import BaseNewsStore, get_store, load_topics_file, sync_topics

from .scheduler import DailyDigestScheduler
from .service import DigestOrchestrator


logger = logging.getLogger(__name__)


def seed_topics_if_empty(store: BaseNewsStore, settings: Settings) -> None:
    """Load the topic seed file into an empty store."""
    if store.list_topics(active_only=False):
        return
    logger.info("Seeding topics...")
    sync_topics(store, load_topics_file(settings.storage.topics_file))


def build_orchestrator(
    settings: Optional[Settings] = None,
    store: Optional[BaseNewsStore] = None,
) -> DigestOrchestrator:
    settings = settings or get_settings()
    store = store or get_store(settings)
    seed_topics_if_empty(store, settings)

    return DigestOrchestrator(
        store=store,
        registry=build_default_registry(settings, store=store),
        generator=get_generator(settings),
        notifier=get_notifier(settings, store=store),
        selection_config=settings.summary.selection_config(),
        active_providers=settings.general.active_news_providers,
        provider_timeout=settings.general.provider_timeout,
        auto_notify=settings.slack.enabled and settings.slack.auto_post,
    )


def build_scheduler(
    orchestrator: DigestOrchestrator,
    settings: Optional[Settings] = None,
) -> DailyDigestScheduler:
    settings = settings or get_settings()
    return DailyDigestScheduler(
        orchestrator,
        run_at=settings.scheduler.run_at,
        tz=settings.scheduler.tz,
        topics=settings.scheduler.topics,
    )
