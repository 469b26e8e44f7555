"""Digest orchestration: fetch, select, summarize, persist, notify."""

from .service import DigestOrchestrator, empty_digest_text
from .scheduler import DailyDigestScheduler
from .runtime import build_orchestrator, build_scheduler, seed_topics_if_empty

__all__ = [
    "DigestOrchestrator",
    "empty_digest_text",
    "DailyDigestScheduler",
    "build_orchestrator",
    "build_scheduler",
    "seed_topics_if_empty",
]
