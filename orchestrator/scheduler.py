"""Daily digest scheduling at a local wall-clock time."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import logging
from threading import Lock
from typing import Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from models import DigestRunResult
from .service import DigestOrchestrator


logger = logging.getLogger(__name__)


DEFAULT_RUN_AT = (8, 0)


def _parse_run_at(run_at: str) -> Tuple[int, int]:
    text = str(run_at or "").strip()
    parts = text.split(":")
    if len(parts) != 2:
        return DEFAULT_RUN_AT
    try:
        hour = max(0, min(23, int(parts[0])))
        minute = max(0, min(59, int(parts[1])))
        return hour, minute
    except ValueError:
        return DEFAULT_RUN_AT


def _resolve_tz(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(str(name or "UTC").strip() or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown time zone '{name}', falling back to UTC")
        return ZoneInfo("UTC")


class DailyDigestScheduler:
    """
    Runs each configured topic at most once per local day, once local time
    has passed ``run_at``. Call ``trigger_due`` from cron or a loop.
    """

    def __init__(
        self,
        orchestrator: DigestOrchestrator,
        *,
        run_at: str = "08:00",
        tz: str = "UTC",
        topics: Iterable[str] = ("AI",),
    ) -> None:
        self.orchestrator = orchestrator
        self.run_at = str(run_at).strip() or "08:00"
        self.tz = _resolve_tz(tz)
        self.topics = [str(topic).strip() for topic in topics if str(topic).strip()]
        self._last_triggered_on: Dict[str, str] = {}
        self._lock = Lock()

    def last_triggered_on(self, topic: str) -> Optional[str]:
        with self._lock:
            return self._last_triggered_on.get(topic)

    def due_topics(self, *, now_utc: Optional[datetime] = None) -> List[str]:
        now = now_utc or datetime.now(timezone.utc)
        local_now = now.astimezone(self.tz)
        run_hour, run_minute = _parse_run_at(self.run_at)
        if local_now.hour * 60 + local_now.minute < run_hour * 60 + run_minute:
            return []

        local_date = local_now.date().isoformat()
        with self._lock:
            return [topic for topic in self.topics if self._last_triggered_on.get(topic) != local_date]

    async def trigger_due(self, *, now_utc: Optional[datetime] = None) -> Dict[str, DigestRunResult]:
        """Run every due topic; a failing topic is logged and retried the next tick."""
        now = now_utc or datetime.now(timezone.utc)
        local_date = now.astimezone(self.tz).date().isoformat()
        results: Dict[str, DigestRunResult] = {}

        for topic in self.due_topics(now_utc=now):
            logger.info(f"=== Scheduled task started for {topic} ({local_date}) ===")
            try:
                results[topic] = await self.orchestrator.generate_digest(topic)
            except Exception as exc:
                logger.error(f"Error in scheduled task for {topic}: {exc}")
                continue

            with self._lock:
                self._last_triggered_on[topic] = local_date
            logger.info(f"=== Scheduled task completed for {topic} ===")

        return results

    async def run_now(self) -> Dict[str, DigestRunResult]:
        """Run every configured topic immediately; failures propagate."""
        logger.info("Running scheduled task immediately...")
        results: Dict[str, DigestRunResult] = {}
        for topic in self.topics:
            results[topic] = await self.orchestrator.generate_digest(topic)
        return results

    async def run_forever(
        self,
        *,
        poll_seconds: float = 60.0,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Tick every ``poll_seconds`` until ``stop_event`` is set."""
        stop_event = stop_event or asyncio.Event()
        logger.info(
            f"Scheduler started: {', '.join(self.topics) or 'no topics'} daily at {self.run_at} ({self.tz.key})"
        )
        while not stop_event.is_set():
            await self.trigger_due()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=poll_seconds)
            except asyncio.TimeoutError:
                continue
        logger.info("Scheduler stopped")
