from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from models import DigestRunResult, DigestWithSources
from orchestrator import DailyDigestScheduler


class _StubOrchestrator:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.runs = []

    async def generate_digest(self, topic):
        self.runs.append(topic)
        if topic in self.failing:
            raise RuntimeError(f"{topic} failed")
        return DigestRunResult(digest=DigestWithSources(topic=topic, summary_markdown="ok"))


def _utc(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, day, hour, minute, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_runs_once_per_day_after_run_at() -> None:
    orchestrator = _StubOrchestrator()
    scheduler = DailyDigestScheduler(orchestrator, run_at="08:00", tz="UTC", topics=["AI", "Rust"])

    assert await scheduler.trigger_due(now_utc=_utc(19, 7, 59)) == {}
    results = await scheduler.trigger_due(now_utc=_utc(19, 8, 0))
    assert sorted(results) == ["AI", "Rust"]
    assert await scheduler.trigger_due(now_utc=_utc(19, 23, 0)) == {}
    assert scheduler.last_triggered_on("AI") == "2026-10-19"

    await scheduler.trigger_due(now_utc=_utc(20, 9, 0))
    assert orchestrator.runs == ["AI", "Rust", "AI", "Rust"]


@pytest.mark.asyncio
async def test_failed_topic_is_retried_next_tick() -> None:
    orchestrator = _StubOrchestrator(failing={"AI"})
    scheduler = DailyDigestScheduler(orchestrator, topics=["AI", "Rust"])

    results = await scheduler.trigger_due(now_utc=_utc(19, 9))

    assert list(results) == ["Rust"]
    assert scheduler.last_triggered_on("AI") is None
    assert scheduler.due_topics(now_utc=_utc(19, 10)) == ["AI"]


def test_run_at_uses_local_time_zone() -> None:
    scheduler = DailyDigestScheduler(_StubOrchestrator(), run_at="08:00", tz="America/New_York", topics=["AI"])

    # 11:30 UTC is 07:30 in New York during daylight saving time
    assert scheduler.due_topics(now_utc=_utc(19, 11, 30)) == []
    assert scheduler.due_topics(now_utc=_utc(19, 12, 5)) == ["AI"]


def test_bad_schedule_values_fall_back() -> None:
    scheduler = DailyDigestScheduler(_StubOrchestrator(), run_at="noon", tz="Mars/Olympus", topics=["AI", " "])

    assert scheduler.topics == ["AI"]
    assert scheduler.due_topics(now_utc=_utc(19, 7, 59)) == []
    assert scheduler.due_topics(now_utc=_utc(19, 8, 0)) == ["AI"]


@pytest.mark.asyncio
async def test_run_now_propagates_failures() -> None:
    scheduler = DailyDigestScheduler(_StubOrchestrator(failing={"AI"}), topics=["AI"])

    with pytest.raises(RuntimeError):
        await scheduler.run_now()


@pytest.mark.asyncio
async def test_run_forever_stops_on_event() -> None:
    orchestrator = _StubOrchestrator()
    scheduler = DailyDigestScheduler(orchestrator, run_at="00:00", topics=["AI"])
    stop = asyncio.Event()

    task = asyncio.create_task(scheduler.run_forever(poll_seconds=0.01, stop_event=stop))
    await asyncio.sleep(0.05)
    stop.set()
    await asyncio.wait_for(task, timeout=1)

    assert orchestrator.runs == ["AI"]
