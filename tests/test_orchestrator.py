from __future__ import annotations

import asyncio
import time

import pytest

from config import Settings
from generation import BaseSummaryGenerator, GenerationOutput
from models import NewsItem, NotificationResult, SelectionConfig, Topic
from notifications import SlackNotifier
from notifications import slack as slack_module
from orchestrator import DigestOrchestrator, empty_digest_text
from providers import BaseProvider, ProviderRegistry
from storage import InMemoryNewsStore
from utils import GenerationError, TopicNotFoundError


NOW = int(time.time())
SETTINGS = Settings()


def _item(url: str, score: int, source_type: str, title: str = "") -> NewsItem:
    return NewsItem(
        title=title or url.rsplit("/", 1)[-1],
        url=url,
        source="src",
        source_type=source_type,
        score=score,
        matched_keywords=["AI"],
        created_at=NOW,
    )


class _FakeProvider(BaseProvider):
    requires_sources = False

    def __init__(self, kind: str, items=None, delay: float = 0.0, error: Exception = None, store=None):
        super().__init__(store=store, settings=SETTINGS)
        self._kind = kind
        self._items = items or []
        self._delay = delay
        self._error = error
        self.calls = 0

    @property
    def source_type(self) -> str:
        return self._kind

    @property
    def name(self) -> str:
        return self._kind

    async def _fetch_candidates(self, topic, sources):
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return list(self._items)


class _FakeGenerator(BaseSummaryGenerator):
    def __init__(self, fail: bool = False):
        super().__init__(model="fake-model")
        self.fail = fail
        self.calls = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def _generate(self, items, topic):
        self.calls.append([item.title for item in items])
        if self.fail:
            raise RuntimeError("model unavailable")
        return GenerationOutput(text=f"## Overview\n{len(items)} items about {topic}\n")

    async def check_health(self) -> bool:
        return True


class _RecordingNotifier(SlackNotifier):
    def __init__(self, result: NotificationResult = None, error: Exception = None):
        super().__init__(webhook_url="https://hooks.example/x")
        self.published = []
        self._result = result or NotificationResult(success=True, timestamp="now")
        self._error = error

    async def publish(self, digest):
        self.published.append(digest)
        if self._error is not None:
            raise self._error
        return self._result


def _store() -> InMemoryNewsStore:
    store = InMemoryNewsStore()
    store.upsert_topic(Topic(name="AI", keywords=["AI"], sources={"reddit": ["artificial"]}))
    return store


def _orchestrator(store, providers, generator=None, notifier=None, **kwargs) -> DigestOrchestrator:
    registry = ProviderRegistry()
    for provider in providers:
        registry.register(provider.source_type, provider)
    return DigestOrchestrator(
        store=store,
        registry=registry,
        generator=generator or _FakeGenerator(),
        notifier=notifier,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_unknown_topic_raises() -> None:
    orchestrator = _orchestrator(_store(), [])

    with pytest.raises(TopicNotFoundError):
        await orchestrator.generate_digest("Quantum")


@pytest.mark.asyncio
async def test_empty_fetch_stores_placeholder_without_generating_or_notifying() -> None:
    store = _store()
    generator = _FakeGenerator()
    notifier = _RecordingNotifier()
    orchestrator = _orchestrator(
        store,
        [_FakeProvider("reddit", store=store), _FakeProvider("hackernews", store=store)],
        generator=generator,
        notifier=notifier,
        auto_notify=True,
    )

    result = await orchestrator.generate_digest("AI")

    assert result.digest.summary_markdown == empty_digest_text("AI")
    assert result.digest.sources == []
    assert result.is_empty is True
    assert result.selection.selected == []
    assert result.selection.discarded == []
    assert generator.calls == []
    assert notifier.published == []
    assert store.get_latest_digest().summary_markdown == "No new posts found for AI in the last 24 hours."


@pytest.mark.asyncio
async def test_full_run_selects_persists_and_links_sources() -> None:
    store = _store()
    reddit = _FakeProvider(
        "reddit",
        [_item("https://a.example/r1", 50, "reddit"), _item("https://a.example/r2", 5, "reddit")],
        store=store,
    )
    hackernews = _FakeProvider(
        "hackernews",
        [_item("https://a.example/h1", 300, "hackernews"), _item("https://a.example/h2", 1, "hackernews")],
        store=store,
    )
    generator = _FakeGenerator()
    orchestrator = _orchestrator(
        store,
        [reddit, hackernews],
        generator=generator,
        selection_config=SelectionConfig(max_items=3),
    )

    result = await orchestrator.generate_digest("AI")

    assert generator.calls == [["h1", "r1", "r2"]]
    assert [item.title for item in result.digest.sources] == ["h1", "r1", "r2"]
    assert [item.title for item in result.selection.discarded] == ["h2"]
    assert result.digest.summary_markdown == "## Overview\n3 items about AI"

    stored = orchestrator.get_digest(result.digest.id)
    assert [item.title for item in stored.sources] == ["h1", "r1", "r2"]
    assert orchestrator.get_latest_digest().id == result.digest.id
    assert [digest.id for digest in orchestrator.list_digests(topic="AI")] == [result.digest.id]


@pytest.mark.asyncio
async def test_merge_follows_registration_order_not_completion_order() -> None:
    store = _store()
    shared = "https://a.example/shared"
    slow_reddit = _FakeProvider("reddit", [_item(shared, 1, "reddit", "from reddit")], delay=0.05)
    fast_hn = _FakeProvider("hackernews", [_item(shared, 999, "hackernews", "from hn")])
    orchestrator = _orchestrator(store, [slow_reddit, fast_hn])

    items, errors = await orchestrator.fetch_candidates(store.get_topic_by_name("AI"))

    assert errors == {}
    assert [item.title for item in items] == ["from reddit"]
    assert items[0].source_type == "reddit"


@pytest.mark.asyncio
async def test_failing_and_slow_providers_are_recorded_and_skipped() -> None:
    store = _store()
    broken = _FakeProvider("reddit", error=RuntimeError("503 from upstream"))
    slow = _FakeProvider("slow", [_item("https://a.example/slow", 1, "slow")], delay=1.0)
    healthy = _FakeProvider("hackernews", [_item("https://a.example/ok", 7, "hackernews")], store=store)
    orchestrator = _orchestrator(store, [broken, slow, healthy], provider_timeout=0.05)

    result = await orchestrator.generate_digest("AI")

    assert set(result.provider_errors) == {"reddit", "slow"}
    assert "503" in result.provider_errors["reddit"]
    assert [item.title for item in result.digest.sources] == ["ok"]


@pytest.mark.asyncio
async def test_only_active_providers_run() -> None:
    store = _store()
    reddit = _FakeProvider("reddit", [_item("https://a.example/r", 1, "reddit")])
    hackernews = _FakeProvider("hackernews", [_item("https://a.example/h", 1, "hackernews")])
    orchestrator = _orchestrator(store, [reddit, hackernews], active_providers=["hackernews"])

    result = await orchestrator.generate_digest("AI")

    assert reddit.calls == 0
    assert hackernews.calls == 1
    assert [item.source_type for item in result.digest.sources] == ["hackernews"]


@pytest.mark.asyncio
async def test_generator_failure_persists_nothing() -> None:
    store = _store()
    provider = _FakeProvider("reddit", [_item("https://a.example/r", 1, "reddit")], store=store)
    notifier = _RecordingNotifier()
    orchestrator = _orchestrator(
        store,
        [provider],
        generator=_FakeGenerator(fail=True),
        notifier=notifier,
        auto_notify=True,
    )

    with pytest.raises(GenerationError):
        await orchestrator.generate_digest("AI")

    assert store.list_digests() == []
    assert notifier.published == []


@pytest.mark.asyncio
async def test_notification_failure_becomes_a_warning() -> None:
    store = _store()
    provider = _FakeProvider("reddit", [_item("https://a.example/r", 1, "reddit")], store=store)
    notifier = _RecordingNotifier(result=NotificationResult(success=False, error="channel_not_found"))
    orchestrator = _orchestrator(store, [provider], notifier=notifier, auto_notify=True)

    result = await orchestrator.generate_digest("AI")

    assert len(notifier.published) == 1
    assert result.notification.success is False
    assert result.warnings == ["Notification failed: channel_not_found"]
    assert store.get_digest(result.digest.id) is not None


@pytest.mark.asyncio
async def test_notifier_exception_does_not_fail_the_run() -> None:
    store = _store()
    provider = _FakeProvider("reddit", [_item("https://a.example/r", 1, "reddit")], store=store)
    notifier = _RecordingNotifier(error=RuntimeError("socket closed"))
    orchestrator = _orchestrator(store, [provider], notifier=notifier, auto_notify=True)

    result = await orchestrator.generate_digest("AI")

    assert result.notification.error == "socket closed"
    assert result.warnings


@pytest.mark.asyncio
async def test_auto_notify_off_skips_notifier() -> None:
    store = _store()
    provider = _FakeProvider("reddit", [_item("https://a.example/r", 1, "reddit")], store=store)
    notifier = _RecordingNotifier()
    orchestrator = _orchestrator(store, [provider], notifier=notifier)

    result = await orchestrator.generate_digest("AI")

    assert notifier.published == []
    assert result.notification is None


@pytest.mark.asyncio
async def test_publish_digest_on_demand_is_idempotent(monkeypatch) -> None:
    store = _store()
    provider = _FakeProvider("reddit", [_item("https://a.example/r", 1, "reddit")], store=store)
    posted = []

    async def fake_post(url, payload, timeout):
        posted.append(payload)

    monkeypatch.setattr(slack_module, "_post_webhook", fake_post)
    notifier = SlackNotifier(webhook_url="https://hooks.example/x", store=store)
    orchestrator = _orchestrator(store, [provider], notifier=notifier)

    result = await orchestrator.generate_digest("AI")
    first = await orchestrator.publish_digest(result.digest.id)
    second = await orchestrator.publish_digest(result.digest.id)
    missing = await orchestrator.publish_digest(9999)

    assert first.success is True
    assert second.already_posted is True
    assert len(posted) == 1
    assert missing.success is False


@pytest.mark.asyncio
async def test_cancelled_run_persists_nothing() -> None:
    store = _store()
    generator = _FakeGenerator()
    slow = _FakeProvider("reddit", [_item("https://a.example/r", 1, "reddit")], delay=5.0, store=store)
    orchestrator = _orchestrator(store, [slow], generator=generator)

    task = asyncio.create_task(orchestrator.generate_digest("AI"))
    await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert generator.calls == []
    assert store.list_digests() == []
