from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from config.settings import CONFIG_DIR
from models import NewsItem, Topic
from storage import InMemoryNewsStore, SqliteNewsStore, load_topics_file, sync_topics
from utils import ConfigurationError


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryNewsStore()
    return SqliteNewsStore(db_path=str(tmp_path / "nested" / "news.db"))


def _item(url: str, score: int, created_at: int = 1_700_000_000) -> NewsItem:
    return NewsItem(
        title=url.rsplit("/", 1)[-1],
        url=url,
        source="artificial",
        source_type="reddit",
        score=score,
        matched_keywords=["AI", "LLM"],
        created_at=created_at,
    )


def test_insert_item_is_idempotent_by_url(store) -> None:
    first = store.insert_item(_item("https://a.example/one", 5))
    again = store.insert_item(_item("https://a.example/one", 99))

    assert first == again
    found = store.find_by_url("https://a.example/one")
    assert found.id == first
    assert found.score == 5
    assert found.matched_keywords == ["AI", "LLM"]
    assert store.find_by_url("https://a.example/missing") is None


def test_digest_sources_come_back_in_rank_order(store) -> None:
    low = store.insert_item(_item("https://a.example/low", 1))
    old = store.insert_item(_item("https://a.example/old", 50, created_at=100))
    new = store.insert_item(_item("https://a.example/new", 50, created_at=200))

    digest_id = store.insert_digest("AI", "## Overview\ntext")
    for item_id in (low, old, new, new):
        store.link_digest_source(digest_id, item_id)

    digest = store.get_digest_with_sources(digest_id)

    assert digest.topic == "AI"
    assert [item.title for item in digest.sources] == ["new", "old", "low"]
    assert store.get_digest_with_sources(12345) is None


def test_list_digests_filters_and_orders_newest_first(store) -> None:
    first = store.insert_digest("AI", "one")
    second = store.insert_digest("Rust", "two")
    third = store.insert_digest("AI", "three")
    today = datetime.now(timezone.utc).date().isoformat()

    assert [digest.id for digest in store.list_digests()] == [third, second, first]
    assert [digest.id for digest in store.list_digests(topic="AI")] == [third, first]
    assert [digest.id for digest in store.list_digests(date=today, topic="Rust")] == [second]
    assert store.list_digests(date="1999-01-01") == []
    assert store.get_latest_digest().id == third


def test_notification_records_are_unique_per_channel(store) -> None:
    digest_id = store.insert_digest("AI", "text")

    assert store.has_notification(digest_id, "general") is False
    store.record_notification(digest_id, "general", "2026-01-01T00:00:00Z")
    store.record_notification(digest_id, "general", "2026-01-02T00:00:00Z")

    assert store.has_notification(digest_id, "general") is True
    assert store.has_notification(digest_id, "alerts") is False


def test_topic_upsert_and_sync(store) -> None:
    inserted, updated = sync_topics(
        store,
        [
            Topic(name="AI", keywords=["AI"], sources={"reddit": ["artificial"]}),
            Topic(name="Rust", keywords=["Rust"], active=False),
        ],
    )
    assert (inserted, updated) == (2, 0)

    inserted, updated = sync_topics(store, [Topic(name="AI", keywords=["AI", "LLM"], sources={"hackernews": ["top"]})])
    assert (inserted, updated) == (0, 1)

    topic = store.get_topic_by_name("AI")
    assert topic.keywords == ["AI", "LLM"]
    assert topic.sources_for("hackernews") == ["top"]
    assert topic.sources_for("reddit") == []
    assert [t.name for t in store.list_topics()] == ["AI"]
    assert {t.name for t in store.list_topics(active_only=False)} == {"AI", "Rust"}


def test_sqlite_data_survives_reopen(tmp_path) -> None:
    path = str(tmp_path / "news.db")
    first = SqliteNewsStore(db_path=path)
    item_id = first.insert_item(_item("https://a.example/keep", 3))

    reopened = SqliteNewsStore(db_path=path)

    assert reopened.find_by_url("https://a.example/keep").id == item_id


def test_load_topics_file_skips_bad_entries(tmp_path) -> None:
    path = tmp_path / "topics.json"
    path.write_text(
        json.dumps(
            [
                {"name": "AI", "keywords": ["AI"], "sources": {"reddit": "artificial"}},
                {"keywords": ["nameless"]},
                "not an object",
                {"name": "Broken", "active": "sometimes"},
            ]
        ),
        encoding="utf-8",
    )

    topics = load_topics_file(path)

    assert [topic.name for topic in topics] == ["AI"]
    assert topics[0].sources == {"reddit": ["artificial"]}


def test_load_topics_file_errors(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        load_topics_file(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_topics_file(bad)

    not_array = tmp_path / "object.json"
    not_array.write_text('{"name": "AI"}', encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_topics_file(not_array)


def test_bundled_topics_file_loads() -> None:
    topics = load_topics_file(CONFIG_DIR / "topics.json")

    assert topics[0].name == "AI"
    assert "reddit" in topics[0].sources
