"""In-memory news store for tests, demos and the ``memory`` backend."""

from __future__ import annotations

from threading import Lock
from typing import Dict, List, Optional, Tuple

from models import Digest, NewsItem, Topic
from utils import utc_now_iso

from .base import BaseNewsStore


def _rank_key(item: NewsItem):
    return (-item.score, -item.created_at)


class InMemoryNewsStore(BaseNewsStore):
    """Thread-safe store keeping everything in process memory."""

    def __init__(self) -> None:
        self._topics: Dict[str, Topic] = {}
        self._items: Dict[int, NewsItem] = {}
        self._item_ids_by_url: Dict[str, int] = {}
        self._digests: Dict[int, Digest] = {}
        self._digest_sources: Dict[int, List[int]] = {}
        self._notifications: Dict[Tuple[int, str], str] = {}
        self._next_topic_id = 1
        self._next_item_id = 1
        self._next_digest_id = 1
        self._lock = Lock()

    def get_topic_by_name(self, name: str) -> Optional[Topic]:
        with self._lock:
            topic = self._topics.get(name)
            return topic.model_copy(deep=True) if topic else None

    def list_topics(self, active_only: bool = True) -> List[Topic]:
        with self._lock:
            return [
                topic.model_copy(deep=True)
                for topic in self._topics.values()
                if topic.active or not active_only
            ]

    def upsert_topic(self, topic: Topic) -> Tuple[int, bool]:
        with self._lock:
            existing = self._topics.get(topic.name)
            if existing is not None:
                self._topics[topic.name] = topic.model_copy(update={"id": existing.id}, deep=True)
                return existing.id, False

            topic_id = self._next_topic_id
            self._next_topic_id += 1
            self._topics[topic.name] = topic.model_copy(update={"id": topic_id}, deep=True)
            return topic_id, True

    def find_by_url(self, url: str) -> Optional[NewsItem]:
        with self._lock:
            item_id = self._item_ids_by_url.get(url)
            if item_id is None:
                return None
            return self._items[item_id].model_copy(deep=True)

    def insert_item(self, item: NewsItem) -> int:
        with self._lock:
            existing = self._item_ids_by_url.get(item.url)
            if existing is not None:
                return existing

            item_id = self._next_item_id
            self._next_item_id += 1
            self._items[item_id] = item.model_copy(update={"id": item_id}, deep=True)
            self._item_ids_by_url[item.url] = item_id
            return item_id

    def insert_digest(self, topic: str, summary_markdown: str) -> int:
        with self._lock:
            digest_id = self._next_digest_id
            self._next_digest_id += 1
            self._digests[digest_id] = Digest(
                id=digest_id,
                topic=topic,
                summary_markdown=summary_markdown,
                created_at=utc_now_iso(),
            )
            self._digest_sources[digest_id] = []
            return digest_id

    def link_digest_source(self, digest_id: int, item_id: int) -> None:
        with self._lock:
            linked = self._digest_sources.setdefault(digest_id, [])
            if item_id not in linked:
                linked.append(item_id)

    def get_digest(self, digest_id: int) -> Optional[Digest]:
        with self._lock:
            digest = self._digests.get(digest_id)
            return digest.model_copy() if digest else None

    def get_latest_digest(self) -> Optional[Digest]:
        digests = self.list_digests()
        return digests[0] if digests else None

    def list_digests(self, date: Optional[str] = None, topic: Optional[str] = None) -> List[Digest]:
        with self._lock:
            digests = [
                digest.model_copy()
                for digest in self._digests.values()
                if (date is None or digest.created_at[:10] == date)
                and (topic is None or digest.topic == topic)
            ]
        # ISO timestamps share a second often; id breaks the tie
        digests.sort(key=lambda digest: (digest.created_at, digest.id), reverse=True)
        return digests

    def get_digest_sources(self, digest_id: int) -> List[NewsItem]:
        with self._lock:
            items = [
                self._items[item_id].model_copy(deep=True)
                for item_id in self._digest_sources.get(digest_id, [])
                if item_id in self._items
            ]
        return sorted(items, key=_rank_key)

    def has_notification(self, digest_id: int, channel: str) -> bool:
        with self._lock:
            return (digest_id, channel) in self._notifications

    def record_notification(self, digest_id: int, channel: str, message_ts: str) -> None:
        with self._lock:
            self._notifications.setdefault((digest_id, channel), str(message_ts))

