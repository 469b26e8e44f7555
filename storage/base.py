"""
News Store Interface
Topic store and persistence contract used by providers, orchestrator and notifier
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from models import Digest, DigestWithSources, NewsItem, Topic


class BaseNewsStore(ABC):
    """Persistence for topics, news items, digests and notification records"""

    # Topics

    @abstractmethod
    def get_topic_by_name(self, name: str) -> Optional[Topic]:
        pass

    @abstractmethod
    def list_topics(self, active_only: bool = True) -> List[Topic]:
        pass

    @abstractmethod
    def upsert_topic(self, topic: Topic) -> Tuple[int, bool]:
        """
        Insert or update a topic by name.

        Returns:
            (topic id, True when the topic was newly created)
        """
        pass

    # News items

    @abstractmethod
    def find_by_url(self, url: str) -> Optional[NewsItem]:
        pass

    @abstractmethod
    def insert_item(self, item: NewsItem) -> int:
        """Persist ``item`` and return its id; an already stored URL keeps its id."""
        pass

    # Digests

    @abstractmethod
    def insert_digest(self, topic: str, summary_markdown: str) -> int:
        pass

    @abstractmethod
    def link_digest_source(self, digest_id: int, item_id: int) -> None:
        pass

    @abstractmethod
    def get_digest(self, digest_id: int) -> Optional[Digest]:
        pass

    @abstractmethod
    def get_latest_digest(self) -> Optional[Digest]:
        pass

    @abstractmethod
    def list_digests(self, date: Optional[str] = None, topic: Optional[str] = None) -> List[Digest]:
        """Digests newest first, optionally filtered by ``YYYY-MM-DD`` date and topic"""
        pass

    @abstractmethod
    def get_digest_sources(self, digest_id: int) -> List[NewsItem]:
        """Linked items in rank order (score desc, newest first)"""
        pass

    def get_digest_with_sources(self, digest_id: int) -> Optional[DigestWithSources]:
        digest = self.get_digest(digest_id)
        if digest is None:
            return None
        return DigestWithSources(
            **digest.model_dump(),
            sources=self.get_digest_sources(digest_id),
        )

    # Notification records

    @abstractmethod
    def has_notification(self, digest_id: int, channel: str) -> bool:
        pass

    @abstractmethod
    def record_notification(self, digest_id: int, channel: str, message_ts: str) -> None:
        pass

    def close(self) -> None:
        """Release underlying resources"""
        pass
