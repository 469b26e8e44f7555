"""
SQLite News Store
File-backed persistence for topics, news items, digests and Slack posts
"""
import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from models import Digest, NewsItem, Topic
from utils import StorageError, utc_now_iso

from .base import BaseNewsStore


logger = logging.getLogger(__name__)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS news_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    source TEXT NOT NULL,
    source_type TEXT NOT NULL,
    score INTEGER DEFAULT 0,
    matched_keywords TEXT,
    created_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS summaries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    topic TEXT NOT NULL,
    summary_markdown TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS summary_sources (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    summary_id INTEGER NOT NULL,
    news_item_id INTEGER NOT NULL,
    UNIQUE(summary_id, news_item_id),
    FOREIGN KEY (summary_id) REFERENCES summaries(id),
    FOREIGN KEY (news_item_id) REFERENCES news_items(id)
);

CREATE TABLE IF NOT EXISTS topics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    keywords TEXT NOT NULL,
    sources TEXT NOT NULL,
    active INTEGER DEFAULT 1
);

CREATE TABLE IF NOT EXISTS slack_posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    summary_id INTEGER NOT NULL,
    slack_channel_id TEXT NOT NULL,
    slack_message_ts TEXT NOT NULL,
    posted_at TEXT NOT NULL,
    UNIQUE(summary_id, slack_channel_id),
    FOREIGN KEY (summary_id) REFERENCES summaries(id)
);

CREATE INDEX IF NOT EXISTS idx_news_created_at ON news_items(created_at);
CREATE INDEX IF NOT EXISTS idx_summaries_created_at ON summaries(created_at);
CREATE INDEX IF NOT EXISTS idx_summaries_topic ON summaries(topic);
CREATE INDEX IF NOT EXISTS idx_slack_posts_summary ON slack_posts(summary_id);
"""


def _row_to_item(row: sqlite3.Row) -> NewsItem:
    return NewsItem(
        id=row["id"],
        title=row["title"],
        url=row["url"],
        source=row["source"],
        source_type=row["source_type"],
        score=row["score"],
        matched_keywords=row["matched_keywords"] or "",
        created_at=row["created_at"],
    )


def _row_to_digest(row: sqlite3.Row) -> Digest:
    return Digest(
        id=row["id"],
        topic=row["topic"],
        summary_markdown=row["summary_markdown"],
        created_at=row["created_at"],
    )


def _row_to_topic(row: sqlite3.Row) -> Topic:
    return Topic(
        id=row["id"],
        name=row["name"],
        keywords=row["keywords"],
        sources=row["sources"],
        active=bool(row["active"]),
    )


class SqliteNewsStore(BaseNewsStore):
    """SQLite store; one short-lived connection per operation"""

    def __init__(self, db_path: str = "./data/news.db"):
        self.db_path = str(db_path)
        self._ensure_db_directory()
        self.init_database()

    def _ensure_db_directory(self):
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Connection that commits on success and rolls back on error"""
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0, check_same_thread=False)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys=ON;")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Database operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_database(self):
        """Create tables and indexes, enable WAL"""
        with self.get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.executescript(_SCHEMA)
        logger.debug(f"SQLite store ready at {self.db_path}")

    # Topics

    def get_topic_by_name(self, name: str) -> Optional[Topic]:
        with self.get_connection() as conn:
            row = conn.execute("SELECT * FROM topics WHERE name = ?", (name,)).fetchone()
        return _row_to_topic(row) if row else None

    def list_topics(self, active_only: bool = True) -> List[Topic]:
        query = "SELECT * FROM topics"
        if active_only:
            query += " WHERE active = 1"
        query += " ORDER BY id"
        with self.get_connection() as conn:
            rows = conn.execute(query).fetchall()
        return [_row_to_topic(row) for row in rows]

    def upsert_topic(self, topic: Topic) -> Tuple[int, bool]:
        keywords = json.dumps(topic.keywords)
        sources = json.dumps(topic.sources)
        active = 1 if topic.active else 0

        with self.get_connection() as conn:
            existing = conn.execute("SELECT id FROM topics WHERE name = ?", (topic.name,)).fetchone()
            if existing:
                conn.execute(
                    "UPDATE topics SET keywords = ?, sources = ?, active = ? WHERE name = ?",
                    (keywords, sources, active, topic.name),
                )
                return existing["id"], False

            cursor = conn.execute(
                "INSERT INTO topics (name, keywords, sources, active) VALUES (?, ?, ?, ?)",
                (topic.name, keywords, sources, active),
            )
            return cursor.lastrowid, True

    # News items

    def find_by_url(self, url: str) -> Optional[NewsItem]:
        with self.get_connection() as conn:
            row = conn.execute("SELECT * FROM news_items WHERE url = ?", (url,)).fetchone()
        return _row_to_item(row) if row else None

    def insert_item(self, item: NewsItem) -> int:
        with self.get_connection() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO news_items
                    (title, url, source, source_type, score, matched_keywords, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.title,
                    item.url,
                    item.source,
                    item.source_type,
                    item.score,
                    ", ".join(item.matched_keywords),
                    item.created_at,
                ),
            )
            row = conn.execute("SELECT id FROM news_items WHERE url = ?", (item.url,)).fetchone()
        return row["id"]

    # Digests

    def insert_digest(self, topic: str, summary_markdown: str) -> int:
        with self.get_connection() as conn:
            cursor = conn.execute(
                "INSERT INTO summaries (topic, summary_markdown, created_at) VALUES (?, ?, ?)",
                (topic, summary_markdown, utc_now_iso()),
            )
            return cursor.lastrowid

    def link_digest_source(self, digest_id: int, item_id: int) -> None:
        with self.get_connection() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO summary_sources (summary_id, news_item_id) VALUES (?, ?)",
                (digest_id, item_id),
            )

    def get_digest(self, digest_id: int) -> Optional[Digest]:
        with self.get_connection() as conn:
            row = conn.execute("SELECT * FROM summaries WHERE id = ?", (digest_id,)).fetchone()
        return _row_to_digest(row) if row else None

    def get_latest_digest(self) -> Optional[Digest]:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM summaries ORDER BY created_at DESC, id DESC LIMIT 1"
            ).fetchone()
        return _row_to_digest(row) if row else None

    def list_digests(self, date: Optional[str] = None, topic: Optional[str] = None) -> List[Digest]:
        query = "SELECT * FROM summaries WHERE 1=1"
        params: list = []

        if date:
            query += " AND substr(created_at, 1, 10) = ?"
            params.append(date)
        if topic:
            query += " AND topic = ?"
            params.append(topic)

        query += " ORDER BY created_at DESC, id DESC"

        with self.get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_digest(row) for row in rows]

    def get_digest_sources(self, digest_id: int) -> List[NewsItem]:
        with self.get_connection() as conn:
            rows = conn.execute(
                """
                SELECT n.* FROM news_items n
                INNER JOIN summary_sources ss ON n.id = ss.news_item_id
                WHERE ss.summary_id = ?
                ORDER BY n.score DESC, n.created_at DESC
                """,
                (digest_id,),
            ).fetchall()
        return [_row_to_item(row) for row in rows]

    # Slack posts

    def has_notification(self, digest_id: int, channel: str) -> bool:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT id FROM slack_posts WHERE summary_id = ? AND slack_channel_id = ?",
                (digest_id, channel),
            ).fetchone()
        return row is not None

    def record_notification(self, digest_id: int, channel: str, message_ts: str) -> None:
        with self.get_connection() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO slack_posts
                    (summary_id, slack_channel_id, slack_message_ts, posted_at)
                VALUES (?, ?, ?, ?)
                """,
                (digest_id, channel, str(message_ts), utc_now_iso()),
            )
