"""Topic seed file loading and store synchronisation."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from pydantic import ValidationError

from models import Topic
from utils import ConfigurationError

from .base import BaseNewsStore


logger = logging.getLogger(__name__)


def load_topics_file(path: Union[str, Path]) -> List[Topic]:
    """Read a JSON array of topic definitions; entries without a name are skipped."""
    topics_path = Path(path)
    if not topics_path.exists():
        raise ConfigurationError(f"Topics file not found: {topics_path}")

    try:
        payload = json.loads(topics_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Topics file is not valid JSON: {topics_path}", {"error": str(e)}) from e

    if not isinstance(payload, list):
        raise ConfigurationError(f"Topics file must contain a JSON array: {topics_path}")

    topics: List[Topic] = []
    for index, entry in enumerate(payload):
        if not isinstance(entry, dict) or not str(entry.get("name") or "").strip():
            logger.warning(f"Skipping topic entry #{index}: missing name")
            continue
        try:
            topics.append(Topic(**entry))
        except ValidationError as e:
            logger.warning(f"Skipping topic entry #{index} ({entry.get('name')}): {e}")
    return topics


def sync_topics(store: BaseNewsStore, topics: Iterable[Topic]) -> Tuple[int, int]:
    """
    Insert new topics and update existing ones (matched by name).

    Returns:
        (inserted, updated)
    """
    inserted = 0
    updated = 0
    for topic in topics:
        _, created = store.upsert_topic(topic)
        if created:
            inserted += 1
        else:
            updated += 1

    logger.info(f"Topics synced: {inserted} inserted, {updated} updated")
    return inserted, updated
