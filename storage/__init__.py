"""
Storage Module
Topic store and persistence backends
"""
from typing import Optional

from config import Settings, get_settings
from utils import ConfigurationError

from .base import BaseNewsStore
from .memory import InMemoryNewsStore
from .sqlite import SqliteNewsStore
from .topics import load_topics_file, sync_topics


def get_store(settings: Optional[Settings] = None) -> BaseNewsStore:
    """
    Build the configured store

    Args:
        settings: settings to read ``storage.backend`` from

    Returns:
        Store instance (sqlite, memory)
    """
    settings = settings or get_settings()
    backend = settings.storage.backend.strip().lower()

    if backend == "sqlite":
        return SqliteNewsStore(db_path=settings.storage.database_path)
    elif backend == "memory":
        return InMemoryNewsStore()
    else:
        raise ConfigurationError(f"Unknown storage backend: {settings.storage.backend}")


__all__ = [
    "BaseNewsStore",
    "InMemoryNewsStore",
    "SqliteNewsStore",
    "load_topics_file",
    "sync_topics",
    "get_store",
]
