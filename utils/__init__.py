"""
Utils Module
Shared helpers
"""
from .logger import setup_logger
from .exceptions import (
    DigestAgentError,
    ConfigurationError,
    ProviderError,
    TopicNotFoundError,
    StorageError,
    GenerationError,
    NotificationError,
)
from .urls import canonicalize_url
from .timeutil import utc_now_iso

__all__ = [
    "setup_logger",
    "DigestAgentError",
    "ConfigurationError",
    "ProviderError",
    "TopicNotFoundError",
    "StorageError",
    "GenerationError",
    "NotificationError",
    "canonicalize_url",
    "utc_now_iso",
]
