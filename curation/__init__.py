"""Curation pipeline: deduplication and weighted quota selection."""

from .dedup import merge_items
from .selector import describe_truncation, rank_by_popularity, select_items

__all__ = [
    "describe_truncation",
    "merge_items",
    "rank_by_popularity",
    "select_items",
]
