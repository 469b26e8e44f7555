"""Cross-provider deduplication of fetched items."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Union

from models import NewsItem


def merge_items(batches: Iterable[Union[NewsItem, Sequence[NewsItem]]]) -> List[NewsItem]:
    """
    Merge provider outputs into one collection keyed by URL.

    ``batches`` is ordered by provider registration; for a repeated URL the
    first item seen wins. Output keeps first-seen order. A flat iterable of
    items is accepted as a single batch.
    """
    unique: Dict[str, NewsItem] = {}
    for batch in batches:
        items = [batch] if isinstance(batch, NewsItem) else batch
        for item in items or []:
            if item.url not in unique:
                unique[item.url] = item
    return list(unique.values())
