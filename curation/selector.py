"""Weighted quota-based selection of the items forwarded for summarization."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Set

from models import NewsItem, SelectionConfig, SelectionResult


logger = logging.getLogger(__name__)


@dataclass
class _ScoredItem:
    item: NewsItem
    source_type: str
    normalized: float
    weighted: float


def rank_by_popularity(items: Iterable[NewsItem]) -> List[NewsItem]:
    """Final rank order: score desc, then most recent first."""
    return sorted(items, key=lambda item: (-item.score, -item.created_at))


def _bucket_by_source(items: Sequence[NewsItem]) -> Dict[str, List[NewsItem]]:
    buckets: Dict[str, List[NewsItem]] = {}
    for item in items:
        buckets.setdefault(item.source_type, []).append(item)
    return buckets


def _score_bucket(source_type: str, items: Sequence[NewsItem], weight: float) -> List[_ScoredItem]:
    scores = [item.score for item in items]
    low, high = min(scores), max(scores)
    spread = high - low

    scored: List[_ScoredItem] = []
    for item in items:
        normalized = 1.0 if spread == 0 else (item.score - low) / spread
        scored.append(
            _ScoredItem(
                item=item,
                source_type=source_type,
                normalized=normalized,
                weighted=normalized * weight,
            )
        )
    return scored


def select_items(
    items: Sequence[NewsItem],
    config: Optional[SelectionConfig] = None,
) -> SelectionResult:
    """
    Pick at most ``config.max_items`` items under per-source weights and quotas.

    Args:
        items: deduplicated candidates (unique URLs)
        config: selection knobs; None selects everything

    Returns:
        SelectionResult with ``selected`` in popularity order and the rest in
        ``discarded`` (input order)
    """
    config = config or SelectionConfig()
    items = list(items)

    if not config.is_capped or len(items) <= config.max_items:
        return SelectionResult(selected=rank_by_popularity(items), discarded=[])

    max_items = int(config.max_items)

    scored_by_source: Dict[str, List[_ScoredItem]] = {}
    for source_type, bucket in _bucket_by_source(items).items():
        weight = config.weight_for(source_type)
        if not math.isfinite(weight):
            weight = 1.0
        scored_by_source[source_type] = _score_bucket(source_type, bucket, weight)

    quota_total = 0.0
    for source_type in scored_by_source:
        quota = config.quota_for(source_type)
        if quota is not None:
            quota_total += quota

    quota_scale = 1.0
    if quota_total > 1:
        quota_scale = 1.0 / quota_total
        logger.info(
            f"Summary source quotas sum to {quota_total:.2f}; scaling down to fit within 1.0"
        )

    selected: List[_ScoredItem] = []
    selected_urls: Set[str] = set()

    # reserved phase: each quota'd bucket admits its best items up to its target
    for source_type, scored_items in scored_by_source.items():
        quota = config.quota_for(source_type)
        if quota is None:
            continue

        target_count = math.floor(quota * quota_scale * max_items)
        if target_count <= 0:
            continue

        ranked = sorted(
            scored_items,
            key=lambda scored: (-scored.normalized, -scored.item.created_at),
        )
        admitted = 0
        for scored in ranked:
            if len(selected) >= max_items or admitted >= target_count:
                break
            if scored.item.url in selected_urls:
                continue
            selected.append(scored)
            selected_urls.add(scored.item.url)
            admitted += 1

    # overflow phase: everything left competes on weighted score
    remaining_slots = max_items - len(selected)
    if remaining_slots > 0:
        pool = [
            scored
            for scored_items in scored_by_source.values()
            for scored in scored_items
            if scored.item.url not in selected_urls
        ]
        pool.sort(
            key=lambda scored: (-scored.weighted, -scored.normalized, -scored.item.created_at)
        )
        for scored in pool[:remaining_slots]:
            selected.append(scored)
            selected_urls.add(scored.item.url)

    return SelectionResult(
        selected=rank_by_popularity(scored.item for scored in selected),
        discarded=[item for item in items if item.url not in selected_urls],
        quota_scale=quota_scale,
    )


def describe_truncation(total: int, result: SelectionResult, preview_limit: int = 5) -> str:
    """Log line describing what a capped selection dropped."""
    discarded = result.discarded
    preview_titles = " | ".join(item.title for item in discarded[:preview_limit])
    overflow = len(discarded) - preview_limit
    suffix = f" (+{overflow} more)" if overflow > 0 else ""
    preview = f": {preview_titles}{suffix}" if preview_titles else ""
    return (
        f"Truncating news items from {total} to {len(result.selected)}. "
        f"Discarded {len(discarded)} items{preview}"
    )
