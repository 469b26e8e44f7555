"""
Data Models / Schemas
Shared data contracts for the curation pipeline
"""
import json
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils import utc_now_iso


UNKNOWN_SOURCE_TYPE = "unknown"


def _finite_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None when it is not one."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _number_map(value: Any) -> Dict[str, float]:
    if not isinstance(value, dict):
        return {}
    result: Dict[str, float] = {}
    for key, raw in value.items():
        number = _finite_number(raw)
        if number is not None:
            result[str(key)] = number
    return result


class NewsItem(BaseModel):
    """A single candidate content unit considered for a digest"""
    id: Optional[int] = Field(None, description="Persistence id, stable across runs")
    title: str = Field(..., description="Display title")
    url: str = Field(..., description="Canonical URL, the deduplication identity")
    source: str = Field(default="", description="Human readable origin, e.g. a subreddit")
    source_type: str = Field(default=UNKNOWN_SOURCE_TYPE, description="Provider tag used for weights and quotas")
    score: int = Field(default=0, description="Popularity signal (upvotes / points)")
    matched_keywords: List[str] = Field(default_factory=list, description="Keywords that matched this item")
    created_at: int = Field(default=0, description="Unix timestamp (seconds)")

    @field_validator("source_type", mode="before")
    @classmethod
    def _default_source_type(cls, value: Any) -> str:
        text = str(value or "").strip()
        return text or UNKNOWN_SOURCE_TYPE

    @field_validator("score", mode="before")
    @classmethod
    def _non_negative_score(cls, value: Any) -> int:
        number = _finite_number(value)
        if number is None:
            return 0
        return max(0, int(number))

    @field_validator("matched_keywords", mode="before")
    @classmethod
    def _split_keywords(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        keywords: List[str] = []
        for keyword in value:
            text = str(keyword or "").strip()
            if text and text not in keywords:
                keywords.append(text)
        return keywords

    @field_validator("created_at", mode="before")
    @classmethod
    def _int_timestamp(cls, value: Any) -> int:
        if isinstance(value, datetime):
            return int(value.timestamp())
        number = _finite_number(value)
        return int(number) if number is not None else 0


class Topic(BaseModel):
    """Topic definition: keywords plus per-provider source identifiers"""
    id: Optional[int] = None
    name: str
    keywords: List[str] = Field(default_factory=list)
    sources: Dict[str, List[str]] = Field(default_factory=dict)
    active: bool = True

    @field_validator("keywords", mode="before")
    @classmethod
    def _parse_keywords(cls, value: Any) -> List[str]:
        if isinstance(value, str):
            value = json.loads(value) if value.strip() else []
        return [str(item).strip() for item in (value or []) if str(item).strip()]

    @field_validator("sources", mode="before")
    @classmethod
    def _parse_sources(cls, value: Any) -> Dict[str, List[str]]:
        if isinstance(value, str):
            value = json.loads(value) if value.strip() else {}
        if not isinstance(value, dict):
            return {}
        parsed: Dict[str, List[str]] = {}
        for provider, entries in value.items():
            if isinstance(entries, str):
                entries = [entries]
            parsed[str(provider)] = [str(entry).strip() for entry in (entries or []) if str(entry).strip()]
        return parsed

    def sources_for(self, provider_kind: str) -> List[str]:
        return list(self.sources.get(provider_kind) or [])


class SelectionConfig(BaseModel):
    """
    Immutable knobs for one selection run.

    Malformed entries are dropped at this boundary so the selector only ever
    sees finite numbers.
    """
    model_config = ConfigDict(frozen=True)

    max_items: Optional[int] = Field(None, description="Item cap; None means pass-through")
    source_weights: Dict[str, float] = Field(default_factory=dict)
    source_quotas: Dict[str, float] = Field(default_factory=dict)

    @field_validator("max_items", mode="before")
    @classmethod
    def _positive_cap(cls, value: Any) -> Optional[int]:
        number = _finite_number(value)
        if number is None or number <= 0:
            return None
        return int(number)

    @field_validator("source_weights", "source_quotas", mode="before")
    @classmethod
    def _finite_entries(cls, value: Any) -> Dict[str, float]:
        return _number_map(value)

    @property
    def is_capped(self) -> bool:
        return self.max_items is not None and self.max_items > 0

    def weight_for(self, source_type: str) -> float:
        weight = self.source_weights.get(source_type)
        return weight if weight is not None else 1.0

    def quota_for(self, source_type: str) -> Optional[float]:
        """Positive quota fraction for a source, None when it has no reservation."""
        quota = self.source_quotas.get(source_type)
        if quota is None or quota <= 0:
            return None
        return quota


class SelectionResult(BaseModel):
    """Output of one selection run"""
    selected: List[NewsItem] = Field(default_factory=list)
    discarded: List[NewsItem] = Field(default_factory=list)
    quota_scale: float = Field(default=1.0, description="Shrink factor applied to quotas")

    @property
    def truncated(self) -> bool:
        return bool(self.discarded)


class Digest(BaseModel):
    """A generated (or placeholder) digest for one topic"""
    id: Optional[int] = None
    topic: str
    summary_markdown: str
    created_at: str = Field(default_factory=utc_now_iso)


class DigestWithSources(Digest):
    """Digest plus the items it was generated from, in rank order"""
    sources: List[NewsItem] = Field(default_factory=list)


class NotificationResult(BaseModel):
    """Outcome of publishing a digest to a notification sink"""
    success: bool
    error: Optional[str] = None
    already_posted: bool = False
    timestamp: Optional[str] = None


class DigestRunResult(BaseModel):
    """Everything one orchestration run produced"""
    digest: DigestWithSources
    selection: SelectionResult = Field(default_factory=SelectionResult)
    notification: Optional[NotificationResult] = None
    warnings: List[str] = Field(default_factory=list)
    provider_errors: Dict[str, str] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.digest.sources
