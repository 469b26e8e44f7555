"""JSONL log of LLM requests with aggregate statistics."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError


logger = logging.getLogger(__name__)


class LLMUsageEntry(BaseModel):
    """One generation request"""
    timestamp: str
    provider: str
    model: str
    topic: str
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    estimated_cost: Optional[float] = None
    latency_ms: int = 0
    success: bool = True
    error_message: Optional[str] = None


class ProviderUsage(BaseModel):
    count: int = 0
    cost: float = 0.0
    tokens: int = 0


class LLMUsageStats(BaseModel):
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_cost: float = 0.0
    total_tokens: int = 0
    average_latency_ms: float = 0.0
    by_provider: Dict[str, ProviderUsage] = Field(default_factory=dict)


class LLMUsageLogger:
    """Append-only JSONL usage log; disabled loggers drop writes."""

    def __init__(self, log_path: Union[str, Path], enabled: bool = True) -> None:
        self.log_path = Path(log_path)
        self.enabled = enabled
        if self.enabled:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self.log_path.touch(exist_ok=True)

    def log(self, entry: LLMUsageEntry) -> None:
        if not self.enabled:
            return
        try:
            with self.log_path.open("a", encoding="utf-8") as handle:
                handle.write(entry.model_dump_json(exclude_none=True) + "\n")
        except OSError as exc:
            logger.error(f"Failed to write to LLM log file: {exc}")

    def get_all(self) -> List[LLMUsageEntry]:
        if not self.log_path.exists():
            return []

        entries: List[LLMUsageEntry] = []
        with self.log_path.open("r", encoding="utf-8") as handle:
            for line_no, line in enumerate(handle, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(LLMUsageEntry(**json.loads(line)))
                except (json.JSONDecodeError, TypeError, ValidationError) as exc:
                    logger.warning(f"Skipping malformed LLM log line {line_no}: {exc}")
        return entries

    def get_stats(self) -> LLMUsageStats:
        entries = self.get_all()
        stats = LLMUsageStats(
            total_requests=len(entries),
            successful_requests=sum(1 for entry in entries if entry.success),
            failed_requests=sum(1 for entry in entries if not entry.success),
        )
        if not entries:
            return stats

        total_latency = 0
        for entry in entries:
            cost = entry.estimated_cost or 0.0
            tokens = entry.total_tokens or 0
            stats.total_cost += cost
            stats.total_tokens += tokens
            total_latency += entry.latency_ms

            usage = stats.by_provider.setdefault(entry.provider, ProviderUsage())
            usage.count += 1
            usage.cost += cost
            usage.tokens += tokens

        stats.average_latency_ms = total_latency / len(entries)
        return stats

    def clear(self) -> None:
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self.log_path.write_text("", encoding="utf-8")
        except OSError as exc:
            logger.error(f"Failed to clear LLM log file: {exc}")

