"""
Base Summary Generator
Abstract base for LLM backed digest generation
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
import logging
import time

from models import NewsItem
from utils import GenerationError, utc_now_iso
from .usage_log import LLMUsageEntry, LLMUsageLogger


logger = logging.getLogger(__name__)


EMPTY_INPUT_SUMMARY = "No news items found for this topic."


class MessageRole(str, Enum):
    """Chat message role"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """Chat message"""
    role: MessageRole
    content: str

    def to_dict(self) -> Dict[str, Any]:
        """Dict form for chat completion APIs"""
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)


@dataclass
class GenerationOutput:
    """Text plus token accounting of one backend call"""
    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    estimated_cost: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class BaseSummaryGenerator(ABC):
    """
    Summary generator base class

    ``summarize`` keeps the item order it is given, records every call in
    the usage log and raises ``GenerationError`` on any backend failure.
    """

    def __init__(
        self,
        model: str,
        max_output_tokens: int = 2000,
        timeout: float = 120.0,
        usage_logger: Optional[LLMUsageLogger] = None,
    ):
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout
        self.usage_logger = usage_logger

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Backend name, e.g. ``ollama``"""
        pass

    @property
    def model_name(self) -> str:
        return self.model

    @abstractmethod
    async def _generate(self, items: List[NewsItem], topic: str) -> GenerationOutput:
        """
        Call the backend once

        Args:
            items: non-empty items in rank order
            topic: topic name

        Returns:
            GenerationOutput
        """
        pass

    @abstractmethod
    async def check_health(self) -> bool:
        """True when the backend is reachable"""
        pass

    def _estimate_input_tokens(self, items: List[NewsItem], topic: str) -> Optional[int]:
        """Input token estimate recorded for failed calls; None when unknown"""
        return None

    async def summarize(self, items: List[NewsItem], topic: str) -> str:
        """Generate a markdown digest for ``items``"""
        if not items:
            return EMPTY_INPUT_SUMMARY

        logger.info(
            f"[{self.provider_name}] Generating summary for {len(items)} news items using {self.model}"
        )
        start_time = time.monotonic()

        try:
            output = await self._generate(list(items), topic)
        except Exception as e:
            latency_ms = int((time.monotonic() - start_time) * 1000)
            self._record(
                LLMUsageEntry(
                    timestamp=utc_now_iso("milliseconds"),
                    provider=self.provider_name,
                    model=self.model,
                    topic=topic,
                    input_tokens=self._estimate_input_tokens(items, topic),
                    latency_ms=latency_ms,
                    success=False,
                    error_message=str(e) or type(e).__name__,
                )
            )
            logger.error(f"[{self.provider_name}] Error generating summary: {e}")
            raise GenerationError(
                f"Failed to generate summary with {self.provider_name}",
                provider=self.provider_name,
                error=str(e),
            ) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)
        self._record(
            LLMUsageEntry(
                timestamp=utc_now_iso("milliseconds"),
                provider=self.provider_name,
                model=self.model,
                topic=topic,
                input_tokens=output.input_tokens,
                output_tokens=output.output_tokens,
                total_tokens=output.total_tokens,
                estimated_cost=output.estimated_cost,
                latency_ms=latency_ms,
                success=True,
            )
        )
        logger.info(
            f"[{self.provider_name}] Summary generated ({latency_ms}ms, "
            f"{output.total_tokens} tokens, ${output.estimated_cost:.4f})"
        )
        return output.text.strip()

    def _record(self, entry: LLMUsageEntry) -> None:
        if self.usage_logger is not None:
            self.usage_logger.log(entry)

    async def aclose(self) -> None:
        """Release backend clients (no-op by default)"""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model}, provider={self.provider_name})"
