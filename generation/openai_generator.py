"""
OpenAI Summary Generator
Chat completions through the official async client
"""
from typing import Dict, List, Optional
import inspect
import logging

from models import NewsItem
from utils import ConfigurationError
from .base import BaseSummaryGenerator, GenerationOutput
from .prompts import build_summary_messages
from .usage_log import LLMUsageLogger


logger = logging.getLogger(__name__)


# USD per 1M tokens for models missing from the pricing map
FALLBACK_PRICING = {"input": 10.0, "output": 30.0}


class OpenAISummaryGenerator(BaseSummaryGenerator):
    """
    OpenAI generator

    Models: gpt-4o, gpt-4o-mini (default), gpt-4-turbo
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        pricing: Optional[Dict[str, Dict[str, float]]] = None,
        max_output_tokens: int = 2000,
        timeout: float = 120.0,
        usage_logger: Optional[LLMUsageLogger] = None,
        client=None,
    ):
        super().__init__(
            model=model,
            max_output_tokens=max_output_tokens,
            timeout=timeout,
            usage_logger=usage_logger,
        )
        if not api_key and client is None:
            raise ConfigurationError(
                "OpenAI API key not configured. Set LLM_OPENAI_API_KEY environment variable."
            )
        self.api_key = api_key
        self.base_url = base_url
        self.pricing = dict(pricing or {})
        self._async_client = client

    @property
    def provider_name(self) -> str:
        return "openai"

    def _get_async_client(self):
        if self._async_client is None:
            from openai import AsyncOpenAI
            self._async_client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._async_client

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        prices = self.pricing.get(self.model) or FALLBACK_PRICING
        return (
            input_tokens / 1_000_000 * prices["input"]
            + output_tokens / 1_000_000 * prices["output"]
        )

    async def _generate(self, items: List[NewsItem], topic: str) -> GenerationOutput:
        client = self._get_async_client()
        messages = build_summary_messages(topic, items)

        response = await client.chat.completions.create(
            model=self.model,
            messages=[m.to_dict() for m in messages],
            max_tokens=self.max_output_tokens,
        )

        content = (response.choices[0].message.content or "") if response.choices else ""
        if not content.strip():
            raise ValueError("OpenAI returned an empty summary")

        usage = getattr(response, "usage", None)
        input_tokens = int(getattr(usage, "prompt_tokens", 0) or 0)
        output_tokens = int(getattr(usage, "completion_tokens", 0) or 0)

        return GenerationOutput(
            text=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            estimated_cost=self.calculate_cost(input_tokens, output_tokens),
        )

    async def check_health(self) -> bool:
        try:
            await self._get_async_client().models.list()
            return True
        except Exception as e:
            logger.error(f"OpenAI health check failed: {e}")
            return False

    async def aclose(self) -> None:
        client = self._async_client
        if client is None:
            return
        close_fn = getattr(client, "close", None)
        if callable(close_fn):
            maybe_awaitable = close_fn()
            if inspect.isawaitable(maybe_awaitable):
                await maybe_awaitable
        self._async_client = None
