"""
Ollama Summary Generator
Self-hosted completion models via the Ollama HTTP API
"""
from typing import Any, Dict, List, Optional
import logging
import math

import httpx

from models import NewsItem
from .base import BaseSummaryGenerator, GenerationOutput
from .prompts import build_completion_prompt
from .usage_log import LLMUsageLogger


logger = logging.getLogger(__name__)


def estimate_tokens(text: str) -> int:
    """Rough token count: four characters per token"""
    return math.ceil(len(text or "") / 4)


async def _post_json(url: str, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as client:
        response = await client.post(url, json=payload)
        response.raise_for_status()
        return dict(response.json() or {})


async def _get_status(url: str, timeout: float) -> int:
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as client:
        response = await client.get(url)
        return response.status_code


class OllamaSummaryGenerator(BaseSummaryGenerator):
    """Ollama generator; local inference is recorded at zero cost"""

    def __init__(
        self,
        model: str = "gpt-oss:20b",
        api_url: str = "http://localhost:11434",
        max_output_tokens: int = 2000,
        timeout: float = 120.0,
        usage_logger: Optional[LLMUsageLogger] = None,
    ):
        super().__init__(
            model=model,
            max_output_tokens=max_output_tokens,
            timeout=timeout,
            usage_logger=usage_logger,
        )
        self.api_url = api_url.rstrip("/")

    @property
    def provider_name(self) -> str:
        return "ollama"

    def _estimate_input_tokens(self, items: List[NewsItem], topic: str) -> Optional[int]:
        return estimate_tokens(build_completion_prompt(topic, items))

    async def _generate(self, items: List[NewsItem], topic: str) -> GenerationOutput:
        prompt = build_completion_prompt(topic, items)

        data = await _post_json(
            f"{self.api_url}/api/generate",
            {
                "model": self.model,
                "prompt": prompt,
                "stream": False,
                "options": {"num_predict": self.max_output_tokens},
            },
            timeout=self.timeout,
        )

        summary = str(data.get("response") or "").strip()
        if not summary:
            raise ValueError("Ollama returned an empty response")

        return GenerationOutput(
            text=summary,
            input_tokens=estimate_tokens(prompt),
            output_tokens=estimate_tokens(summary),
            estimated_cost=0.0,
        )

    async def check_health(self) -> bool:
        try:
            return await _get_status(f"{self.api_url}/api/tags", timeout=5.0) == 200
        except httpx.HTTPError as e:
            logger.error(f"Ollama health check failed: {e}")
            return False
