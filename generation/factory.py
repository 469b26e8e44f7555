"""
Generator Factory
Build the configured summary generator
"""
from typing import Any, Dict, Optional
import logging
import math

from config import Settings, get_settings
from utils import ConfigurationError
from .base import BaseSummaryGenerator
from .ollama_generator import OllamaSummaryGenerator
from .openai_generator import OpenAISummaryGenerator
from .usage_log import LLMUsageLogger


logger = logging.getLogger(__name__)


SUPPORTED_PROVIDERS = ("ollama", "openai")


def _is_price(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value >= 0
    )


def validate_pricing(pricing: Any) -> Dict[str, Dict[str, float]]:
    """
    Check a ``{model: {"input": usd, "output": usd}}`` map

    Raises:
        ConfigurationError: when the map or any entry is malformed
    """
    if not isinstance(pricing, dict):
        raise ConfigurationError("LLM pricing configuration must be an object map")

    validated: Dict[str, Dict[str, float]] = {}
    for model, entry in pricing.items():
        if not isinstance(entry, dict) or not _is_price(entry.get("input")) or not _is_price(entry.get("output")):
            raise ConfigurationError(
                f"Invalid pricing entry for model '{model}'",
                {"entry": entry},
            )
        validated[str(model)] = {"input": float(entry["input"]), "output": float(entry["output"])}
    return validated


def get_usage_logger(settings: Optional[Settings] = None) -> LLMUsageLogger:
    settings = settings or get_settings()
    return LLMUsageLogger(settings.llm.log_path, enabled=settings.llm.logging_enabled)


def get_generator(
    settings: Optional[Settings] = None,
    usage_logger: Optional[LLMUsageLogger] = None,
) -> BaseSummaryGenerator:
    """
    Generator for ``settings.llm.provider``

    Args:
        settings: settings to read (defaults to the process settings)
        usage_logger: shared usage log (built from settings when omitted)

    Returns:
        BaseSummaryGenerator instance

    Raises:
        ConfigurationError: unsupported provider, missing key or malformed pricing
    """
    settings = settings or get_settings()
    llm = settings.llm
    provider = llm.provider.strip().lower()
    usage_logger = usage_logger or get_usage_logger(settings)

    logger.info(f"Initializing {provider} summary generator")

    if provider == "openai":
        return OpenAISummaryGenerator(
            model=llm.openai_model,
            api_key=llm.openai_api_key,
            pricing=validate_pricing(llm.pricing),
            max_output_tokens=llm.max_output_tokens,
            timeout=llm.timeout,
            usage_logger=usage_logger,
        )
    elif provider == "ollama":
        return OllamaSummaryGenerator(
            model=llm.ollama_model,
            api_url=llm.ollama_api_url,
            max_output_tokens=llm.max_output_tokens,
            timeout=llm.timeout,
            usage_logger=usage_logger,
        )
    else:
        raise ConfigurationError(
            f"Unsupported LLM provider: {llm.provider}",
            {"supported": list(SUPPORTED_PROVIDERS)},
        )
