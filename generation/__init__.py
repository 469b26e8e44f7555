"""
Generation Module
LLM backed digest generation
"""
from .usage_log import LLMUsageEntry, LLMUsageLogger, LLMUsageStats
from .base import (
    EMPTY_INPUT_SUMMARY,
    BaseSummaryGenerator,
    GenerationOutput,
    Message,
    MessageRole,
)
from .prompts import build_completion_prompt, build_summary_messages
from .openai_generator import OpenAISummaryGenerator
from .ollama_generator import OllamaSummaryGenerator
from .factory import get_generator, get_usage_logger, validate_pricing


__all__ = [
    "LLMUsageEntry",
    "LLMUsageLogger",
    "LLMUsageStats",
    "EMPTY_INPUT_SUMMARY",
    "BaseSummaryGenerator",
    "GenerationOutput",
    "Message",
    "MessageRole",
    "build_completion_prompt",
    "build_summary_messages",
    "OpenAISummaryGenerator",
    "OllamaSummaryGenerator",
    "get_generator",
    "get_usage_logger",
    "validate_pricing",
]
