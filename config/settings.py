"""
Settings Configuration
Pydantic based configuration loading and validation
"""
import json
import logging
import math
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from models import SelectionConfig


logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent


def parse_positive_int(value: Any) -> Optional[int]:
    """Parse a positive integer, returning None for anything else."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def parse_number_map(value: Any) -> Dict[str, float]:
    """
    Parse a ``{key: number}`` mapping from JSON text or a dict.

    Non-numeric values are dropped; malformed JSON or a non-object payload
    yields an empty mapping.
    """
    if value is None:
        return {}
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring malformed number map: {value!r}")
            return {}
    if not isinstance(value, dict):
        return {}

    result: Dict[str, float] = {}
    for key, raw in value.items():
        if isinstance(raw, bool):
            continue
        try:
            number = float(raw)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric value for '{key}': {raw!r}")
            continue
        if math.isfinite(number):
            result[str(key)] = number
    return result


def _split_csv(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(item).strip() for item in value if str(item).strip()]


class GeneralSettings(BaseSettings):
    """General settings"""
    request_timeout: int = Field(default=30, description="Per request timeout (seconds)")
    provider_timeout: int = Field(default=120, description="Whole provider fetch timeout (seconds)")
    active_news_providers: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["reddit"],
        description="Comma separated provider names",
    )
    use_mock_data: bool = Field(default=False, description="Serve canned Reddit posts")
    log_level: str = Field(default="info", description="Log level")

    @field_validator("active_news_providers", mode="before")
    @classmethod
    def _providers_csv(cls, value: Any) -> List[str]:
        return _split_csv(value)


class RedditSettings(BaseSettings):
    """Reddit API settings"""
    client_id: Optional[str] = Field(default=None, description="Reddit Client ID")
    client_secret: Optional[str] = Field(default=None, description="Reddit Client Secret")
    user_agent: str = Field(default="news-digest-bot/1.0.0", description="User Agent")
    hot_limit: int = Field(default=50, description="Hot posts fetched per subreddit")
    search_limit: int = Field(default=20, description="Results per keyword search")
    max_keyword_searches: int = Field(default=3, description="Keywords searched site-wide")
    include_unmatched_from_sources: bool = Field(
        default=True,
        description="Keep zero-match posts from configured subreddits",
    )
    requests_per_second: float = Field(default=1.0, description="Rate limit")

    class Config:
        env_prefix = "REDDIT_"


class HackerNewsSettings(BaseSettings):
    """Hacker News settings"""
    max_stories_per_list: int = Field(default=100, description="Story ids taken per list")
    batch_size: int = Field(default=10, description="Concurrent item fetches")
    requests_per_second: float = Field(default=20.0, description="Rate limit")

    class Config:
        env_prefix = "HACKERNEWS_"


class SummarySettings(BaseSettings):
    """Selection knobs applied before summarization"""
    max_items: Optional[int] = Field(default=None, description="Item cap (unset = no cap)")
    source_weights: Annotated[Dict[str, float], NoDecode] = Field(default_factory=dict)
    source_quotas: Annotated[Dict[str, float], NoDecode] = Field(default_factory=dict)

    class Config:
        env_prefix = "SUMMARY_"

    @field_validator("max_items", mode="before")
    @classmethod
    def _lenient_cap(cls, value: Any) -> Optional[int]:
        return parse_positive_int(value)

    @field_validator("source_weights", "source_quotas", mode="before")
    @classmethod
    def _lenient_map(cls, value: Any) -> Dict[str, float]:
        return parse_number_map(value)

    def selection_config(self) -> SelectionConfig:
        return SelectionConfig(
            max_items=self.max_items,
            source_weights=self.source_weights,
            source_quotas=self.source_quotas,
        )


class LLMSettings(BaseSettings):
    """LLM settings"""
    provider: str = Field(default="ollama", description="LLM provider: ollama, openai")
    ollama_api_url: str = Field(default="http://localhost:11434", description="Ollama base URL")
    ollama_model: str = Field(default="gpt-oss:20b", description="Ollama model")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API Key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model")
    max_output_tokens: int = Field(default=2000, description="Max tokens generated")
    timeout: float = Field(default=120.0, description="Generation timeout (seconds)")
    logging_enabled: bool = Field(default=True, description="Write the JSONL usage log")
    log_path: str = Field(default="./logs/llm-requests.log", description="Usage log path")
    pricing: Annotated[Any, NoDecode] = Field(
        default_factory=lambda: {
            "gpt-4o": {"input": 2.5, "output": 10.0},
            "gpt-4o-mini": {"input": 0.15, "output": 0.6},
            "gpt-4-turbo-preview": {"input": 10.0, "output": 30.0},
        },
        description="USD per 1M tokens, keyed by model",
    )

    class Config:
        env_prefix = "LLM_"

    @field_validator("pricing", mode="before")
    @classmethod
    def _pricing_json(cls, value: Any) -> Any:
        # shape is checked when the generator is built
        if isinstance(value, str) and value.strip():
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return value


class SlackSettings(BaseSettings):
    """Slack notification settings"""
    enabled: bool = Field(default=False)
    webhook_url: Optional[str] = Field(default=None)
    channel_id: str = Field(default="general")
    auto_post: bool = Field(default=False, description="Publish after every non-empty digest")

    class Config:
        env_prefix = "SLACK_"


class StorageSettings(BaseSettings):
    """Storage settings"""
    backend: str = Field(default="sqlite", description="sqlite or memory")
    database_path: str = Field(default="./data/news.db", description="SQLite file")
    topics_file: str = Field(default=str(CONFIG_DIR / "topics.json"), description="Topic seed file")

    class Config:
        env_prefix = "STORAGE_"


class SchedulerSettings(BaseSettings):
    """Daily digest schedule"""
    run_at: str = Field(default="08:00", description="Local HH:MM")
    tz: str = Field(default="UTC")
    topics: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["AI"])

    class Config:
        env_prefix = "SCHEDULER_"

    @field_validator("topics", mode="before")
    @classmethod
    def _topics_csv(cls, value: Any) -> List[str]:
        return _split_csv(value)


class Settings(BaseSettings):
    """Aggregated settings"""

    general: GeneralSettings = Field(default_factory=GeneralSettings)
    reddit: RedditSettings = Field(default_factory=RedditSettings)
    hackernews: HackerNewsSettings = Field(default_factory=HackerNewsSettings)
    summary: SummarySettings = Field(default_factory=SummarySettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load settings after pulling a .env file into the environment"""
        if env_path is None:
            env_path = CONFIG_DIR / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            general=GeneralSettings(),
            reddit=RedditSettings(),
            hackernews=HackerNewsSettings(),
            summary=SummarySettings(),
            llm=LLMSettings(),
            slack=SlackSettings(),
            storage=StorageSettings(),
            scheduler=SchedulerSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings instance"""
    return Settings.load_from_env_file()
