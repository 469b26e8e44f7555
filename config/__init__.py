"""
Configuration Management Module
"""
from .settings import (
    Settings,
    GeneralSettings,
    RedditSettings,
    HackerNewsSettings,
    SummarySettings,
    LLMSettings,
    SlackSettings,
    StorageSettings,
    SchedulerSettings,
    get_settings,
    parse_number_map,
    parse_positive_int,
)

__all__ = [
    "Settings",
    "GeneralSettings",
    "RedditSettings",
    "HackerNewsSettings",
    "SummarySettings",
    "LLMSettings",
    "SlackSettings",
    "StorageSettings",
    "SchedulerSettings",
    "get_settings",
    "parse_number_map",
    "parse_positive_int",
]
