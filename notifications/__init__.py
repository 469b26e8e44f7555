"""
Notifications Module
Digest notification sinks
"""
from typing import Optional

from config import Settings, get_settings

from .slack import (
    SlackNotifier,
    format_digest_blocks,
    markdown_to_mrkdwn,
    parse_markdown_sections,
)


def get_notifier(settings: Optional[Settings] = None, store=None) -> SlackNotifier:
    settings = settings or get_settings()
    return SlackNotifier(
        webhook_url=settings.slack.webhook_url,
        channel_id=settings.slack.channel_id,
        enabled=settings.slack.enabled,
        store=store,
        timeout=settings.general.request_timeout,
    )


__all__ = [
    "SlackNotifier",
    "format_digest_blocks",
    "markdown_to_mrkdwn",
    "parse_markdown_sections",
    "get_notifier",
]
