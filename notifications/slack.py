"""
Slack Notifier
Publish digests to a Slack incoming webhook as Block Kit messages
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging
import re

import httpx

from models import DigestWithSources, NotificationResult
from utils import NotificationError, utc_now_iso


logger = logging.getLogger(__name__)


HEADER_TEXT = "🤖 AI News Summary"
TOP_SOURCES_LIMIT = 5

_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


def parse_markdown_sections(markdown: str) -> Dict[str, str]:
    """Split markdown on ``## `` headings; text before the first heading is dropped."""
    sections: Dict[str, str] = {}
    current: Optional[str] = None
    content: List[str] = []

    for line in (markdown or "").split("\n"):
        if line.startswith("## "):
            if current is not None:
                sections[current] = "\n".join(content).strip()
            current = line[3:].strip()
            content = []
        elif current is not None:
            content.append(line)

    if current is not None:
        sections[current] = "\n".join(content).strip()
    return sections


def markdown_to_mrkdwn(markdown: str) -> str:
    """``**bold**`` to ``*bold*`` and ``[text](url)`` to ``<url|text>``"""
    converted = _BOLD_RE.sub(r"*\1*", markdown)
    return _LINK_RE.sub(r"<\2|\1>", converted)


def _format_date(created_at: str) -> str:
    try:
        moment = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return str(created_at)
    return f"{moment.strftime('%A, %B')} {moment.day}, {moment.year}"


def _source_label(source_type: str, source: str) -> str:
    return f"r/{source}" if source_type == "reddit" else source


def format_digest_blocks(digest: DigestWithSources) -> Dict[str, Any]:
    """Block Kit payload: header, context, markdown sections, top sources"""
    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": HEADER_TEXT, "emoji": True},
        },
        {
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": f"*Topic:* {digest.topic} | *Generated:* {_format_date(digest.created_at)}",
                }
            ],
        },
        {"type": "divider"},
    ]

    for title, content in parse_markdown_sections(digest.summary_markdown).items():
        if not content.strip():
            continue
        blocks.append(
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*{title}*\n{markdown_to_mrkdwn(content)}"},
            }
        )

    sources = digest.sources
    if sources:
        plural = "s" if len(sources) != 1 else ""
        blocks.append({"type": "divider"})
        blocks.append(
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": f"📚 *{len(sources)} source{plural}*"}],
            }
        )
        lines = [
            f"• <{item.url}|{item.title}> - {_source_label(item.source_type, item.source)} (↑{item.score})"
            for item in sources[:TOP_SOURCES_LIMIT]
        ]
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": "\n".join(lines)}})

        if len(sources) > TOP_SOURCES_LIMIT:
            blocks.append(
                {
                    "type": "context",
                    "elements": [
                        {
                            "type": "mrkdwn",
                            "text": f"_...and {len(sources) - TOP_SOURCES_LIMIT} more sources_",
                        }
                    ],
                }
            )

    return {"blocks": blocks}


async def _post_webhook(url: str, payload: Dict[str, Any], timeout: float) -> None:
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as client:
        response = await client.post(url, json=payload)
        if response.status_code >= 400:
            raise NotificationError(
                f"Slack API error: {response.status_code} - {response.text[:200]}"
            )


class SlackNotifier:
    """
    Slack webhook notification sink

    ``publish`` never raises: every refusal or failure comes back as an
    unsuccessful ``NotificationResult``.
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        channel_id: str = "general",
        enabled: bool = True,
        store=None,
        timeout: float = 30.0,
    ):
        self.webhook_url = webhook_url
        self.channel_id = channel_id
        self.enabled = enabled
        self.store = store
        self.timeout = timeout

    def _precheck(self) -> Optional[NotificationResult]:
        if not self.enabled:
            return NotificationResult(success=False, error="Slack integration is not enabled")
        if not self.webhook_url:
            return NotificationResult(success=False, error="Slack webhook URL is not configured")
        return None

    async def publish(self, digest: DigestWithSources) -> NotificationResult:
        refused = self._precheck()
        if refused is not None:
            return refused

        if not digest.sources:
            return NotificationResult(success=False, error="Cannot post empty summaries to Slack")

        try:
            if digest.id is not None and self.store is not None:
                if self.store.has_notification(digest.id, self.channel_id):
                    return NotificationResult(
                        success=False,
                        error="This summary has already been posted to Slack",
                        already_posted=True,
                    )

            await _post_webhook(self.webhook_url, format_digest_blocks(digest), self.timeout)

            timestamp = utc_now_iso("milliseconds")
            if digest.id is not None and self.store is not None:
                self.store.record_notification(digest.id, self.channel_id, timestamp)
        except Exception as e:
            logger.error(f"Error posting to Slack: {e}")
            return NotificationResult(success=False, error=str(e) or type(e).__name__)

        logger.info(f"Posted digest {digest.id} to Slack channel {self.channel_id}")
        return NotificationResult(success=True, timestamp=timestamp)

    async def test_connection(self) -> NotificationResult:
        refused = self._precheck()
        if refused is not None:
            return refused

        payload = {
            "blocks": [
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": "✅ Slack webhook test successful! Your news digest integration is working.",
                    },
                }
            ]
        }
        try:
            await _post_webhook(self.webhook_url, payload, self.timeout)
        except Exception as e:
            logger.error(f"Error testing Slack connection: {e}")
            return NotificationResult(success=False, error=str(e) or type(e).__name__)

        return NotificationResult(success=True, timestamp=utc_now_iso("milliseconds"))
