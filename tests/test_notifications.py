from __future__ import annotations

import pytest

from models import DigestWithSources, NewsItem
from notifications import SlackNotifier, format_digest_blocks, markdown_to_mrkdwn, parse_markdown_sections
from notifications import slack as slack_module
from storage import InMemoryNewsStore
from utils import NotificationError


SUMMARY = """Preamble that is dropped
## Overview
**OpenAI** shipped a model. See [the post](https://a.example/1).

## Key Developments
- One
- Two

## Empty

## Sources
- [Top](https://a.example/1) - r/artificial (90)
"""


def _sources(count: int):
    return [
        NewsItem(
            title=f"Story {i}",
            url=f"https://a.example/{i}",
            source="artificial" if i % 2 == 0 else "Hacker News",
            source_type="reddit" if i % 2 == 0 else "hackernews",
            score=100 - i,
        )
        for i in range(count)
    ]


def _digest(sources=None, digest_id=1) -> DigestWithSources:
    return DigestWithSources(
        id=digest_id,
        topic="AI",
        summary_markdown=SUMMARY,
        created_at="2026-10-19T08:00:00+00:00",
        sources=_sources(2) if sources is None else sources,
    )


def test_markdown_helpers() -> None:
    sections = parse_markdown_sections(SUMMARY)

    assert list(sections) == ["Overview", "Key Developments", "Empty", "Sources"]
    assert sections["Empty"] == ""
    assert markdown_to_mrkdwn("**bold** and [link](https://x.example)") == "*bold* and <https://x.example|link>"


def test_blocks_layout() -> None:
    payload = format_digest_blocks(_digest(sources=_sources(7)))
    blocks = payload["blocks"]

    assert blocks[0]["type"] == "header"
    assert blocks[0]["text"]["text"] == "🤖 AI News Summary"
    assert blocks[1]["elements"][0]["text"] == "*Topic:* AI | *Generated:* Monday, October 19, 2026"
    assert blocks[2] == {"type": "divider"}

    section_texts = [b["text"]["text"] for b in blocks if b["type"] == "section"]
    assert section_texts[0].startswith("*Overview*\n*OpenAI* shipped")
    assert "<https://a.example/1|the post>" in section_texts[0]
    assert not any(text.startswith("*Empty*") for text in section_texts)

    source_lines = section_texts[-1].split("\n")
    assert len(source_lines) == 5
    assert source_lines[0] == "• <https://a.example/0|Story 0> - r/artificial (↑100)"
    assert source_lines[1] == "• <https://a.example/1|Story 1> - Hacker News (↑99)"
    assert blocks[-1]["elements"][0]["text"] == "_...and 2 more sources_"


def test_single_source_is_not_pluralized() -> None:
    blocks = format_digest_blocks(_digest(sources=_sources(1)))["blocks"]

    texts = [b["elements"][0]["text"] for b in blocks if b["type"] == "context"]
    assert "📚 *1 source*" in texts


@pytest.mark.asyncio
async def test_publish_refusals() -> None:
    disabled = SlackNotifier(webhook_url="https://hooks.example/x", enabled=False)
    unconfigured = SlackNotifier(webhook_url=None)
    ready = SlackNotifier(webhook_url="https://hooks.example/x")

    assert (await disabled.publish(_digest())).error == "Slack integration is not enabled"
    assert (await unconfigured.publish(_digest())).error == "Slack webhook URL is not configured"
    assert (await ready.publish(_digest(sources=[]))).error == "Cannot post empty summaries to Slack"


@pytest.mark.asyncio
async def test_publish_records_and_refuses_repeat(monkeypatch) -> None:
    posted = []

    async def fake_post(url, payload, timeout):
        posted.append((url, payload))

    monkeypatch.setattr(slack_module, "_post_webhook", fake_post)
    store = InMemoryNewsStore()
    notifier = SlackNotifier(webhook_url="https://hooks.example/x", channel_id="news", store=store)

    first = await notifier.publish(_digest())
    second = await notifier.publish(_digest())

    assert first.success is True
    assert first.timestamp
    assert store.has_notification(1, "news") is True
    assert second.success is False
    assert second.already_posted is True
    assert second.error == "This summary has already been posted to Slack"
    assert len(posted) == 1
    assert posted[0][0] == "https://hooks.example/x"


@pytest.mark.asyncio
async def test_publish_failure_is_returned_not_raised(monkeypatch) -> None:
    async def failing_post(url, payload, timeout):
        raise NotificationError("Slack API error: 404 - no_service")

    monkeypatch.setattr(slack_module, "_post_webhook", failing_post)
    store = InMemoryNewsStore()
    notifier = SlackNotifier(webhook_url="https://hooks.example/x", store=store)

    result = await notifier.publish(_digest())

    assert result.success is False
    assert "404" in result.error
    assert store.has_notification(1, "general") is False


@pytest.mark.asyncio
async def test_connection_check(monkeypatch) -> None:
    payloads = []

    async def fake_post(url, payload, timeout):
        payloads.append(payload)

    monkeypatch.setattr(slack_module, "_post_webhook", fake_post)

    result = await SlackNotifier(webhook_url="https://hooks.example/x").test_connection()

    assert result.success is True
    assert "test successful" in payloads[0]["blocks"][0]["text"]["text"]
    assert (await SlackNotifier(webhook_url=None).test_connection()).success is False
