"""CLI entrypoint for digest generation, history and scheduling."""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime, timezone
import json
import sys

from config import get_settings
from generation import get_usage_logger
from orchestrator import build_orchestrator, build_scheduler
from storage import get_store, load_topics_file, sync_topics
from utils import DigestAgentError, setup_logger


def _print(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _dump(model):
    return model.model_dump(mode="json") if model is not None else None


def _parse_now(text: str):
    raw = str(text or "").strip()
    if not raw:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00")).astimezone(timezone.utc)


async def _fetch(orchestrator, topic: str) -> None:
    try:
        result = await orchestrator.generate_digest(topic)
        _print(
            {
                "digest": _dump(result.digest),
                "truncated": result.selection.truncated,
                "discarded": len(result.selection.discarded),
                "quota_scale": result.selection.quota_scale,
                "notification": _dump(result.notification),
                "warnings": result.warnings,
                "provider_errors": result.provider_errors,
            }
        )
    finally:
        await orchestrator.aclose()


async def _daily_tick(orchestrator, scheduler, now_utc) -> None:
    try:
        results = await scheduler.trigger_due(now_utc=now_utc)
        _print({"triggered": {topic: result.digest.id for topic, result in results.items()}})
    finally:
        await orchestrator.aclose()


async def _serve(orchestrator, scheduler, poll_seconds: float) -> None:
    try:
        await scheduler.run_forever(poll_seconds=poll_seconds)
    finally:
        await orchestrator.aclose()


async def _slack_post(orchestrator, digest_id: int) -> None:
    try:
        _print(_dump(await orchestrator.publish_digest(digest_id)))
    finally:
        await orchestrator.aclose()


async def _slack_test(orchestrator) -> None:
    try:
        _print(_dump(await orchestrator.notifier.test_connection()))
    finally:
        await orchestrator.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="News digest CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="Fetch, select and summarize news for a topic")
    fetch.add_argument("--topic", default="AI")

    sub.add_parser("latest", help="Show the latest digest")

    history = sub.add_parser("history", help="List digests")
    history.add_argument("--date", default=None, help="YYYY-MM-DD (UTC)")
    history.add_argument("--topic", default=None)

    show = sub.add_parser("show", help="Show one digest")
    show.add_argument("--id", type=int, required=True)

    topics = sub.add_parser("sync-topics", help="Insert or update topics from a JSON file")
    topics.add_argument("--file", default=None)

    stats = sub.add_parser("llm-stats", help="LLM usage statistics")
    stats.add_argument("--clear", action="store_true")

    tick = sub.add_parser("daily-tick", help="Run scheduled topics that are due")
    tick.add_argument("--now-utc", default="")

    serve = sub.add_parser("serve", help="Run the daily scheduler until interrupted")
    serve.add_argument("--poll-seconds", type=float, default=60.0)

    post = sub.add_parser("slack-post", help="Publish a stored digest to Slack")
    post.add_argument("--id", type=int, required=True)

    sub.add_parser("slack-test", help="Send a test message to the Slack webhook")

    args = parser.parse_args()
    settings = get_settings()
    setup_logger("", level=settings.general.log_level)

    try:
        if args.command == "sync-topics":
            store = get_store(settings)
            inserted, updated = sync_topics(store, load_topics_file(args.file or settings.storage.topics_file))
            _print({"inserted": inserted, "updated": updated, "backend": settings.storage.backend})
            return

        if args.command == "llm-stats":
            usage_logger = get_usage_logger(settings)
            if args.clear:
                usage_logger.clear()
            _print(usage_logger.get_stats().model_dump())
            return

        orchestrator = build_orchestrator(settings)

        if args.command == "fetch":
            asyncio.run(_fetch(orchestrator, args.topic))
            return

        if args.command == "latest":
            _print(_dump(orchestrator.get_latest_digest()))
            return

        if args.command == "history":
            _print([_dump(digest) for digest in orchestrator.list_digests(date=args.date, topic=args.topic)])
            return

        if args.command == "show":
            digest = orchestrator.get_digest(args.id)
            if digest is None:
                _print({"error": f"Summary {args.id} not found"})
                sys.exit(1)
            _print(_dump(digest))
            return

        if args.command == "daily-tick":
            scheduler = build_scheduler(orchestrator, settings)
            asyncio.run(_daily_tick(orchestrator, scheduler, _parse_now(args.now_utc)))
            return

        if args.command == "serve":
            scheduler = build_scheduler(orchestrator, settings)
            try:
                asyncio.run(_serve(orchestrator, scheduler, args.poll_seconds))
            except KeyboardInterrupt:
                _print({"stopped": True})
            return

        if args.command == "slack-post":
            asyncio.run(_slack_post(orchestrator, args.id))
            return

        if args.command == "slack-test":
            asyncio.run(_slack_test(orchestrator))
            return
    except DigestAgentError as exc:
        _print({"error": str(exc), "type": type(exc).__name__})
        sys.exit(1)


if __name__ == "__main__":
    main()
