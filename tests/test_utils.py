from __future__ import annotations

from datetime import datetime, timedelta, timezone

from models import Digest
from utils import utc_now_iso


def test_utc_now_iso_precision_and_offset() -> None:
    seconds = utc_now_iso()
    millis = utc_now_iso("milliseconds")

    assert seconds.endswith("+00:00")
    assert "." not in seconds
    assert len(millis.split("+")[0].rsplit(".", 1)[-1]) == 3

    parsed = datetime.fromisoformat(seconds)
    assert parsed.tzinfo is not None
    assert abs(datetime.now(timezone.utc) - parsed) < timedelta(minutes=1)


def test_digest_defaults_to_utc_creation_time() -> None:
    digest = Digest(topic="AI", summary_markdown="text")

    assert datetime.fromisoformat(digest.created_at).utcoffset() == timedelta(0)
