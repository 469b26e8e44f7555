"""
Time helpers
"""
from datetime import datetime, timezone


def utc_now_iso(timespec: str = "seconds") -> str:
    """Current UTC time as an ISO-8601 string with offset."""
    return datetime.now(timezone.utc).isoformat(timespec=timespec)
