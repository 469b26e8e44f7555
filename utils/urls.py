"""URL canonicalization used as the identity of fetched items."""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse


_TRACKING_PARAMS = {
    "fbclid",
    "gclid",
    "mc_cid",
    "mc_eid",
    "ref",
    "ref_src",
    "share_id",
    "utm_campaign",
    "utm_content",
    "utm_medium",
    "utm_name",
    "utm_source",
    "utm_term",
}


def _strip_url_tail_noise(value: str) -> str:
    text = str(value or "").strip()
    if not text:
        return ""
    text = text.strip("\"'`")
    text = re.sub(r"\s+", "", text)
    while text and text[-1] in {"\"", "'", "`", ",", ";"}:
        text = text[:-1].rstrip()
    return text


def canonicalize_url(url: str) -> str:
    """Normalize an http(s) URL so the same resource maps to one identity."""
    value = _strip_url_tail_noise(url)
    if not value:
        return ""
    if not value.startswith(("http://", "https://")):
        return value

    try:
        parsed = urlparse(value)
    except ValueError:
        return value

    host = str(parsed.netloc or "").strip().lower()
    if host.endswith(":80"):
        host = host[:-3]
    elif host.endswith(":443"):
        host = host[:-4]
    if host.startswith("www."):
        host = host[4:]

    path = re.sub(r"/{2,}", "/", str(parsed.path or ""))
    if path.endswith("/"):
        path = path.rstrip("/")

    query_pairs = []
    for key, val in parse_qsl(str(parsed.query or ""), keep_blank_values=False):
        key_clean = str(key or "").strip()
        if key_clean.lower() in _TRACKING_PARAMS or key_clean.lower().startswith("utm_"):
            continue
        query_pairs.append((key_clean, str(val or "").strip()))
    query = urlencode(query_pairs, doseq=False)

    return urlunparse(("https", host, path, "", query, ""))
