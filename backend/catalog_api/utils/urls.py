"""Natural-key helpers for content URLs."""
from __future__ import annotations

import re
from urllib.parse import unquote

_ORIGIN_RE = re.compile(r"^https?://[^/]*/?", re.IGNORECASE)


def normalize_url(url: str | None) -> str:
    """Reduce a content URL to the path used as its natural key.

    The scheme and host are dropped, percent-escapes are decoded and a single
    trailing slash is removed, so ``https://site/a-movie/`` and ``a-movie``
    address the same item.
    """

    if not url:
        return ""
    normalized = _ORIGIN_RE.sub("", url.strip())
    normalized = unquote(normalized)
    normalized = normalized.lstrip("/")
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized
