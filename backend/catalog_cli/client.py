"""HTTP client helpers for the catalog CLI."""
from __future__ import annotations

import httpx

USER_AGENT = "reelindex-cli/0.1.0"


def create_client(
    base_url: str,
    *,
    timeout: float = 10.0,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Build an HTTPX client bound to the catalog API base URL."""

    return httpx.Client(
        base_url=base_url.rstrip("/"),
        timeout=timeout,
        transport=transport,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    )
