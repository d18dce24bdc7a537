"""httpx client factory.

Centralizes timeouts and headers so every context talks to the
bookmark server the same way.
"""

from __future__ import annotations

import httpx

from bmcapture.config.models import HttpConfig


def build_async_client(
    config: HttpConfig | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with the configured timeout and headers.

    *transport* replaces the network layer (tests pass an
    ``httpx.MockTransport``).
    """
    config = config or HttpConfig()
    headers: dict[str, str] = {
        "User-Agent": config.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )
