from __future__ import annotations

from typing import Optional

import httpx

from dependents.config import settings


def make_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Shared async client; the pool bounds concurrent connections during fan-out."""
    limits = httpx.Limits(
        max_connections=settings.MAX_CONNECTIONS,
        max_keepalive_connections=settings.MAX_CONNECTIONS,
    )
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SEC),
        limits=limits,
        transport=transport,
        follow_redirects=True,
    )
