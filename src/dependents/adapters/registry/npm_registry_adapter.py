from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from dependents.config import settings
from dependents.core.dto import NotFound, PackageMetadata, Resolution, Resolved, TransportError
from dependents.ports.registry_port import RegistryPort

logger = logging.getLogger(__name__)


class NpmRegistryAdapter(RegistryPort):
    def __init__(self, client: httpx.AsyncClient, base_url: Optional[str] = None) -> None:
        self._client = client
        self._base_url = (base_url or settings.REGISTRY_BASE_URL).rstrip("/")

    def _url(self, name: str, version: str) -> str:
        # scoped names stay as path segments: /@scope/name/<version>
        return f"{self._base_url}/{quote(name, safe='@/')}/{quote(version, safe='')}"

    @staticmethod
    def _unpacked_size(dist: Optional[Dict[str, Any]]) -> int:
        if not isinstance(dist, dict):
            return 0
        for key in ("unpackedSize", "size"):
            val = dist.get(key)
            if isinstance(val, (int, float)) and val >= 0:
                return int(val)
        return 0

    async def resolve(self, name: str, version: str = "latest") -> Resolution:
        url = self._url(name, version or "latest")
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.debug("registry lookup %s failed: %r", url, e)
            return TransportError(f"{e.__class__.__name__}: {e}")

        if not resp.is_success:
            logger.debug("registry lookup %s returned %s", url, resp.status_code)
            return NotFound(resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            logger.debug("registry lookup %s returned invalid JSON: %s", url, e)
            return TransportError(f"Invalid registry response: {e}")
        if not isinstance(data, dict):
            return TransportError(f"Invalid registry response: {data!r}")

        return Resolved(
            PackageMetadata(
                name=str(data.get("name") or name),
                version=str(data.get("version") or version),
                homepage=data.get("homepage") or None,
                unpacked_size=self._unpacked_size(data.get("dist")),
            )
        )
