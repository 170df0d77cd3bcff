from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from dependents.config.settings import (
    COUCHDB_PASSWORD,
    COUCHDB_URL,
    COUCHDB_USER,
    DEPENDENTS_VIEW,
    DEV_DEPENDENTS_VIEW,
    DOWNLOADS_VIEW,
)

from dependents.core.dto import DependentEdge
from dependents.core.errors import DataSourceError, DependentsFetchError, UnauthorizedError
from dependents.ports.dependents_port import DependentsPort

logger = logging.getLogger(__name__)


class CouchDBAdapter(DependentsPort):

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        base_url = base_url or COUCHDB_URL
        if not base_url:
            raise DataSourceError("Please provide a CouchDB URL.")
        self._client = client
        self._base_url = base_url.rstrip("/")

        user = user or COUCHDB_USER
        password = password or COUCHDB_PASSWORD
        # basic auth only when both halves are present
        self._auth: Optional[Tuple[str, str]] = (user, password) if user and password else None

    # ---------- internal ----------

    def _view_url(self, design: str, view: str) -> str:
        return f"{self._base_url}/_design/{design}/_view/{view}"

    async def _call(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        if self._auth:
            kwargs["auth"] = self._auth
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise DependentsFetchError(f"Request to {url} failed: {e}") from e

        if resp.status_code == 401:
            raise UnauthorizedError(f"HTTP error! Status: {resp.status_code}", status_code=401)
        if not resp.is_success:
            raise DependentsFetchError(f"HTTP error! Status: {resp.status_code}", status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise DependentsFetchError(f"Invalid CouchDB response from {url}") from e
        if not isinstance(data, dict):
            raise DependentsFetchError(f"Invalid CouchDB response from {url}: {data!r}")
        return data

    @staticmethod
    def _rows(data: Dict[str, Any]) -> list:
        rows = data.get("rows")
        return rows if isinstance(rows, list) else []

    @staticmethod
    def _edge(row: Dict[str, Any]) -> Optional[DependentEdge]:
        value = row.get("value")
        # dev-dependencies view: value is a bare string, the dependent is the doc id
        if isinstance(value, str) or value is None:
            name = row.get("id")
            return DependentEdge(name=str(name), declared_range="") if name else None
        if isinstance(value, dict) and value.get("name"):
            return DependentEdge(name=str(value["name"]), declared_range=str(value.get("version") or ""))
        return None

    # ---------- port methods ----------

    async def fetch_dependents(self, name: str, dev: bool = False) -> List[DependentEdge]:
        view = DEV_DEPENDENTS_VIEW if dev else DEPENDENTS_VIEW
        url = self._view_url("dependents", view)
        logger.debug("fetching %s for %s", view, name)

        data = await self._call("GET", url, params={"key": json.dumps(name)})

        edges: List[DependentEdge] = []
        for row in self._rows(data):
            if not isinstance(row, dict):
                continue
            edge = self._edge(row)
            if edge is not None:
                edges.append(edge)
        return edges

    async def fetch_downloads(self, names: Iterable[str]) -> Dict[str, int]:
        keys = list(names)
        if not keys:
            return {}

        url = self._view_url("downloads", DOWNLOADS_VIEW)
        logger.debug("fetching download stats for %d packages", len(keys))
        data = await self._call("POST", url, json={"keys": keys})

        out: Dict[str, int] = {}
        for row in self._rows(data):
            if not isinstance(row, dict) or row.get("key") is None:
                continue
            try:
                out[str(row["key"])] = int(row.get("value") or 0)
            except (TypeError, ValueError):
                continue
        return out
