import json
import unittest
from unittest.mock import patch

import httpx

from dependents.adapters.couchdb.couchdb_adapter import CouchDBAdapter
from dependents.core.dto import DependentEdge
from dependents.core.errors import DataSourceError, DependentsFetchError, UnauthorizedError

COUCH = "http://couch.test/registry"


class CouchDBAdapterTests(unittest.IsolatedAsyncioTestCase):
    def _client(self, handler) -> httpx.AsyncClient:
        self.requests = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        self.addAsyncCleanup(client.aclose)
        return client

    async def test_prod_rows_carry_declared_range(self) -> None:
        body = {
            "total_rows": 2,
            "offset": 0,
            "rows": [
                {"id": "a", "key": "left-pad", "value": {"name": "a", "version": "^1.0.0"}},
                {"id": "b", "key": "left-pad", "value": {"name": "b", "version": "~1.1.0"}},
            ],
        }
        client = self._client(lambda req: httpx.Response(200, json=body))
        adapter = CouchDBAdapter(client, base_url=COUCH, user="admin", password="secret")

        edges = await adapter.fetch_dependents("left-pad")

        self.assertEqual(edges, [DependentEdge("a", "^1.0.0"), DependentEdge("b", "~1.1.0")])
        req = self.requests[0]
        self.assertEqual(req.url.path, "/registry/_design/dependents/_view/dependents2")
        self.assertEqual(req.url.params["key"], '"left-pad"')
        self.assertTrue(req.headers["Authorization"].startswith("Basic "))

    async def test_dev_rows_are_normalized(self) -> None:
        body = {"total_rows": 1, "offset": 0, "rows": [{"id": "devtool", "key": "left-pad", "value": "left-pad"}]}
        client = self._client(lambda req: httpx.Response(200, json=body))
        adapter = CouchDBAdapter(client, base_url=COUCH)

        edges = await adapter.fetch_dependents("left-pad", dev=True)

        self.assertEqual(edges, [DependentEdge("devtool", "")])
        self.assertTrue(self.requests[0].url.path.endswith("/_view/dev-dependencies"))

    @patch("dependents.adapters.couchdb.couchdb_adapter.COUCHDB_PASSWORD", None)
    @patch("dependents.adapters.couchdb.couchdb_adapter.COUCHDB_USER", None)
    async def test_no_auth_header_without_credentials(self) -> None:
        client = self._client(lambda req: httpx.Response(200, json={"rows": []}))
        adapter = CouchDBAdapter(client, base_url=COUCH, user="admin")

        await adapter.fetch_dependents("left-pad")

        self.assertNotIn("Authorization", self.requests[0].headers)

    async def test_unauthorized_raises_with_hint(self) -> None:
        client = self._client(lambda req: httpx.Response(401, json={"error": "unauthorized"}))
        adapter = CouchDBAdapter(client, base_url=COUCH)

        with self.assertRaises(UnauthorizedError) as ctx:
            await adapter.fetch_dependents("left-pad")
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertIn("--user", ctx.exception.hint)

    async def test_server_error_raises(self) -> None:
        client = self._client(lambda req: httpx.Response(500))
        adapter = CouchDBAdapter(client, base_url=COUCH)

        with self.assertRaises(DependentsFetchError):
            await adapter.fetch_dependents("left-pad")

    async def test_transport_error_raises_fetch_error(self) -> None:
        def _refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = self._client(_refuse)
        adapter = CouchDBAdapter(client, base_url=COUCH)

        with self.assertRaises(DependentsFetchError) as ctx:
            await adapter.fetch_dependents("left-pad")
        self.assertNotIsInstance(ctx.exception, UnauthorizedError)
        self.assertIsNone(ctx.exception.status_code)

    async def test_downloads_are_posted_in_bulk(self) -> None:
        body = {"rows": [{"id": "a", "key": "a", "value": 1200}, {"id": "b", "key": "b", "value": 7}]}
        client = self._client(lambda req: httpx.Response(200, json=body))
        adapter = CouchDBAdapter(client, base_url=COUCH)

        stats = await adapter.fetch_downloads(["a", "b", "missing"])

        self.assertEqual(stats, {"a": 1200, "b": 7})
        req = self.requests[0]
        self.assertEqual(req.method, "POST")
        self.assertEqual(req.url.path, "/registry/_design/downloads/_view/downloads")
        self.assertEqual(json.loads(req.content), {"keys": ["a", "b", "missing"]})

    async def test_no_names_means_no_request(self) -> None:
        client = self._client(lambda req: httpx.Response(500))
        adapter = CouchDBAdapter(client, base_url=COUCH)

        self.assertEqual(await adapter.fetch_downloads([]), {})
        self.assertEqual(self.requests, [])

    @patch("dependents.adapters.couchdb.couchdb_adapter.COUCHDB_URL", None)
    async def test_url_is_required(self) -> None:
        client = self._client(lambda req: httpx.Response(200))
        with self.assertRaises(DataSourceError):
            CouchDBAdapter(client)


if __name__ == "__main__":
    unittest.main()
