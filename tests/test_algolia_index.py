"""
Tests for the Algolia index client against a mock transport.
"""

import json
import unittest
from urllib.parse import parse_qs

import httpx

from contentsync.errors import DocumentIndexError
from contentsync.index import AlgoliaIndex
from contentsync.sources import MockSource
from contentsync.sync import SyncOrchestrator


class AlgoliaStub:
    """Minimal stand-in for the Algolia REST API."""

    def __init__(self, pages=None, status=200, browse_status=200):
        self.pages = pages or [{"hits": []}]
        self.status = status
        self.browse_status = browse_status
        self.requests = []

    def __call__(self, request):
        body = json.loads(request.content) if request.content else {}
        self.requests.append((request.url.path, body))

        if self.status != 200:
            return httpx.Response(self.status, json={"message": "error"})
        if request.url.path.endswith("/browse"):
            if self.browse_status != 200:
                return httpx.Response(self.browse_status, json={"message": "Index does not exist", "status": self.browse_status})
            return httpx.Response(200, json=self.pages[len(self.browse_requests()) - 1])
        if request.url.path.endswith("/batch"):
            object_ids = [
                item["body"].get("objectID") or f"gen-{len(self.requests)}-{i}"
                for i, item in enumerate(body["requests"])
            ]
            return httpx.Response(200, json={"taskID": 1, "objectIDs": object_ids})
        if request.url.path.endswith("/queries"):
            return httpx.Response(200, json={"results": [{"hits": [{"id": "e1"}]} for _ in body["requests"]]})
        return httpx.Response(200, json={"hits": [{"id": "e1", "locale": "en", "objectID": "X1"}]})

    def browse_requests(self):
        return [body for path, body in self.requests if path.endswith("/browse")]

    def batch_requests(self):
        return [body for path, body in self.requests if path.endswith("/batch")]


class TestAlgoliaIndex(unittest.IsolatedAsyncioTestCase):
    """Test browse, batch and query requests."""

    def make_index(self, stub, batch_size=1000):
        client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
        return AlgoliaIndex("APPID", "secret", "dev_content", batch_size=batch_size, client=client)

    async def asyncTearDown(self):
        if getattr(self, "index", None):
            await self.index.aclose()

    async def test_full_scan_follows_cursor(self):
        """Test browsing continues until no cursor is returned."""
        stub = AlgoliaStub(pages=[
            {"hits": [{"objectID": "A"}, {"objectID": "B"}], "cursor": "c1"},
            {"hits": [{"objectID": "C"}]},
        ])
        self.index = self.make_index(stub)

        hits = [hit async for hit in self.index.full_scan()]

        self.assertEqual([hit["objectID"] for hit in hits], ["A", "B", "C"])
        first, second = stub.browse_requests()
        params = parse_qs(first["params"])
        self.assertEqual(params["hitsPerPage"], ["1000"])
        self.assertEqual(params["attributesToHighlight"], ["[]"])
        self.assertEqual(second, {"cursor": "c1"})
        self.assertEqual(stub.requests[0][0], "/1/indexes/dev_content/browse")

    async def test_headers(self):
        """Test credentials are sent as Algolia headers."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"hits": []})

        self.index = AlgoliaIndex("APPID", "secret", "dev_content",
                                  client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        await self.index.search("hello")

        self.assertEqual(seen[0].url.host.lower(), "appid.algolia.net")
        self.assertEqual(seen[0].headers["X-Algolia-Application-Id"], "APPID")
        self.assertEqual(seen[0].headers["X-Algolia-API-Key"], "secret")

    async def test_batch_create_is_chunked(self):
        """Test batches are split by batch size and ids collected in order."""
        stub = AlgoliaStub()
        self.index = self.make_index(stub, batch_size=2)

        object_ids = await self.index.batch_create([{"id": f"e{i}"} for i in range(5)])

        batches = stub.batch_requests()
        self.assertEqual([len(batch["requests"]) for batch in batches], [2, 2, 1])
        self.assertTrue(all(item["action"] == "addObject" for batch in batches for item in batch["requests"]))
        self.assertEqual(len(object_ids), 5)

    async def test_batch_upsert_and_delete_actions(self):
        """Test update and delete use their batch actions."""
        stub = AlgoliaStub()
        self.index = self.make_index(stub)

        updated = await self.index.batch_upsert([{"id": "e1", "objectID": "X1"}])
        deleted = await self.index.batch_delete(["X2", "X3"])

        upsert, delete = stub.batch_requests()
        self.assertEqual(upsert["requests"][0]["action"], "updateObject")
        self.assertEqual(delete["requests"], [
            {"action": "deleteObject", "body": {"objectID": "X2"}},
            {"action": "deleteObject", "body": {"objectID": "X3"}},
        ])
        self.assertEqual(updated, ["X1"])
        self.assertEqual(deleted, ["X2", "X3"])

    async def test_search_restricts_attributes(self):
        """Test ad-hoc queries send restrictSearchableAttributes."""
        stub = AlgoliaStub()
        self.index = self.make_index(stub)

        hits = await self.index.get_object_by_id("e1", "en")

        path, body = stub.requests[0]
        params = parse_qs(body["params"])
        self.assertEqual(path, "/1/indexes/dev_content/query")
        self.assertEqual(params["query"], ["e1 en"])
        self.assertEqual(json.loads(params["restrictSearchableAttributes"][0]), ["id", "locale"])
        self.assertEqual(hits, [{"id": "e1", "locale": "en", "objectID": "X1"}])

    async def test_get_objects_multi_query(self):
        """Test several lookups share one request."""
        stub = AlgoliaStub()
        self.index = self.make_index(stub)

        results = await self.index.get_objects(["e1 en", "e1 de"])

        path, body = stub.requests[0]
        self.assertEqual(path, "/1/indexes/*/queries")
        self.assertEqual([request["indexName"] for request in body["requests"]], ["dev_content"] * 2)
        self.assertEqual(len(results), 2)
        self.assertEqual(await self.index.get_objects([]), [])

    async def test_missing_index_scans_as_empty(self):
        """Test browsing an index that does not exist yet yields nothing."""
        stub = AlgoliaStub(browse_status=404)
        self.index = self.make_index(stub)

        hits = [hit async for hit in self.index.full_scan()]

        self.assertEqual(hits, [])
        self.assertEqual(len(stub.browse_requests()), 1)

    async def test_browse_errors_other_than_missing_index_raise(self):
        """Test other browse failures still fail the scan."""
        self.index = self.make_index(AlgoliaStub(browse_status=403))

        with self.assertRaises(DocumentIndexError) as context:
            [hit async for hit in self.index.full_scan()]
        self.assertEqual(context.exception.status_code, 403)

    async def test_first_sync_into_new_index(self):
        """Test a sync into an index that does not exist yet creates its documents."""
        stub = AlgoliaStub(browse_status=404)
        self.index = self.make_index(stub)
        orchestrator = SyncOrchestrator(MockSource(), lambda name: self.index, locales=[["en-US"], ["de-DE"]])

        outcomes = await orchestrator.sync("post", "content")

        self.assertTrue(outcomes["post"].ok)
        self.assertEqual(len(outcomes["post"].object_ids), 4)
        actions = [item["action"] for batch in stub.batch_requests() for item in batch["requests"]]
        self.assertEqual(actions, ["addObject"] * 4)

    async def test_error_status_raises(self):
        """Test API errors surface as DocumentIndexError."""
        self.index = self.make_index(AlgoliaStub(status=403))

        with self.assertRaises(DocumentIndexError):
            await self.index.batch_delete(["X1"])

    def test_credentials_required(self):
        """Test missing credentials are rejected."""
        self.index = None
        with self.assertRaises(ValueError):
            AlgoliaIndex("", "secret", "dev_content")


if __name__ == '__main__':
    unittest.main()
