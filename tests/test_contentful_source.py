"""
Tests for the Contentful source and its response parser.
"""

import json
import unittest

import httpx

from contentsync.errors import FetchError
from contentsync.models import LinkedRecord, ListValue, ScalarValue, SourceQuery
from contentsync.sources import ContentfulEntryParser, ContentfulSource, MockSource


def entry(entry_id, fields, content_type="post"):
    return MockSource.make_entry(entry_id, content_type, fields)


link = MockSource.make_link


class TestContentfulEntryParser(unittest.TestCase):
    """Test conversion of Contentful payloads into tagged records."""

    def test_envelope(self):
        """Test sys metadata is mapped onto the record."""
        payload = {"items": [entry("e1", {"title": {"en-US": "Hello"}})], "total": 1}

        page = ContentfulEntryParser(payload).parse_page()
        record = page.items[0]

        self.assertEqual(page.total, 1)
        self.assertEqual(record.id, "e1")
        self.assertEqual(record.content_type, "post")
        self.assertEqual(record.space, "mock-space")
        self.assertEqual(record.revision, 1)
        self.assertEqual(record.updated_at, "2024-05-22T10:00:00.000Z")
        self.assertIsInstance(record.fields["title"]["en-US"], ScalarValue)

    def test_links_resolved_from_includes(self):
        """Test links are resolved against the includes."""
        author = entry("a1", {"name": {"en-US": "Jane"}}, content_type="author")
        payload = {
            "items": [entry("e1", {"authors": {"en-US": [link("a1")]}, "hero": {"en-US": link("img1", "Asset")}})],
            "includes": {
                "Entry": [author],
                "Asset": [{"sys": {"id": "img1", "type": "Asset"}, "fields": {"title": {"en-US": "Logo"}}}],
            },
        }

        record = ContentfulEntryParser(payload).parse_page().items[0]

        authors = record.fields["authors"]["en-US"]
        self.assertIsInstance(authors, ListValue)
        self.assertEqual(authors.items[0].record.id, "a1")
        self.assertEqual(authors.items[0].record.fields["name"]["en-US"].value, "Jane")
        hero = record.fields["hero"]["en-US"]
        self.assertEqual(hero.link_type, "Asset")
        self.assertEqual(hero.record.type, "Asset")

    def test_missing_include_stays_unresolved(self):
        """Test a link beyond the include depth is kept unresolved."""
        payload = {"items": [entry("e1", {"related": {"en-US": link("e9")}})]}

        record = ContentfulEntryParser(payload).parse_page().items[0]
        related = record.fields["related"]["en-US"]

        self.assertIsInstance(related, LinkedRecord)
        self.assertEqual(related.record_id, "e9")
        self.assertIsNone(related.record)

    def test_cycle_is_broken(self):
        """Test mutually linked entries parse into a finite tree."""
        first = entry("e1", {"next": {"en-US": link("e2")}})
        second = entry("e2", {"next": {"en-US": link("e1")}})
        payload = {"items": [first, second]}

        page = ContentfulEntryParser(payload).parse_page()
        nested = page.items[0].fields["next"]["en-US"].record

        self.assertEqual(nested.id, "e2")
        back = nested.fields["next"]["en-US"]
        self.assertEqual(back.record_id, "e1")
        self.assertIsNone(back.record)

    def test_dense_link_graph_is_bounded_by_depth(self):
        """Test heavily cross-linked entries resolve only max_depth levels deep."""
        count = 40
        posts = [
            entry(f"p{i}", {"related": {"en-US": [link(f"p{(i + step) % count}") for step in (1, 2, 3)]}})
            for i in range(count)
        ]

        page = ContentfulEntryParser({"items": posts, "total": count}, max_depth=2).parse_page()

        def depth(record):
            related = record.fields["related"]["en-US"].items
            resolved = [item.record for item in related if item.record is not None]
            return 1 + max((depth(nested) for nested in resolved), default=0)

        def size(record):
            related = record.fields["related"]["en-US"].items
            return 1 + sum(size(item.record) for item in related if item.record is not None)

        self.assertEqual(len(page.items), count)
        self.assertTrue(all(depth(record) == 3 for record in page.items))
        self.assertTrue(all(size(record) == 1 + 3 + 9 for record in page.items))
        deepest = page.items[0].fields["related"]["en-US"].items[0].record.fields["related"]["en-US"].items[0]
        self.assertEqual(deepest.record_id, "p2")
        self.assertIsNotNone(deepest.record)
        self.assertTrue(all(item.record is None for item in deepest.record.fields["related"]["en-US"].items))

    def test_depth_follows_include(self):
        """Test the include value of the query limits resolution."""
        chain = [entry(f"c{i}", {"next": {"en-US": link(f"c{i + 1}")}}) for i in range(5)]
        payload = {"items": chain[:1], "includes": {"Entry": chain[1:]}}

        shallow = ContentfulEntryParser(payload, max_depth=1).parse_page().items[0]
        unlimited = ContentfulEntryParser(payload, max_depth=None).parse_page().items[0]

        first = shallow.fields["next"]["en-US"].record
        self.assertEqual(first.id, "c1")
        self.assertIsNone(first.fields["next"]["en-US"].record)
        self.assertEqual(
            unlimited.fields["next"]["en-US"].record.fields["next"]["en-US"].record
            .fields["next"]["en-US"].record.fields["next"]["en-US"].record.id,
            "c4",
        )

    def test_single_locale_values_are_wrapped(self):
        """Test responses for one locale carry bare values."""
        payload = {"items": [entry("e1", {"title": "Hello", "author": link("a1")})]}

        record = ContentfulEntryParser(payload).parse_page().items[0]

        self.assertEqual(record.fields["title"][""].value, "Hello")
        self.assertIsInstance(record.fields["author"][""], LinkedRecord)

    def test_entry_without_id_rejected(self):
        """Test malformed entries raise."""
        with self.assertRaises(ValueError):
            ContentfulEntryParser({}).parse_entry({"sys": {}, "fields": {}})


class TestContentfulSource(unittest.IsolatedAsyncioTestCase):
    """Test the HTTP client against a mock transport."""

    def make_source(self, handler):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return ContentfulSource("token-123", "space-abc", client=client)

    async def test_search_request(self):
        """Test the request URL, parameters and authorization."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={
                "items": [entry("e1", {"title": {"en-US": "Hello"}})],
                "total": 1, "skip": 0, "limit": 100,
            })

        source = self.make_source(handler)
        page = await source.search(SourceQuery(content_type="post", entry_id="e1", limit=100))
        await source.aclose()

        request = requests[0]
        self.assertEqual(request.url.host, "cdn.contentful.com")
        self.assertEqual(request.url.path, "/spaces/space-abc/environments/master/entries")
        self.assertEqual(request.url.params["content_type"], "post")
        self.assertEqual(request.url.params["locale"], "*")
        self.assertEqual(request.url.params["include"], "2")
        self.assertEqual(request.url.params["limit"], "100")
        self.assertEqual(request.url.params["sys.id"], "e1")
        self.assertEqual(request.headers["Authorization"], "Bearer token-123")
        self.assertEqual(page.items[0].id, "e1")

    async def test_error_status_raises_fetch_error(self):
        """Test HTTP errors surface as FetchError."""
        source = self.make_source(lambda request: httpx.Response(401, json={"message": "denied"}))

        with self.assertRaises(FetchError):
            await source.search(SourceQuery(content_type="post"))
        await source.aclose()

    async def test_invalid_json_raises_fetch_error(self):
        """Test an undecodable body surfaces as FetchError."""
        source = self.make_source(lambda request: httpx.Response(200, content=b"not json"))

        with self.assertRaises(FetchError):
            await source.search(SourceQuery(content_type="post"))
        await source.aclose()

    async def test_connection_error_raises_fetch_error(self):
        """Test transport failures surface as FetchError."""
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        source = self.make_source(handler)

        with self.assertRaises(FetchError):
            await source.search(SourceQuery(content_type="post"))
        await source.aclose()

    def test_credentials_required(self):
        """Test missing credentials are rejected."""
        with self.assertRaises(ValueError):
            ContentfulSource("", "space-abc")


class TestMockSource(unittest.IsolatedAsyncioTestCase):
    """Test the in-memory source."""

    async def test_filters_by_content_type(self):
        source = MockSource()

        page = await source.search(SourceQuery(content_type="post"))

        self.assertEqual(page.total, 2)
        self.assertEqual({record.id for record in page.items}, {"post-hello", "post-phoenix"})

    async def test_sample_links_resolved(self):
        source = MockSource()

        page = await source.search(SourceQuery(content_type="post", entry_id="post-hello"))
        authors = page.items[0].fields["authors"]["en-US"]

        self.assertEqual(authors.items[0].record.id, "author-jane")

    async def test_query_include_limits_links(self):
        """Test links below the requested include depth stay unresolved."""
        source = MockSource()

        page = await source.search(SourceQuery(content_type="post", entry_id="post-phoenix", include=1))
        related = page.items[0].fields["related"]["en-US"].record

        self.assertEqual(related.id, "post-hello")
        self.assertIsNone(related.fields["authors"]["en-US"].items[0].record)

    async def test_payload_is_json_shaped(self):
        """Test sample entries are plain JSON like real responses."""
        source = MockSource()
        self.assertEqual(json.loads(json.dumps(source.entries)), source.entries)


if __name__ == '__main__':
    unittest.main()
