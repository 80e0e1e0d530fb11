"""
Mock content source for testing contentsync.

This module provides an in-memory source holding Contentful-shaped entries,
so the full pipeline can run without network access.
"""

import logging
from typing import Any, Dict, List, Optional

from ..errors import FetchError
from ..models import SourcePage, SourceQuery
from .base import BaseSource
from .contentful import ContentfulEntryParser


class MockSource(BaseSource):
    """
    Mock source that serves raw entries from memory.

    Entries are stored in the same JSON shape the Contentful API returns and
    go through the same parser, so link resolution behaves identically.
    """

    def __init__(self, entries: Optional[List[Dict[str, Any]]] = None,
                 includes: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        """
        Initialize the mock source.

        Args:
            entries: Raw entries; sample data is used when omitted
            includes: Raw linked entries and assets (``{"Entry": [...], "Asset": [...]}``);
                every stored entry is includable when omitted
        """
        self.entries = entries if entries is not None else self._create_sample_entries()
        self.includes = includes if includes is not None else {"Entry": self.entries}
        self.queries: List[SourceQuery] = []
        self.fail_on_skip: Optional[int] = None

    async def search(self, query: SourceQuery) -> SourcePage:
        """
        Return one page of matching entries.

        Raises:
            FetchError: When ``fail_on_skip`` matches the requested offset
        """
        self.queries.append(query)
        if self.fail_on_skip is not None and query.skip == self.fail_on_skip:
            raise FetchError(f"Simulated failure at skip={query.skip}")

        matching = [entry for entry in self.entries if self._matches(entry, query)]
        window = matching[query.skip:query.skip + query.limit]

        payload = {
            "items": window,
            "includes": self.includes,
            "total": len(matching),
            "skip": query.skip,
            "limit": query.limit,
        }
        logging.debug(f"Mock source served {len(window)} of {len(matching)} '{query.content_type}' entries")
        return ContentfulEntryParser(payload, max_depth=query.include).parse_page()

    @staticmethod
    def _matches(entry: Dict[str, Any], query: SourceQuery) -> bool:
        sys = entry.get("sys") or {}
        content_type = ((sys.get("contentType") or {}).get("sys") or {}).get("id")
        if content_type != query.content_type:
            return False
        if query.entry_id and sys.get("id") != query.entry_id:
            return False
        return True

    @staticmethod
    def make_entry(entry_id: str, content_type: str, fields: Dict[str, Any],
                   updated_at: str = "2024-05-22T10:00:00.000Z") -> Dict[str, Any]:
        """
        Build a raw entry in Contentful's shape.

        Args:
            entry_id: Entry id
            content_type: Content-type id
            fields: Field name to ``{locale: value}`` mapping

        Returns:
            Raw entry dictionary
        """
        return {
            "sys": {
                "id": entry_id,
                "type": "Entry",
                "space": {"sys": {"type": "Link", "linkType": "Space", "id": "mock-space"}},
                "contentType": {"sys": {"type": "Link", "linkType": "ContentType", "id": content_type}},
                "revision": 1,
                "createdAt": "2024-05-01T10:00:00.000Z",
                "updatedAt": updated_at,
            },
            "fields": fields,
        }

    @staticmethod
    def make_link(entry_id: str, link_type: str = "Entry") -> Dict[str, Any]:
        """Build a raw link object pointing at another record."""
        return {"sys": {"type": "Link", "linkType": link_type, "id": entry_id}}

    def _create_sample_entries(self) -> List[Dict[str, Any]]:
        """
        Create sample entries covering plain, localized and linked fields.

        Returns:
            List of raw entries
        """
        entries = []

        entries.append(self.make_entry("author-jane", "author", {
            "name": {"en-US": "Jane Doe"},
            "bio": {"en-US": "Writes about search.", "de-DE": "Schreibt über Suche."},
        }))

        entries.append(self.make_entry("post-hello", "post", {
            "title": {"en-US": "Hello", "de-DE": "Hallo"},
            "slug": {"en-US": "hello"},
            "authors": {"en-US": [self.make_link("author-jane")]},
        }))

        entries.append(self.make_entry("post-phoenix", "post", {
            "title": {"en-US": "Project Phoenix", "de-DE": "Projekt Phönix"},
            "slug": {"en-US": "project-phoenix"},
            "related": {"en-US": self.make_link("post-hello")},
        }))

        return entries
