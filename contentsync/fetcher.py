"""
Source fetcher for contentsync.

Pages through every record of one content type and flattens the complete
result into flat documents.
"""

import logging
from typing import List, Optional

from .errors import FetchError
from .flattener import LocaleFlattener
from .models import FlatDocument, SourceQuery, SourceRecord
from .sources import BaseSource

PAGE_SIZE = 1000
LINK_DEPTH = 2


class SourceFetcher:
    """
    Fetches all records of a content type and turns them into flat documents.
    """

    def __init__(self, source: BaseSource, flattener: LocaleFlattener,
                 page_size: int = PAGE_SIZE, link_depth: int = LINK_DEPTH):
        """
        Initialize the fetcher.

        Args:
            source: Content source to query
            flattener: Flattener applied to every fetched record
            page_size: Records requested per page
            link_depth: Link-expansion depth requested from the source
        """
        self.source = source
        self.flattener = flattener
        self.page_size = page_size
        self.link_depth = link_depth

    async def fetch_all(self, content_type: str, entry_id: Optional[str] = None) -> List[FlatDocument]:
        """
        Fetch and flatten every record of a content type.

        Pagination completes before any record is flattened.

        Args:
            content_type: Content type to fetch
            entry_id: Restrict the fetch to this single record id

        Returns:
            One flat document per record and locale group

        Raises:
            FetchError: If any page request fails; no partial result is returned
        """
        records = await self.fetch_records(content_type, entry_id)
        documents = self.flattener.flatten_all(records)
        logging.info(f"Fetched {len(records)} '{content_type}' records, {len(documents)} documents after flattening")
        return documents

    async def fetch_records(self, content_type: str, entry_id: Optional[str] = None) -> List[SourceRecord]:
        """Page through the source and collect every matching record."""
        query = SourceQuery(
            content_type=content_type,
            entry_id=entry_id,
            locale="*",
            include=self.link_depth,
            skip=0,
            limit=self.page_size,
        )
        records: List[SourceRecord] = []

        while True:
            try:
                page = await self.source.search(query)
            except FetchError:
                raise
            except Exception as e:
                raise FetchError(f"Failed to fetch '{content_type}' at offset {query.skip}: {e}") from e

            records.extend(page.items)
            logging.debug(f"Page at offset {query.skip}: {len(page.items)} of {page.total} '{content_type}' records")

            if query.skip + query.limit >= page.total or not page.items:
                break
            query = query.model_copy(update={"skip": query.skip + query.limit})

        return records
