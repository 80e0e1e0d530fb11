"""
Base document index interface for contentsync.

This module defines the abstract interface that all destination indexes must implement.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

from ..models import FlatDocument


class BaseIndex(ABC):
    """
    Abstract base class for search indexes that receive flat documents.

    Documents are addressed by ``objectID``. Batch methods return the
    identifiers they touched, in input order.
    """

    name: str

    @abstractmethod
    def full_scan(self) -> AsyncIterator[FlatDocument]:
        """Iterate over every document currently in the index."""
        pass

    @abstractmethod
    async def batch_create(self, documents: List[FlatDocument]) -> List[str]:
        """
        Add new documents; the index assigns their identifiers.

        Returns:
            The assigned objectIDs, in input order
        """
        pass

    @abstractmethod
    async def batch_upsert(self, documents: List[FlatDocument]) -> List[str]:
        """Replace documents by their ``objectID``."""
        pass

    @abstractmethod
    async def batch_delete(self, object_ids: List[str]) -> List[str]:
        """Delete documents by ``objectID``."""
        pass

    @abstractmethod
    async def search(self, query: str, restrict_attributes: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """
        Run an ad-hoc query against the index.

        Args:
            query: Full-text query
            restrict_attributes: Only match against these attributes

        Returns:
            Matching documents
        """
        pass

    async def get_object_by_id(self, entry_id: str, locale: Optional[str] = None) -> List[Dict[str, Any]]:
        """Look up the documents of one source record by its ``id`` attribute."""
        query = f"{entry_id} {locale}" if locale else entry_id
        hits = await self.search(query, restrict_attributes=["id", "locale"])
        return [
            hit for hit in hits
            if hit.get("id") == entry_id and (locale is None or hit.get("locale") == locale)
        ]

    async def aclose(self) -> None:
        """Release any resources held by the index."""
        return None
