"""
Base content source interface for contentsync.

This module defines the abstract interface that all content sources must implement.
"""

from abc import ABC, abstractmethod

from ..models import SourcePage, SourceQuery


class BaseSource(ABC):
    """
    Abstract base class for all content sources.

    Each source answers paginated queries with SourceRecord objects whose
    field values are already tagged (scalar, link, list).
    """

    @abstractmethod
    async def search(self, query: SourceQuery) -> SourcePage:
        """
        Retrieve one page of records matching a query.

        Args:
            query: Content-type filter, optional id filter, locale, link
                depth and pagination window

        Returns:
            The page of records together with the total number available
        """
        pass

    async def aclose(self) -> None:
        """Release any resources held by the source."""
        return None
