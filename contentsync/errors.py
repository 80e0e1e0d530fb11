"""
Error types raised by contentsync.

Every failure surfaced by the fetch, scan and write paths is one of these, so
callers can tell which stage of a sync went wrong.
"""

from typing import Dict, List, Optional


class ContentSyncError(Exception):
    """Base class for all contentsync errors."""


class FetchError(ContentSyncError):
    """Querying or paginating the content source failed."""


class DocumentIndexError(ContentSyncError):
    """
    A call against the document index failed.

    ``status_code`` holds the HTTP status when the index answered with one.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class IndexScanError(DocumentIndexError):
    """The full scan of the destination index failed."""


class BatchWriteError(DocumentIndexError):
    """
    One or more batch writes (create, update, delete) failed.

    Sibling batches still run to completion; ``object_ids`` holds the
    identifiers of the batches that succeeded.
    """

    def __init__(self, failures: Dict[str, Exception], object_ids: Optional[List[str]] = None):
        self.failures = failures
        self.object_ids = object_ids or []
        summary = ", ".join(f"{name}: {error}" for name, error in failures.items())
        super().__init__(f"Batch write failed ({summary})")
