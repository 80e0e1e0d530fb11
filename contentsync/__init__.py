"""
contentsync: keeps a search index in sync with a headless CMS.

Flattens multi-locale content records into one search document per
(record, locale) pair and reconciles the destination index against them.
"""

__version__ = "0.1.0"
__author__ = "contentsync Project"

# Import main components
from .models import SourceRecord, DiffResult, NO_VALUE
from .flattener import LocaleFlattener
from .fetcher import SourceFetcher
from .reconciler import IndexReconciler
from .sync import SyncOrchestrator, SyncOutcome
from .sources import BaseSource, ContentfulSource, MockSource
from .index import BaseIndex, AlgoliaIndex, DuckDBIndex

__all__ = [
    "SourceRecord",
    "DiffResult",
    "NO_VALUE",
    "LocaleFlattener",
    "SourceFetcher",
    "IndexReconciler",
    "SyncOrchestrator",
    "SyncOutcome",
    "BaseSource",
    "ContentfulSource",
    "MockSource",
    "BaseIndex",
    "AlgoliaIndex",
    "DuckDBIndex"
]
