"""
Sync orchestrator for contentsync.

Drives one or more content types through fetch -> observe -> reconcile against
a single destination index.
"""

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .config import ConfigManager
from .errors import BatchWriteError
from .fetcher import LINK_DEPTH, PAGE_SIZE, SourceFetcher
from .flattener import LocaleFlattener, LocaleSpec
from .index import AlgoliaIndex, BaseIndex, DuckDBIndex
from .models import FlatDocument
from .reconciler import IndexReconciler
from .sources import BaseSource, ContentfulSource

Observer = Callable[[List[FlatDocument]], Any]
IndexFactory = Callable[[str], BaseIndex]


@dataclass
class SyncOutcome:
    """Result of syncing one content type."""

    content_type: str
    documents: int = 0
    object_ids: List[str] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SyncOrchestrator:
    """
    Synchronizes content types from a content source into a search index.
    """

    def __init__(self, source: BaseSource, index_factory: IndexFactory,
                 locales: Optional[LocaleSpec] = None, page_size: int = PAGE_SIZE,
                 link_depth: int = LINK_DEPTH, dry_run: bool = False):
        """
        Initialize the orchestrator.

        Args:
            source: Content source to fetch records from
            index_factory: Builds the destination index for an index name
            locales: Locale specification (list of locale groups)
            page_size: Records requested per source page
            link_depth: Link-expansion depth requested from the source
            dry_run: Compute diffs without writing to the index
        """
        self.source = source
        self.index_factory = index_factory
        self.flattener = LocaleFlattener(locales)
        self.page_size = page_size
        self.link_depth = link_depth
        self.dry_run = dry_run
        self._indexes: List[BaseIndex] = []

    @classmethod
    def from_config(cls, config: ConfigManager, dry_run: bool = False) -> "SyncOrchestrator":
        """
        Build an orchestrator from configuration.

        Args:
            config: Loaded configuration
            dry_run: Compute diffs without writing to the index

        Returns:
            Orchestrator wired to the configured source and index backend
        """
        prefix = config.index_prefix
        backend = config.index_backend.lower()
        if backend == "algolia":
            def index_factory(name: str) -> BaseIndex:
                return AlgoliaIndex(
                    application_id=config.index_application_id,
                    api_key=config.index_api_key,
                    index_name=f"{prefix}{name}",
                    batch_size=config.index_batch_size,
                    timeout=config.index_timeout,
                )
        elif backend == "duckdb":
            def index_factory(name: str) -> BaseIndex:
                return DuckDBIndex(f"{prefix}{name}", db_path=config.duckdb_path)
        else:
            raise ValueError(f"Unknown index backend: {backend}")

        source = ContentfulSource(
            access_token=config.source_access_token,
            space=config.source_space,
            host=config.source_host,
            environment=config.source_environment,
            timeout=config.source_timeout,
        )

        return cls(
            source=source,
            index_factory=index_factory,
            locales=config.locales,
            page_size=config.page_size,
            link_depth=config.link_depth,
            dry_run=dry_run,
        )

    async def sync(self, content_types: Union[str, Sequence[str]], index_name: str,
                   observer: Optional[Observer] = None,
                   entry_id: Optional[str] = None) -> Dict[str, SyncOutcome]:
        """
        Sync content types into one index.

        Content types run concurrently and share one reconciler, so the index
        is scanned once. A failing content type does not stop the others.

        Args:
            content_types: One content type or a sequence of them
            index_name: Destination index name (without prefix)
            observer: Called with each content type's flat documents before indexing
            entry_id: Restrict the sync to one record id; deletions are suppressed

        Returns:
            Outcome per content type
        """
        if isinstance(content_types, str):
            content_types = [content_types]

        index = self.index_factory(index_name)
        self._indexes.append(index)
        reconciler = IndexReconciler(index, dry_run=self.dry_run)

        outcomes = await asyncio.gather(*(
            self._sync_content_type(content_type, reconciler, observer, entry_id)
            for content_type in content_types
        ))
        return {outcome.content_type: outcome for outcome in outcomes}

    async def _sync_content_type(self, content_type: str, reconciler: IndexReconciler,
                                 observer: Optional[Observer], entry_id: Optional[str]) -> SyncOutcome:
        outcome = SyncOutcome(content_type=content_type)
        fetcher = SourceFetcher(self.source, self.flattener, self.page_size, self.link_depth)

        try:
            documents = await fetcher.fetch_all(content_type, entry_id)
            outcome.documents = len(documents)
            self._notify(observer, content_type, documents)
            outcome.object_ids = await reconciler.reconcile(
                documents, content_type, is_single_entry=bool(entry_id)
            )
        except BatchWriteError as e:
            logging.error(f"Failed to index type {content_type}: {e}")
            outcome.object_ids = e.object_ids
            outcome.error = e
            return outcome
        except Exception as e:
            logging.error(f"Failed to sync type {content_type}: {e}")
            outcome.error = e
            return outcome

        logging.info(f"Indexed type: {content_type} ({outcome.documents} documents, {len(outcome.object_ids)} objects written)")
        return outcome

    @staticmethod
    def _notify(observer: Optional[Observer], content_type: str, documents: List[FlatDocument]) -> None:
        """Hand the documents to the observer; its failures never reach indexing."""
        if observer is None:
            return
        try:
            observer(copy.deepcopy(documents))
        except Exception:
            logging.exception(f"Observer failed for type {content_type}")

    async def aclose(self) -> None:
        """Close the source and every index created by this orchestrator."""
        for index in self._indexes:
            await index.aclose()
        self._indexes = []
        await self.source.aclose()
