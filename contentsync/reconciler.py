"""
Index reconciler for contentsync.

Diffs freshly flattened documents against a snapshot of the destination index
and applies the resulting create/update/delete sets as batch writes.

The snapshot is scanned at most once per reconciler: the first caller starts
the scan and every later caller, concurrent or not, awaits the same result.
A failed scan stays failed for the lifetime of the reconciler. Successful
writes are folded back into the cached snapshot.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from .errors import BatchWriteError, IndexScanError
from .index import BaseIndex
from .models import DiffResult, FlatDocument, compact, document_key, documents_equal


class IndexReconciler:
    """
    Keeps one destination index in sync with the flat documents of each content type.
    """

    def __init__(self, index: BaseIndex, dry_run: bool = False):
        """
        Initialize the reconciler.

        Args:
            index: Destination index
            dry_run: Compute and log diffs without writing
        """
        self.index = index
        self.dry_run = dry_run
        self._snapshot: Optional[asyncio.Future] = None

    async def get_snapshot(self) -> List[FlatDocument]:
        """
        Return every document currently in the index, scanning it on first use.

        Raises:
            IndexScanError: If the scan failed (now or on an earlier call)
        """
        if self._snapshot is None:
            self._snapshot = asyncio.ensure_future(self._scan_index())
        return await asyncio.shield(self._snapshot)

    async def _scan_index(self) -> List[FlatDocument]:
        try:
            hits = [hit async for hit in self.index.full_scan()]
        except Exception as e:
            logging.error(f"Full scan of index {self.index.name} failed: {e}")
            raise IndexScanError(f"Full scan of index {self.index.name} failed: {e}") from e

        logging.info(f"Scanned {len(hits)} documents from index {self.index.name}")
        return hits

    async def compute_diff(self, documents: List[FlatDocument], content_type: Optional[str],
                           is_single_entry: bool = False) -> DiffResult:
        """
        Classify documents as created, updated or deleted.

        Matched documents receive the ``objectID`` of their index twin.

        Args:
            documents: Flat documents of one content type
            content_type: Content type being synced; deletions are scoped to it
            is_single_entry: Suppress deletions (the sync fetched one record only)

        Returns:
            The diff for this content type
        """
        hits = await self.get_snapshot()
        entries_by_key = {document_key(document): document for document in documents}
        matched = set()
        result = DiffResult()

        for hit in hits:
            if content_type and hit.get("contentType") != content_type:
                continue

            key = document_key(hit)
            entry = entries_by_key.get(key)

            if entry is None or key in matched:
                if content_type and not is_single_entry:
                    result.deleted.append(hit["objectID"])
                continue

            # Same key but a different locale is a hash collision, not a match
            if entry.get("locale") != hit.get("locale"):
                continue

            matched.add(key)
            entry["objectID"] = hit["objectID"]
            if not documents_equal(entry, hit):
                result.updated.append(entry)

        result.created = [document for document in documents if not document.get("objectID")]

        logging.info(f"Diff for '{content_type}' on {self.index.name}: {result.summary()}")
        return result

    async def apply(self, diff: DiffResult) -> List[str]:
        """
        Write a diff to the index with three concurrent batch calls.

        Created documents receive their new ``objectID``.

        Returns:
            All identifiers touched by the three batches

        Raises:
            BatchWriteError: After all batches finished, if any of them failed
        """
        if self.dry_run:
            logging.info(f"Dry run, skipping writes to {self.index.name}: {diff.summary()}")
            return []

        batches = {
            "create": (self.index.batch_create, [compact(document) for document in diff.created]),
            "update": (self.index.batch_upsert, [compact(document) for document in diff.updated]),
            "delete": (self.index.batch_delete, list(diff.deleted)),
        }
        names = list(batches)
        results = await asyncio.gather(
            *(self._run_batch(name, *batches[name]) for name in names),
            return_exceptions=True,
        )

        object_ids: List[str] = []
        failures: Dict[str, BaseException] = {}
        for name, outcome in zip(names, results):
            if isinstance(outcome, BaseException):
                logging.error(f"Batch {name} on {self.index.name} failed: {outcome}")
                failures[name] = outcome
                continue
            if name == "create":
                for document, object_id in zip(diff.created, outcome):
                    document["objectID"] = object_id
            object_ids.extend(outcome)

        await self._update_snapshot(diff, failures)
        if failures:
            raise BatchWriteError(failures, object_ids)
        return object_ids

    async def _update_snapshot(self, diff: DiffResult, failures: Dict[str, BaseException]) -> None:
        """Fold successful writes into the cached snapshot so later diffs see them."""
        hits = await self.get_snapshot()

        replaced = {}
        if "create" not in failures:
            replaced.update(
                (document["objectID"], compact(document)) for document in diff.created if document.get("objectID")
            )
        if "update" not in failures:
            replaced.update((document["objectID"], compact(document)) for document in diff.updated)
        removed = set() if "delete" in failures else set(diff.deleted)

        kept = [
            hit for hit in hits
            if hit.get("objectID") not in removed and hit.get("objectID") not in replaced
        ]
        hits[:] = kept + list(replaced.values())

    @staticmethod
    async def _run_batch(name: str, call: Callable[[list], Awaitable[List[str]]], items: list) -> List[str]:
        if not items:
            return []
        object_ids = await call(items)
        logging.debug(f"Batch {name}: {len(object_ids)} objects")
        return list(object_ids)

    async def reconcile(self, documents: List[FlatDocument], content_type: Optional[str],
                        is_single_entry: bool = False) -> List[str]:
        """
        Diff documents against the index and apply the result.

        Args:
            documents: Flat documents of one content type
            content_type: Content type being synced
            is_single_entry: Suppress deletions

        Returns:
            All identifiers touched by the batch writes
        """
        diff = await self.compute_diff(documents, content_type, is_single_entry)
        return await self.apply(diff)
