"""
Flat document helpers for contentsync.

A flat document is a plain ``dict`` ready to be written to the search index:
one per (record, locale) pair, with every field resolved to a single locale.
This module holds the pieces shared by the flattener and the reconciler: the
"no value" marker, compaction, equality and the lookup key.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, List

FlatDocument = Dict[str, Any]


class _NoValue:
    """Marker for a field that has no value in any code of a locale group."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_NoValue, ())


NO_VALUE = _NoValue()


def compact(value: Any) -> Any:
    """
    Remove ``NO_VALUE`` entries from a document, recursively.

    Args:
        value: A document, list or scalar

    Returns:
        A copy of dicts and lists without marker entries; scalars unchanged
    """
    if isinstance(value, dict):
        return {key: compact(item) for key, item in value.items() if item is not NO_VALUE}
    if isinstance(value, list):
        return [compact(item) for item in value if item is not NO_VALUE]
    return value


def documents_equal(left: FlatDocument, right: FlatDocument) -> bool:
    """Compare two documents, treating ``NO_VALUE`` fields as absent."""
    return compact(left) == compact(right)


def document_key(document: FlatDocument) -> str:
    """
    Build the lookup key of a document from its ``id`` and ``locale``.

    The same key is computed for incoming flat documents and for documents
    already in the index, so the two can be matched.
    """
    digest = hashlib.sha256()
    digest.update(str(document.get("id") or "").encode("utf-8"))
    digest.update(str(document.get("locale") or "").encode("utf-8"))
    return digest.hexdigest()


@dataclass
class DiffResult:
    """The create/update/delete sets computed for one content type."""

    created: List[FlatDocument] = field(default_factory=list)
    updated: List[FlatDocument] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.created or self.updated or self.deleted)

    def summary(self) -> str:
        return f"{len(self.created)} created, {len(self.updated)} updated, {len(self.deleted)} deleted"
