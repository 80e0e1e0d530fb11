"""Data models for contentsync."""

from .source import ScalarValue, LinkedRecord, ListValue, FieldValue, SourceRecord, SourceQuery, SourcePage
from .documents import NO_VALUE, FlatDocument, DiffResult, compact, documents_equal, document_key

__all__ = [
    "ScalarValue",
    "LinkedRecord",
    "ListValue",
    "FieldValue",
    "SourceRecord",
    "SourceQuery",
    "SourcePage",
    "NO_VALUE",
    "FlatDocument",
    "DiffResult",
    "compact",
    "documents_equal",
    "document_key",
]
