"""
DuckDB document index for contentsync.

This module stores flat documents in a local DuckDB database. It implements
the same interface as the remote index, which makes it useful for local runs,
inspecting what a sync would write, and tests (``:memory:``).
"""

import duckdb
import json
import logging
import uuid
from typing import Any, AsyncIterator, Dict, List, Optional

from ..models import FlatDocument
from .base import BaseIndex


class DuckDBIndex(BaseIndex):
    """
    Document index kept in a DuckDB table.

    Several logical indexes can share one database file; rows are scoped by
    ``index_name``.
    """

    def __init__(self, index_name: str, db_path: str = "contentsync.db"):
        """
        Initialize the DuckDB index.

        Args:
            index_name: Logical index name, prefix included
            db_path: Path to the DuckDB database file, or ``:memory:``
        """
        self.name = index_name
        self.db_path = db_path
        self.connection = None

    def connect(self):
        """Establish connection to the database and create the table."""
        self.connection = duckdb.connect(self.db_path)
        self.initialize_database()

    def disconnect(self):
        """Close the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()

    def initialize_database(self):
        """
        Create the documents table if it doesn't exist.
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                index_name VARCHAR NOT NULL,
                object_id VARCHAR NOT NULL,
                body VARCHAR NOT NULL,
                PRIMARY KEY (index_name, object_id)
            )
        """)

    def _get_connection(self):
        if not self.connection:
            self.connect()
        return self.connection

    async def full_scan(self) -> AsyncIterator[FlatDocument]:
        rows = self._get_connection().execute("""
            SELECT body FROM documents
            WHERE index_name = ?
            ORDER BY object_id
        """, [self.name]).fetchall()

        for row in rows:
            yield json.loads(row[0])

    async def batch_create(self, documents: List[FlatDocument]) -> List[str]:
        """
        Add new documents with generated identifiers.

        Args:
            documents: Documents without ``objectID``

        Returns:
            The generated objectIDs, in input order
        """
        object_ids = [uuid.uuid4().hex for _ in documents]
        self._write([dict(document, objectID=object_id) for document, object_id in zip(documents, object_ids)])
        return object_ids

    async def batch_upsert(self, documents: List[FlatDocument]) -> List[str]:
        """
        Replace documents by ``objectID``, inserting missing ones.

        Raises:
            ValueError: If a document has no objectID
        """
        if any(not document.get("objectID") for document in documents):
            raise ValueError("Every document passed to batch_upsert needs an objectID")

        self._write(documents)
        return [document["objectID"] for document in documents]

    def _write(self, documents: List[FlatDocument]) -> None:
        if not documents:
            return

        self._get_connection().executemany("""
            INSERT OR REPLACE INTO documents (index_name, object_id, body)
            VALUES (?, ?, ?)
        """, [
            [self.name, document["objectID"], json.dumps(document, sort_keys=True, ensure_ascii=False)]
            for document in documents
        ])

    async def batch_delete(self, object_ids: List[str]) -> List[str]:
        if not object_ids:
            return []

        self._get_connection().executemany("""
            DELETE FROM documents WHERE index_name = ? AND object_id = ?
        """, [[self.name, object_id] for object_id in object_ids])
        return list(object_ids)

    async def search(self, query: str, restrict_attributes: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """
        Find documents containing every whitespace-separated term.

        Matching is a case-insensitive substring test against the whole JSON
        body, or only against ``restrict_attributes`` when given.
        """
        terms = [term.lower() for term in query.split()]
        sql = "SELECT body FROM documents WHERE index_name = ?"
        params: List[Any] = [self.name]
        for term in terms:
            sql += " AND lower(body) LIKE ? ESCAPE '\\'"
            params.append(f"%{self._escape_like(term)}%")

        hits = [json.loads(row[0]) for row in self._get_connection().execute(sql, params).fetchall()]
        if restrict_attributes:
            hits = [hit for hit in hits if self._matches_attributes(hit, terms, restrict_attributes)]
        return hits

    @staticmethod
    def _escape_like(term: str) -> str:
        return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

    @staticmethod
    def _matches_attributes(hit: Dict[str, Any], terms: List[str], attributes: List[str]) -> bool:
        values = [str(hit.get(attribute, "")).lower() for attribute in attributes]
        return all(any(term in value for value in values) for term in terms)

    def count(self) -> int:
        """Count the documents in this index."""
        result = self._get_connection().execute("""
            SELECT COUNT(*) FROM documents WHERE index_name = ?
        """, [self.name]).fetchone()
        return result[0] if result else 0

    async def aclose(self) -> None:
        self.disconnect()
        logging.debug(f"Closed DuckDB index {self.name}")
