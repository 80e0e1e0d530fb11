"""Destination search indexes that receive flat documents."""

from .base import BaseIndex
from .algolia import AlgoliaIndex
from .duckdb_index import DuckDBIndex

__all__ = ["BaseIndex", "AlgoliaIndex", "DuckDBIndex"]
