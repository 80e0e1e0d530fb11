"""Content sources that deliver records to be indexed."""

from .base import BaseSource
from .contentful import ContentfulSource, ContentfulEntryParser
from .mock import MockSource

__all__ = ["BaseSource", "ContentfulSource", "ContentfulEntryParser", "MockSource"]
