"""
Locale flattener for contentsync.

Turns one hierarchical, multi-locale source record into one flat document per
configured locale group. Linked records are resolved inline to the same locale
group, and source bookkeeping (space, revision, record kind) is dropped.
"""

import copy
import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .models import NO_VALUE, FlatDocument, LinkedRecord, ListValue, ScalarValue, SourceRecord

LocaleGroup = List[str]
LocaleSpec = Sequence[Union[str, Sequence[str]]]


def normalize_locales(locales: Optional[LocaleSpec]) -> List[LocaleGroup]:
    """
    Normalize a locale specification to a list of non-empty locale groups.

    A bare string is accepted as a group of one code. A group whose first code
    repeats the first code of an earlier group is dropped with a warning.

    Args:
        locales: Locale groups, e.g. ``[["en-US", "en"], ["de-DE", "de"]]``

    Returns:
        List of locale groups in configured order
    """
    groups = []
    seen = set()
    for group in locales or []:
        if isinstance(group, str):
            group = [group]
        codes = [code for code in group if code]
        if not codes:
            continue
        if codes[0] in seen:
            logging.warning(f"Ignoring locale group {codes}: locale {codes[0]} is already used by an earlier group")
            continue
        seen.add(codes[0])
        groups.append(codes)
    return groups


class LocaleFlattener:
    """
    Flattens source records into per-locale flat documents.

    Within a locale group the first code that has a value wins; the group's
    first code becomes the document's ``locale`` tag.
    """

    def __init__(self, locales: Optional[LocaleSpec] = None):
        """
        Initialize the flattener.

        Args:
            locales: Locale specification; empty or None means the source
                delivers a single locale per field
        """
        self.locales = normalize_locales(locales)

    def flatten(self, record: SourceRecord) -> Iterator[FlatDocument]:
        """
        Produce the flat documents for one top-level record.

        Args:
            record: The source record to flatten

        Yields:
            One flat document per locale group, or a single document when no
            locales are configured
        """
        envelope = self._identity_envelope(record)
        path = (record.id,)

        if not self.locales:
            document = dict(envelope)
            document.update(self._resolve_fields(record, None, path))
            yield document
            return

        for group in self.locales:
            document = dict(envelope)
            document.update(self._resolve_fields(record, group, path))
            document["locale"] = group[0]
            yield document

    def flatten_all(self, records: Sequence[SourceRecord]) -> List[FlatDocument]:
        """Flatten a batch of records into one list of documents."""
        documents = []
        for record in records:
            documents.extend(self.flatten(record))
        logging.debug(f"Flattened {len(records)} records into {len(documents)} documents")
        return documents

    def _identity_envelope(self, record: SourceRecord) -> Dict[str, Any]:
        """Keep only the identity of a record; space, revision and kind are dropped."""
        envelope: Dict[str, Any] = {"id": record.id}
        if record.created_at is not None:
            envelope["createdAt"] = record.created_at
        if record.updated_at is not None:
            envelope["updatedAt"] = record.updated_at
        if record.content_type is not None:
            envelope["contentType"] = record.content_type
        return envelope

    def _resolve_fields(self, record: SourceRecord, group: Optional[LocaleGroup],
                        path: Tuple[str, ...]) -> Dict[str, Any]:
        resolved = {}
        for name, localized in record.fields.items():
            value = self._select_locale(localized, group)
            resolved[name] = NO_VALUE if value is None else self._render(value, group, path)
        return resolved

    @staticmethod
    def _select_locale(localized: Dict[str, Any], group: Optional[LocaleGroup]) -> Any:
        """Pick the value for a locale group; first defined code wins."""
        if group is None:
            codes = list(localized)
        else:
            codes = group

        for code in codes:
            value = localized.get(code)
            if value is None:
                continue
            if isinstance(value, ScalarValue) and value.value is None:
                continue
            return value
        return None

    def _render(self, value: Any, group: Optional[LocaleGroup], path: Tuple[str, ...]) -> Any:
        if isinstance(value, ScalarValue):
            return copy.deepcopy(value.value)
        if isinstance(value, ListValue):
            return [self._render(item, group, path) for item in value.items]
        if isinstance(value, LinkedRecord):
            return self._render_link(value, group, path)
        raise TypeError(f"Unexpected field value type: {type(value).__name__}")

    def _render_link(self, link: LinkedRecord, group: Optional[LocaleGroup],
                     path: Tuple[str, ...]) -> Any:
        nested = link.record
        # Unresolved links and records already on the path stay as stubs
        if nested is None or nested.id in path:
            return {"id": link.record_id}

        document = self._resolve_fields(nested, group, path + (nested.id,))
        if group is not None:
            document["locale"] = group[0]
        return document
