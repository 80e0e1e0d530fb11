"""
Contentful content source for contentsync.

This module provides an HTTP client for the Contentful Delivery (or Preview)
API and the parser that converts its JSON responses into SourceRecord objects,
resolving linked entries and assets from the response's ``includes``.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..errors import FetchError
from ..models import FieldValue, LinkedRecord, ListValue, ScalarValue, SourcePage, SourceQuery, SourceRecord
from .base import BaseSource


class ContentfulEntryParser:
    """
    Converts Contentful response payloads into tagged SourceRecord trees.

    Links are resolved against the items and includes of the same response.
    A link to a record that was not included, to a record already on the
    current resolution path, or lying deeper than ``max_depth`` levels below
    the top-level entry is kept as an unresolved LinkedRecord.
    """

    def __init__(self, payload: Dict[str, Any], max_depth: Optional[int] = 2):
        """
        Initialize the parser for one response.

        Args:
            payload: Decoded JSON body of an entries request
            max_depth: Link levels resolved below each item (the ``include``
                value of the request); None resolves without a depth limit
        """
        self.payload = payload
        self.max_depth = max_depth
        self._lookup: Dict[Tuple[str, str], Dict[str, Any]] = {}

        includes = payload.get("includes") or {}
        for link_type in ("Entry", "Asset"):
            for raw in includes.get(link_type) or []:
                self._register(link_type, raw)
        for raw in payload.get("items") or []:
            self._register(self._sys(raw).get("type", "Entry"), raw)

    def parse_page(self) -> SourcePage:
        """Parse the whole payload into a SourcePage."""
        items = [self.parse_entry(raw) for raw in self.payload.get("items") or []]
        return SourcePage(
            items=items,
            total=self.payload.get("total", len(items)),
            skip=self.payload.get("skip", 0),
            limit=self.payload.get("limit", len(items)),
        )

    def parse_entry(self, raw: Dict[str, Any], path: Tuple[str, ...] = ()) -> SourceRecord:
        """
        Parse one raw entry or asset.

        Args:
            raw: Raw record with ``sys`` and ``fields``
            path: Ids of the records currently being resolved

        Returns:
            The parsed record
        """
        sys = self._sys(raw)
        record_id = sys.get("id")
        if not record_id:
            raise ValueError("Record without sys.id in source response")

        path = path + (record_id,)
        fields: Dict[str, Dict[str, FieldValue]] = {}
        for name, localized in (raw.get("fields") or {}).items():
            if not isinstance(localized, dict) or "sys" in localized:
                # Single-locale responses deliver the bare value
                localized = {"": localized}
            fields[name] = {
                code: self._parse_value(value, path)
                for code, value in localized.items()
            }

        return SourceRecord(
            id=record_id,
            type=sys.get("type", "Entry"),
            content_type=self._link_id(sys.get("contentType")),
            created_at=sys.get("createdAt"),
            updated_at=sys.get("updatedAt"),
            revision=sys.get("revision"),
            space=self._link_id(sys.get("space")),
            fields=fields,
        )

    def _parse_value(self, value: Any, path: Tuple[str, ...]) -> FieldValue:
        if isinstance(value, list):
            return ListValue(items=[self._parse_value(item, path) for item in value])

        if isinstance(value, dict) and self._sys(value).get("type") == "Link":
            sys = self._sys(value)
            link_type = sys.get("linkType", "Entry")
            target_id = sys.get("id", "")
            target = self._lookup.get((link_type, target_id))
            # path holds the top-level item, so len(path) is the depth of the link target
            too_deep = self.max_depth is not None and len(path) > self.max_depth
            if target is None or target_id in path or too_deep:
                return LinkedRecord(record_id=target_id, link_type=link_type)
            return LinkedRecord(
                record_id=target_id,
                link_type=link_type,
                record=self.parse_entry(target, path),
            )

        return ScalarValue(value=value)

    def _register(self, link_type: str, raw: Dict[str, Any]) -> None:
        record_id = self._sys(raw).get("id")
        if record_id:
            self._lookup[(link_type, record_id)] = raw

    @staticmethod
    def _sys(raw: Any) -> Dict[str, Any]:
        if isinstance(raw, dict) and isinstance(raw.get("sys"), dict):
            return raw["sys"]
        return {}

    @classmethod
    def _link_id(cls, link: Any) -> Optional[str]:
        return cls._sys(link).get("id")


class ContentfulSource(BaseSource):
    """
    Content source backed by the Contentful Delivery or Preview API.
    """

    def __init__(self, access_token: str, space: str, host: str = "cdn.contentful.com",
                 environment: str = "master", timeout: float = 30.0,
                 client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the Contentful source.

        Args:
            access_token: Delivery or preview API token
            space: Space id
            host: API host; ``preview.contentful.com`` returns drafts
            environment: Environment id
            timeout: Request timeout in seconds
            client: Optional preconfigured HTTP client
        """
        if not access_token or not space:
            raise ValueError("Contentful access token and space are required")

        self.space = space
        self.environment = environment
        self.base_url = f"https://{host}"
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Authorization": f"Bearer {access_token}"}

        logging.info(f"Initialized Contentful source for space {space} on {host}")

    async def search(self, query: SourceQuery) -> SourcePage:
        """
        Request one page of entries.

        Raises:
            FetchError: If the request fails or returns an error status
        """
        url = f"{self.base_url}/spaces/{self.space}/environments/{self.environment}/entries"
        params = self._build_params(query)

        try:
            response = await self.client.get(url, params=params, headers=self._headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(f"Contentful request failed: {e}") from e
        except httpx.RequestError as e:
            raise FetchError(f"Failed to connect to Contentful: {e}") from e
        except ValueError as e:
            raise FetchError(f"Invalid JSON in Contentful response: {e}") from e

        page = ContentfulEntryParser(payload, max_depth=query.include).parse_page()
        logging.debug(f"Fetched {len(page.items)} '{query.content_type}' entries (skip={query.skip}, total={page.total})")
        return page

    @staticmethod
    def _build_params(query: SourceQuery) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "content_type": query.content_type,
            "locale": query.locale,
            "include": query.include,
            "skip": query.skip,
            "limit": query.limit,
        }
        if query.entry_id:
            params["sys.id"] = query.entry_id
        return params

    async def aclose(self) -> None:
        await self.client.aclose()
