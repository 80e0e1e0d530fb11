"""
Algolia document index for contentsync.

This module talks to the Algolia REST API over httpx: browsing the full index,
batch writes and ad-hoc queries.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional
from urllib.parse import quote, urlencode

import httpx

from ..errors import DocumentIndexError
from ..models import FlatDocument
from .base import BaseIndex


class AlgoliaIndex(BaseIndex):
    """
    Document index stored in an Algolia index.
    """

    def __init__(self, application_id: str, api_key: str, index_name: str,
                 batch_size: int = 1000, timeout: float = 30.0,
                 client: Optional[httpx.AsyncClient] = None, base_url: Optional[str] = None):
        """
        Initialize the Algolia index.

        Args:
            application_id: Algolia application id
            api_key: Admin (write) API key
            index_name: Full index name, prefix included
            batch_size: Maximum number of operations per batch request
            timeout: Request timeout in seconds
            client: Optional preconfigured HTTP client
            base_url: Override of the API host
        """
        if not application_id or not api_key:
            raise ValueError("Algolia application id and API key are required")

        self.name = index_name
        self.batch_size = max(1, batch_size)
        self.base_url = (base_url or f"https://{application_id}.algolia.net").rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "X-Algolia-Application-Id": application_id,
            "X-Algolia-API-Key": api_key,
        }
        self._index_path = f"/1/indexes/{quote(index_name, safe='')}"

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send a POST request to the Algolia API.

        Raises:
            DocumentIndexError: If the request fails or returns an error status
        """
        try:
            response = await self.client.post(f"{self.base_url}{path}", json=body, headers=self._headers)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise DocumentIndexError(f"Algolia request to {path} failed: {e}", status_code=e.response.status_code) from e
        except httpx.RequestError as e:
            raise DocumentIndexError(f"Failed to connect to Algolia: {e}") from e
        except ValueError as e:
            raise DocumentIndexError(f"Invalid JSON in Algolia response: {e}") from e

    async def full_scan(self) -> AsyncIterator[FlatDocument]:
        """
        Browse every document with cursor pagination.

        An index that does not exist yet is scanned as empty; Algolia creates
        it on the first write.
        """
        body: Dict[str, Any] = {
            "params": urlencode({
                "hitsPerPage": 1000,
                "attributesToHighlight": "[]",
                "attributesToSnippet": "[]",
            })
        }
        while True:
            try:
                page = await self._post(f"{self._index_path}/browse", body)
            except DocumentIndexError as e:
                if e.status_code == 404 and "cursor" not in body:
                    logging.info(f"Index {self.name} does not exist yet, scanning as empty")
                    return
                raise
            for hit in page.get("hits", []):
                yield hit
            cursor = page.get("cursor")
            if not cursor:
                break
            body = {"cursor": cursor}

    async def _batch(self, action: str, bodies: List[Dict[str, Any]]) -> List[str]:
        object_ids: List[str] = []
        for start in range(0, len(bodies), self.batch_size):
            chunk = bodies[start:start + self.batch_size]
            result = await self._post(
                f"{self._index_path}/batch",
                {"requests": [{"action": action, "body": body} for body in chunk]},
            )
            object_ids.extend(result.get("objectIDs", []))
        logging.debug(f"Algolia {action} on {self.name}: {len(object_ids)} objects")
        return object_ids

    async def batch_create(self, documents: List[FlatDocument]) -> List[str]:
        return await self._batch("addObject", documents)

    async def batch_upsert(self, documents: List[FlatDocument]) -> List[str]:
        return await self._batch("updateObject", documents)

    async def batch_delete(self, object_ids: List[str]) -> List[str]:
        return await self._batch("deleteObject", [{"objectID": object_id} for object_id in object_ids])

    async def search(self, query: str, restrict_attributes: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        result = await self._post(f"{self._index_path}/query", {"params": self._query_params(query, restrict_attributes)})
        return result.get("hits", [])

    async def get_objects(self, queries: List[str]) -> List[List[Dict[str, Any]]]:
        """
        Run several ``id``/``locale`` lookups in one multi-query request.

        Args:
            queries: Query strings such as ``"<id> <locale>"``

        Returns:
            One list of hits per query, in input order
        """
        if not queries:
            return []

        requests = [
            {"indexName": self.name, "params": self._query_params(query, ["id", "locale"])}
            for query in queries
        ]
        result = await self._post("/1/indexes/*/queries", {"requests": requests})
        return [entry.get("hits", []) for entry in result.get("results", [])]

    @staticmethod
    def _query_params(query: str, restrict_attributes: Optional[List[str]]) -> str:
        params: Dict[str, Any] = {"query": query}
        if restrict_attributes:
            params["restrictSearchableAttributes"] = json.dumps(restrict_attributes)
        return urlencode(params)

    async def aclose(self) -> None:
        await self.client.aclose()
