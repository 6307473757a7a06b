from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

import httpx

from facility_registry.core.exceptions import BackendUnavailableError, DocumentNotFoundError
from facility_registry.core.filters import QueryConstraint

logger = logging.getLogger(__name__)


class BaasClient:
    """Thin async client for the hosted backend's REST API (documents and functions)."""

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        database_id: str,
        api_key: str | None = None,
        timeout_seconds: float = 5.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._project_id = project_id
        self._database_id = database_id
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    async def list_documents(
        self,
        collection_id: str,
        queries: Sequence[QueryConstraint] = (),
    ) -> tuple[list[dict[str, Any]], int]:
        params = [("queries[]", query.to_query_string()) for query in queries]
        payload = await self._request("GET", self._documents_path(collection_id), params=params)
        documents = payload.get("documents", [])
        return documents, int(payload.get("total", len(documents)))

    async def get_document(self, collection_id: str, document_id: str) -> dict[str, Any] | None:
        try:
            return await self._request("GET", f"{self._documents_path(collection_id)}/{document_id}")
        except DocumentNotFoundError:
            return None

    async def create_document(
        self,
        collection_id: str,
        data: dict[str, Any],
        document_id: str = "unique()",
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            self._documents_path(collection_id),
            json_body={"documentId": document_id, "data": data},
        )

    async def update_document(self, collection_id: str, document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "PATCH",
            f"{self._documents_path(collection_id)}/{document_id}",
            json_body={"data": data},
        )

    async def create_execution(self, function_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/functions/{function_id}/executions",
            json_body={"body": json.dumps(body, ensure_ascii=False), "async": False},
        )

    def _documents_path(self, collection_id: str) -> str:
        return f"/databases/{self._database_id}/collections/{collection_id}/documents"

    def _headers(self) -> dict[str, str]:
        headers = {"X-Appwrite-Project": self._project_id, "Content-Type": "application/json"}
        if self._api_key:
            headers["X-Appwrite-Key"] = self._api_key
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: list[tuple[str, str]] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._endpoint}{path}"
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.request(method, url, params=params, json=json_body, headers=self._headers())
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("baas_request_timeout", extra={"method": method, "path": path})
            raise BackendUnavailableError("backend request timed out") from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            if status_code == 404:
                raise DocumentNotFoundError(path) from exc
            logger.warning("baas_request_failed", extra={"method": method, "path": path, "status_code": status_code})
            raise BackendUnavailableError(f"backend returned HTTP {status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("baas_request_failed", extra={"method": method, "path": path})
            raise BackendUnavailableError("backend request failed") from exc
        return response.json()
