from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any, Protocol

from facility_registry.clients.baas_client import BaasClient
from facility_registry.core.exceptions import DocumentNotFoundError
from facility_registry.core.filters import QueryConstraint, apply_constraints
from facility_registry.core.retry import RetryPolicy

logger = logging.getLogger(__name__)

_PAGING_METHODS = frozenset({"limit", "cursorAfter"})


class DocumentBackend(Protocol):
    async def list_documents(
        self,
        collection_id: str,
        constraints: Sequence[QueryConstraint] = (),
        limit: int | None = None,
    ) -> tuple[list[dict[str, Any]], int]: ...

    async def get_document(self, collection_id: str, document_id: str) -> dict[str, Any] | None: ...

    async def create_document(self, collection_id: str, data: dict[str, Any]) -> dict[str, Any]: ...

    async def update_document(self, collection_id: str, document_id: str, data: dict[str, Any]) -> dict[str, Any]: ...


class RemoteDocumentBackend:
    """Reads whole collections page by page using cursor pagination."""

    def __init__(self, client: BaasClient, page_size: int = 100, retry_policy: RetryPolicy | None = None) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._client = client
        self._page_size = page_size
        self._retry_policy = retry_policy or RetryPolicy()

    async def list_documents(
        self,
        collection_id: str,
        constraints: Sequence[QueryConstraint] = (),
        limit: int | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        base = [item for item in constraints if item.method not in _PAGING_METHODS]
        page_size = min(self._page_size, limit) if limit else self._page_size
        documents: list[dict[str, Any]] = []
        total: int | None = None
        cursor: str | None = None
        while True:
            queries = [*base, QueryConstraint.limit(page_size)]
            if cursor:
                queries.append(QueryConstraint.cursor_after(cursor))
            page, page_total = await self._retry_policy.run(
                lambda: self._client.list_documents(collection_id, queries)
            )
            if total is None:
                total = page_total
            if not page:
                break
            documents.extend(page)
            if limit and len(documents) >= limit:
                documents = documents[:limit]
                break
            if len(page) < page_size or len(documents) >= total:
                break
            cursor = page[-1].get("$id")
            if not cursor:
                break
        logger.info(
            "backend_documents_listed",
            extra={"collection_id": collection_id, "document_count": len(documents), "total": total},
        )
        return documents, total if total is not None else len(documents)

    async def get_document(self, collection_id: str, document_id: str) -> dict[str, Any] | None:
        return await self._client.get_document(collection_id, document_id)

    async def create_document(self, collection_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._client.create_document(collection_id, data)

    async def update_document(self, collection_id: str, document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return await self._client.update_document(collection_id, document_id, data)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryDocumentBackend:
    """Process-local document store with the same query semantics as the hosted backend."""

    def __init__(self, seed: dict[str, Iterable[dict[str, Any]]] | None = None) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        for collection_id, documents in (seed or {}).items():
            for document in documents:
                stored = copy.deepcopy(document)
                document_id = str(stored.setdefault("$id", uuid.uuid4().hex))
                self._collections.setdefault(collection_id, {})[document_id] = stored

    async def list_documents(
        self,
        collection_id: str,
        constraints: Sequence[QueryConstraint] = (),
        limit: int | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        items = list(self._collections.get(collection_id, {}).values())
        matched = [item for item in items if apply_constraints(item, constraints)]
        for constraint in reversed(constraints):
            if constraint.method in ("orderAsc", "orderDesc"):
                matched.sort(
                    key=lambda item, attr=constraint.attribute: str(item.get(attr) or ""),
                    reverse=constraint.method == "orderDesc",
                )
        total = len(matched)
        if limit:
            matched = matched[:limit]
        return [copy.deepcopy(item) for item in matched], total

    async def get_document(self, collection_id: str, document_id: str) -> dict[str, Any] | None:
        found = self._collections.get(collection_id, {}).get(document_id)
        return copy.deepcopy(found) if found is not None else None

    async def create_document(self, collection_id: str, data: dict[str, Any]) -> dict[str, Any]:
        now = _now_iso()
        document = {**copy.deepcopy(data), "$id": uuid.uuid4().hex, "$createdAt": now, "$updatedAt": now}
        self._collections.setdefault(collection_id, {})[document["$id"]] = document
        return copy.deepcopy(document)

    async def update_document(self, collection_id: str, document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        existing = self._collections.get(collection_id, {}).get(document_id)
        if existing is None:
            raise DocumentNotFoundError(f"{collection_id}/{document_id}")
        existing.update(copy.deepcopy(data))
        existing["$updatedAt"] = _now_iso()
        return copy.deepcopy(existing)
