from __future__ import annotations

import json

import httpx
import pytest

from facility_registry.clients.baas_client import BaasClient
from facility_registry.core.exceptions import BackendUnavailableError, DocumentNotFoundError
from facility_registry.core.filters import QueryConstraint, compile_filter
from facility_registry.core.models import FilterSpecification
from facility_registry.core.retry import RetryPolicy
from facility_registry.repositories.backend import InMemoryDocumentBackend, RemoteDocumentBackend
from facility_registry.repositories.sample_data import SAMPLE_FACILITY_DOCUMENTS

PAGED_DOCUMENTS = [{"$id": f"fac_{index:03d}"} for index in range(5)]


def _paged_handler(calls: list[list[dict]]):
    def handler(request: httpx.Request) -> httpx.Response:
        queries = [json.loads(item) for item in request.url.params.get_list("queries[]")]
        calls.append(queries)
        limit = next(query["values"][0] for query in queries if query["method"] == "limit")
        cursor = next((query["values"][0] for query in queries if query["method"] == "cursorAfter"), None)
        start = 0 if cursor is None else [doc["$id"] for doc in PAGED_DOCUMENTS].index(cursor) + 1
        return httpx.Response(
            200,
            json={"total": len(PAGED_DOCUMENTS), "documents": PAGED_DOCUMENTS[start : start + limit]},
        )

    return handler


def _client(handler) -> BaasClient:
    transport = httpx.MockTransport(handler)
    return BaasClient(
        endpoint="https://baas.example.com/v1",
        project_id="registry",
        database_id="main",
        client_factory=lambda: httpx.AsyncClient(transport=transport, timeout=5.0),
    )


@pytest.mark.asyncio
async def test_remote_backend_follows_cursor_pages() -> None:
    calls: list[list[dict]] = []
    backend = RemoteDocumentBackend(_client(_paged_handler(calls)), page_size=2)

    documents, total = await backend.list_documents(
        "facilities", [QueryConstraint.order_desc("$updatedAt"), QueryConstraint.limit(999)]
    )

    assert [doc["$id"] for doc in documents] == [doc["$id"] for doc in PAGED_DOCUMENTS]
    assert total == 5
    assert len(calls) == 3
    assert calls[0][0] == {"method": "orderDesc", "attribute": "$updatedAt"}
    assert sum(1 for query in calls[0] if query["method"] == "limit") == 1
    assert calls[1][-1] == {"method": "cursorAfter", "values": ["fac_001"]}


@pytest.mark.asyncio
async def test_remote_backend_honours_caller_limit() -> None:
    calls: list[list[dict]] = []
    backend = RemoteDocumentBackend(_client(_paged_handler(calls)), page_size=2)

    documents, total = await backend.list_documents("facilities", limit=3)

    assert len(documents) == 3
    assert total == 5


@pytest.mark.asyncio
async def test_remote_backend_retries_then_gives_up() -> None:
    state = {"count": 0}

    def handler(_: httpx.Request) -> httpx.Response:
        state["count"] += 1
        return httpx.Response(500, json={"message": "boom"})

    policy = RetryPolicy(attempts=2, base_delay_seconds=0.0)
    backend = RemoteDocumentBackend(_client(handler), page_size=10, retry_policy=policy)
    with pytest.raises(BackendUnavailableError):
        await backend.list_documents("facilities")
    assert state["count"] == 2


@pytest.mark.asyncio
async def test_remote_backend_does_not_retry_missing_collection() -> None:
    state = {"count": 0}

    def handler(_: httpx.Request) -> httpx.Response:
        state["count"] += 1
        return httpx.Response(404, json={"message": "collection not found"})

    policy = RetryPolicy(attempts=3, base_delay_seconds=0.0)
    backend = RemoteDocumentBackend(_client(handler), retry_policy=policy)
    with pytest.raises(DocumentNotFoundError):
        await backend.list_documents("facilities")
    assert state["count"] == 1


def test_remote_backend_rejects_invalid_page_size() -> None:
    with pytest.raises(ValueError):
        RemoteDocumentBackend(_client(lambda request: httpx.Response(200)), page_size=0)


@pytest.mark.asyncio
async def test_in_memory_backend_applies_compiled_filters() -> None:
    backend = InMemoryDocumentBackend({"facilities": SAMPLE_FACILITY_DOCUMENTS})
    constraints = [
        QueryConstraint.order_desc("updatedAt"),
        *compile_filter(FilterSpecification.build(statuses=["not_operational"])),
    ]

    documents, total = await backend.list_documents("facilities", constraints)

    assert total == 2
    assert [doc["$id"] for doc in documents] == ["fac_008", "fac_004"]


@pytest.mark.asyncio
async def test_in_memory_backend_create_update_and_get() -> None:
    backend = InMemoryDocumentBackend()
    created = await backend.create_document("facilities", {"facilityName": "New Clinic"})

    assert created["$id"]
    assert created["$createdAt"] == created["$updatedAt"]

    updated = await backend.update_document("facilities", created["$id"], {"facilityName": "Renamed"})
    assert updated["facilityName"] == "Renamed"
    fetched = await backend.get_document("facilities", created["$id"])
    assert fetched is not None
    assert fetched["facilityName"] == "Renamed"
    assert await backend.get_document("facilities", "missing") is None


@pytest.mark.asyncio
async def test_in_memory_backend_update_missing_document() -> None:
    backend = InMemoryDocumentBackend()
    with pytest.raises(DocumentNotFoundError):
        await backend.update_document("facilities", "missing", {"facilityName": "X"})


@pytest.mark.asyncio
async def test_in_memory_backend_returns_copies() -> None:
    backend = InMemoryDocumentBackend({"facilities": SAMPLE_FACILITY_DOCUMENTS})
    documents, _ = await backend.list_documents("facilities", limit=1)
    documents[0]["facilityName"] = "Mutated"

    again, _ = await backend.list_documents("facilities", limit=1)
    assert again[0]["facilityName"] != "Mutated"
