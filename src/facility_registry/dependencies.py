from __future__ import annotations

from facility_registry.clients.baas_client import BaasClient
from facility_registry.config import RegistrySettings, load_settings
from facility_registry.metrics import RegistryMetrics
from facility_registry.repositories.backend import DocumentBackend, InMemoryDocumentBackend, RemoteDocumentBackend
from facility_registry.repositories.sample_data import SAMPLE_FACILITY_DOCUMENTS
from facility_registry.repositories.validation_gateway import RemoteValidationGateway, ValidationGateway
from facility_registry.services.registry_service import CollectionIds, FacilityRegistryService


def build_registry_service(
    settings: RegistrySettings,
    metrics: RegistryMetrics | None = None,
) -> FacilityRegistryService:
    collections = CollectionIds(
        facilities=settings.FACILITIES_COLLECTION_ID or "facilities",
        governorates=settings.GOVERNORATES_COLLECTION_ID,
        edits=settings.EDITS_COLLECTION_ID or ("edits" if settings.BACKEND_MODE == "memory" else None),
    )
    backend: DocumentBackend | None = None
    validation_gateway: ValidationGateway | None = None
    if settings.BACKEND_MODE == "memory":
        backend = InMemoryDocumentBackend({collections.facilities: SAMPLE_FACILITY_DOCUMENTS})
    elif settings.is_backend_configured:
        client = BaasClient(
            endpoint=settings.BAAS_ENDPOINT or "",
            project_id=settings.BAAS_PROJECT_ID or "",
            database_id=settings.BAAS_DATABASE_ID or "",
            api_key=settings.BAAS_API_KEY,
            timeout_seconds=settings.BAAS_TIMEOUT_SECONDS,
        )
        backend = RemoteDocumentBackend(client, page_size=settings.page_size, retry_policy=settings.retry_policy)
        if settings.VALIDATE_FUNCTION_ID:
            validation_gateway = RemoteValidationGateway(client, settings.VALIDATE_FUNCTION_ID)
    return FacilityRegistryService(
        backend=backend,
        collections=collections,
        validation_gateway=validation_gateway,
        metrics=metrics,
    )


_settings = load_settings("facility-registry")
_metrics = RegistryMetrics()
_registry_service = build_registry_service(_settings, metrics=_metrics)


def get_settings() -> RegistrySettings:
    return _settings


def get_metrics() -> RegistryMetrics:
    return _metrics


def get_registry_service() -> FacilityRegistryService:
    return _registry_service
