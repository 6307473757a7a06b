from facility_registry.config import load_settings
from facility_registry.dependencies import build_registry_service
from facility_registry.repositories.backend import InMemoryDocumentBackend, RemoteDocumentBackend
from facility_registry.repositories.validation_gateway import RemoteValidationGateway


def test_load_settings_reads_env(monkeypatch) -> None:
    monkeypatch.setenv("BAAS_ENDPOINT", "https://baas.example.com/v1")
    monkeypatch.setenv("BAAS_PROJECT_ID", "registry")
    monkeypatch.setenv("BAAS_DATABASE_ID", "main")
    monkeypatch.setenv("FACILITIES_COLLECTION_ID", "facilities")
    monkeypatch.setenv("LIST_PAGE_SIZE", "0")
    settings = load_settings("facility-registry-test")

    assert settings.SERVICE_NAME == "facility-registry-test"
    assert settings.is_backend_configured
    assert settings.page_size == 100
    assert settings.retry_policy.attempts == 3


def test_backend_is_not_configured_without_required_ids(monkeypatch) -> None:
    monkeypatch.delenv("BAAS_ENDPOINT", raising=False)
    monkeypatch.setenv("BAAS_PROJECT_ID", "registry")
    settings = load_settings()

    assert not settings.is_backend_configured
    service = build_registry_service(settings)
    assert not service.is_live


def test_memory_mode_builds_seeded_backend(monkeypatch) -> None:
    monkeypatch.setenv("BACKEND_MODE", "memory")
    service = build_registry_service(load_settings())

    assert service.is_live
    assert isinstance(service._backend, InMemoryDocumentBackend)


def test_configured_backend_uses_remote_gateway(monkeypatch) -> None:
    monkeypatch.setenv("BAAS_ENDPOINT", "https://baas.example.com/v1")
    monkeypatch.setenv("BAAS_PROJECT_ID", "registry")
    monkeypatch.setenv("BAAS_DATABASE_ID", "main")
    monkeypatch.setenv("FACILITIES_COLLECTION_ID", "facilities")
    monkeypatch.setenv("VALIDATE_FUNCTION_ID", "validate-facility")
    service = build_registry_service(load_settings())

    assert isinstance(service._backend, RemoteDocumentBackend)
    assert isinstance(service._validation_gateway, RemoteValidationGateway)


def test_retry_settings_shape_the_backend_policy(monkeypatch) -> None:
    monkeypatch.setenv("BAAS_RETRY_ATTEMPTS", "0")
    monkeypatch.setenv("BAAS_RETRY_BASE_DELAY_SECONDS", "0.2")
    policy = load_settings().retry_policy

    assert policy.attempts == 1
    assert policy.base_delay_seconds == 0.2
