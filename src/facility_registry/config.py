from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from facility_registry.core.retry import RetryPolicy


class RegistrySettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    SERVICE_NAME: str = "facility-registry"
    BACKEND_MODE: Literal["auto", "memory"] = "auto"
    BAAS_ENDPOINT: str | None = None
    BAAS_PROJECT_ID: str | None = None
    BAAS_API_KEY: str | None = None
    BAAS_DATABASE_ID: str | None = None
    FACILITIES_COLLECTION_ID: str | None = None
    GOVERNORATES_COLLECTION_ID: str | None = None
    EDITS_COLLECTION_ID: str | None = None
    VALIDATE_FUNCTION_ID: str | None = None
    LIST_PAGE_SIZE: int = 500
    BAAS_TIMEOUT_SECONDS: float = 5.0
    BAAS_RETRY_ATTEMPTS: int = 3
    BAAS_RETRY_BASE_DELAY_SECONDS: float = 0.05
    DEFAULT_LOCALE: str = "en"

    @property
    def is_backend_configured(self) -> bool:
        return all(
            (
                self.BAAS_ENDPOINT,
                self.BAAS_PROJECT_ID,
                self.BAAS_DATABASE_ID,
                self.FACILITIES_COLLECTION_ID,
            )
        )

    @property
    def page_size(self) -> int:
        return self.LIST_PAGE_SIZE if self.LIST_PAGE_SIZE > 0 else 100

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            attempts=max(self.BAAS_RETRY_ATTEMPTS, 1),
            base_delay_seconds=max(self.BAAS_RETRY_BASE_DELAY_SECONDS, 0.0),
        )


def load_settings(service_name: str = "facility-registry") -> RegistrySettings:
    return RegistrySettings(SERVICE_NAME=service_name)
