from __future__ import annotations

from facility_registry.core.exceptions import (
    BackendNotConfiguredError,
    BackendUnavailableError,
    DocumentNotFoundError,
    RegistryError,
    ValidationRejectedError,
)
from facility_registry.errors import ApiError


def to_api_error(exc: RegistryError) -> ApiError:
    if isinstance(exc, ValidationRejectedError):
        return ApiError("VALIDATION_REJECTED", exc.reason, 422, details=exc.errors)
    if isinstance(exc, DocumentNotFoundError):
        return ApiError("NOT_FOUND", "Document not found", 404)
    if isinstance(exc, BackendNotConfiguredError):
        return ApiError("BACKEND_NOT_CONFIGURED", str(exc), 503)
    if isinstance(exc, BackendUnavailableError):
        return ApiError("BACKEND_UNAVAILABLE", "Please retry later", 503)
    return ApiError("REGISTRY_ERROR", str(exc), 500)
