from __future__ import annotations


class RegistryError(Exception):
    """Base registry exception."""


class ValidationError(RegistryError):
    """Raised when a record or payload is invalid."""


class RecordMappingError(ValidationError):
    """Raised when a raw document cannot be mapped at all."""


class ValidationRejectedError(ValidationError):
    """Raised when a facility write is rejected before persistence."""

    def __init__(self, reason: str, errors: dict[str, str] | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.errors = dict(errors or {})


class BackendError(RegistryError):
    """Base backend exception."""


class BackendUnavailableError(BackendError):
    """Raised when the backend request failed after retries."""


class BackendNotConfiguredError(BackendUnavailableError):
    """Raised when no backend is configured for an operation that needs one."""


class DocumentNotFoundError(BackendError):
    """Raised when a document addressed by id does not exist."""
