"""Document backends, validation gateways and the fallback dataset."""

from facility_registry.repositories.backend import DocumentBackend, InMemoryDocumentBackend, RemoteDocumentBackend
from facility_registry.repositories.sample_data import SAMPLE_FACILITY_DOCUMENTS
from facility_registry.repositories.validation_gateway import (
    LocalValidationGateway,
    RemoteValidationGateway,
    ValidationGateway,
)

__all__ = [
    "DocumentBackend",
    "InMemoryDocumentBackend",
    "LocalValidationGateway",
    "RemoteDocumentBackend",
    "RemoteValidationGateway",
    "SAMPLE_FACILITY_DOCUMENTS",
    "ValidationGateway",
]
