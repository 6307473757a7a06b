from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from facility_registry.clients.baas_client import BaasClient
from facility_registry.core.exceptions import ValidationRejectedError
from facility_registry.core.filters import FilterEngine
from facility_registry.core.mapper import DEFAULT_MAPPER, FacilityRecordMapper
from facility_registry.core.models import FilterSpecification
from facility_registry.core.validation import FacilityValidator
from facility_registry.repositories.backend import DocumentBackend

logger = logging.getLogger(__name__)


class ValidationGateway(Protocol):
    async def validate(self, document: dict[str, Any], facility_id: str | None) -> None: ...


class RemoteValidationGateway:
    """Runs the hosted validation function and raises when it rejects the payload."""

    def __init__(self, client: BaasClient, function_id: str) -> None:
        self._client = client
        self._function_id = function_id

    async def validate(self, document: dict[str, Any], facility_id: str | None) -> None:
        execution = await self._client.create_execution(self._function_id, {"facilityId": facility_id, **document})
        status_code = int(execution.get("responseStatusCode") or 200)
        body = self._parse_body(execution.get("responseBody"))
        if status_code >= 400 or body.get("success") is False:
            reason = str(body.get("error") or "Facility validation failed")
            logger.info("facility_validation_rejected", extra={"facility_id": facility_id, "reason": reason})
            raise ValidationRejectedError(reason)

    @staticmethod
    def _parse_body(raw: Any) -> dict[str, Any]:
        if isinstance(raw, dict):
            return raw
        if not isinstance(raw, str) or not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}


class LocalValidationGateway:
    """Applies the validation rules in-process against the backend's current documents."""

    def __init__(
        self,
        backend: DocumentBackend,
        collection_id: str,
        mapper: FacilityRecordMapper | None = None,
        validator: FacilityValidator | None = None,
    ) -> None:
        self._backend = backend
        self._collection_id = collection_id
        self._mapper = mapper or DEFAULT_MAPPER
        self._filters = FilterEngine(self._mapper)
        self._validator = validator or FacilityValidator()

    async def validate(self, document: dict[str, Any], facility_id: str | None) -> None:
        governorate = str(document.get("governorate") or "")
        constraints = self._filters.compile(FilterSpecification.build(governorate=governorate)) if governorate.strip() else []
        raw_documents, _ = await self._backend.list_documents(self._collection_id, constraints)
        existing = [self._mapper.to_canonical(raw) for raw in raw_documents]
        self._validator.validate(document, existing, facility_id=facility_id)
