from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from facility_registry.core.exceptions import (
    BackendError,
    BackendNotConfiguredError,
    DocumentNotFoundError,
    RecordMappingError,
    ValidationRejectedError,
)
from facility_registry.core.filters import FilterEngine, QueryConstraint, RawValueIndex
from facility_registry.core.mapper import DEFAULT_MAPPER, FacilityRecordMapper
from facility_registry.core.models import (
    EDIT_STATUSES,
    EditLogEntry,
    Facility,
    FilterSpecification,
    Governorate,
    ListResult,
    ReferenceOptions,
    Stats,
)
from facility_registry.core.stats import build_stats, derive_reference_options
from facility_registry.core.validation import ensure_valid_form
from facility_registry.metrics import RegistryMetrics
from facility_registry.repositories.backend import DocumentBackend
from facility_registry.repositories.edit_log import (
    edit_entry_from_document,
    edit_entry_to_document,
    seed_edit_entries,
)
from facility_registry.repositories.sample_data import SAMPLE_FACILITY_DOCUMENTS
from facility_registry.repositories.validation_gateway import LocalValidationGateway, ValidationGateway

logger = logging.getLogger(__name__)

NOT_CONFIGURED_REASON = "backend is not configured"


@dataclass(frozen=True)
class CollectionIds:
    facilities: str = "facilities"
    governorates: str | None = "governorates"
    edits: str | None = "edits"


@dataclass(frozen=True)
class SaveContext:
    facility_id: str | None = None
    user_id: str | None = None
    user_name: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FacilityRegistryService:
    def __init__(
        self,
        backend: DocumentBackend | None,
        collections: CollectionIds | None = None,
        validation_gateway: ValidationGateway | None = None,
        mapper: FacilityRecordMapper | None = None,
        metrics: RegistryMetrics | None = None,
        fallback_documents: Sequence[Mapping[str, Any]] = SAMPLE_FACILITY_DOCUMENTS,
        reference_presets: ReferenceOptions | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._backend = backend
        self._collections = collections or CollectionIds()
        self._mapper = mapper or DEFAULT_MAPPER
        self._filters = FilterEngine(self._mapper)
        self._metrics = metrics
        self._fallback_documents = list(fallback_documents)
        self._reference_presets = reference_presets
        self._clock = clock
        if validation_gateway is None and backend is not None:
            validation_gateway = LocalValidationGateway(backend, self._collections.facilities, mapper=self._mapper)
        self._validation_gateway = validation_gateway
        self._value_index: RawValueIndex | None = None

    @property
    def is_live(self) -> bool:
        return self._backend is not None

    async def list_facilities(self, spec: FilterSpecification | None = None) -> ListResult:
        spec = spec or FilterSpecification()
        if self._backend is None:
            return self._fallback_result(spec, NOT_CONFIGURED_REASON)
        constraints = [
            QueryConstraint.order_desc("$updatedAt"),
            *self._filters.compile(spec, self._value_index),
        ]
        try:
            raw_documents, _ = await self._backend.list_documents(self._collections.facilities, constraints)
        except BackendError as exc:
            logger.warning(
                "facility_list_fallback",
                extra={"reason": str(exc), "collection_id": self._collections.facilities},
            )
            return self._fallback_result(spec, str(exc) or exc.__class__.__name__)
        mapped = [self._mapper.to_canonical(document) for document in raw_documents]
        documents = [facility for facility in mapped if self._filters.matches(facility, spec)]
        if len(documents) != len(mapped):
            logger.debug(
                "facility_list_post_filtered",
                extra={"fetched": len(mapped), "matched": len(documents)},
            )
        self._observe_list("live")
        return ListResult(source="live", documents=documents, total=len(documents))

    async def get_facility(self, facility_id: str) -> Facility | None:
        if not facility_id:
            return None
        if self._backend is None:
            return next((item for item in self._fallback_facilities() if item.id == facility_id), None)
        document = await self._backend.get_document(self._collections.facilities, facility_id)
        return self._mapper.to_canonical(document) if document is not None else None

    async def save_facility(self, form_payload: Mapping[str, Any], context: SaveContext | None = None) -> Facility:
        context = context or SaveContext()
        action = "updated" if context.facility_id else "created"
        try:
            ensure_valid_form(form_payload, self._mapper)
        except ValidationRejectedError:
            self._observe_save(action, "rejected")
            raise
        if self._backend is None:
            self._observe_save(action, "unavailable")
            raise BackendNotConfiguredError("cannot persist facility: " + NOT_CONFIGURED_REASON)

        now = self._clock()
        actor = context.user_id or str(form_payload.get("lastEditedBy") or "") or "anonymous"
        candidate = dataclasses.replace(
            self._mapper.to_canonical(form_payload),
            id=context.facility_id or "",
            last_edited_by=actor,
            updated_at=now,
            created_at=None if context.facility_id else now,
            created_by=None if context.facility_id else actor,
        )
        existing = None
        if context.facility_id:
            existing = await self._existing_document(self._backend, context.facility_id, action)
        document = self._mapper.to_backend_form(candidate, existing)

        if self._validation_gateway is not None:
            try:
                await self._validation_gateway.validate(document, context.facility_id)
            except ValidationRejectedError:
                self._observe_save(action, "rejected")
                raise

        try:
            if context.facility_id:
                stored = await self._backend.update_document(
                    self._collections.facilities, context.facility_id, document
                )
            else:
                stored = await self._backend.create_document(self._collections.facilities, document)
        except DocumentNotFoundError:
            self._observe_save(action, "not_found")
            raise
        except BackendError:
            self._observe_save(action, "unavailable")
            logger.error("facility_save_failed", extra={"facility_id": context.facility_id, "action": action})
            raise

        saved = self._mapper.to_canonical(stored)
        await self._append_edit_log(
            EditLogEntry(
                facility_id=saved.id,
                user_id=actor,
                user_name=context.user_name,
                action=action,
                changes=dict(form_payload),
                status="approved",
                timestamp=now,
            )
        )
        self._observe_save(action, "saved")
        logger.info("facility_saved", extra={"facility_id": saved.id, "action": action, "user_id": actor})
        return saved

    async def _existing_document(self, backend: DocumentBackend, facility_id: str, action: str) -> dict[str, Any]:
        try:
            existing = await backend.get_document(self._collections.facilities, facility_id)
        except BackendError:
            self._observe_save(action, "unavailable")
            logger.error("facility_save_failed", extra={"facility_id": facility_id, "action": action})
            raise
        if existing is None:
            self._observe_save(action, "not_found")
            raise DocumentNotFoundError(f"{self._collections.facilities}/{facility_id}")
        return existing

    async def list_governorates(self) -> list[Governorate]:
        collection_id = self._collections.governorates
        if self._backend is None or not collection_id:
            return self._fallback_governorates()
        try:
            raw_documents, _ = await self._backend.list_documents(
                collection_id, [QueryConstraint.order_asc("name")]
            )
        except BackendError as exc:
            logger.warning("governorate_list_fallback", extra={"reason": str(exc)})
            return self._fallback_governorates()
        governorates: list[Governorate] = []
        for document in raw_documents:
            try:
                governorates.append(self._mapper.to_governorate(document))
            except RecordMappingError as exc:
                logger.warning("governorate_skipped", extra={"document_id": document.get("$id"), "reason": str(exc)})
        return governorates

    async def list_edits(self, status: str | None = None, limit: int = 25) -> list[EditLogEntry]:
        collection_id = self._collections.edits
        if self._backend is None or not collection_id:
            return self._fallback_edits(status, limit)
        constraints = [QueryConstraint.order_desc("$createdAt")]
        if status:
            constraints.append(QueryConstraint.equal("status", [status]))
        try:
            raw_documents, _ = await self._backend.list_documents(collection_id, constraints, limit=limit)
        except BackendError as exc:
            logger.warning("edit_list_fallback", extra={"reason": str(exc)})
            return self._fallback_edits(status, limit)
        return [edit_entry_from_document(document) for document in raw_documents]

    async def update_edit_status(self, edit_id: str, status: str, admin_notes: str = "") -> EditLogEntry:
        if status not in EDIT_STATUSES:
            raise ValidationRejectedError(f"Unsupported status: {status}", errors={"status": "unsupported"})
        collection_id = self._collections.edits
        if self._backend is None or not collection_id:
            raise BackendNotConfiguredError("edits collection is not configured")
        stored = await self._backend.update_document(
            collection_id, edit_id, {"status": status, "adminNotes": admin_notes}
        )
        logger.info("edit_status_updated", extra={"edit_id": edit_id, "status": status})
        return edit_entry_from_document(stored)

    async def refresh_value_index(self) -> RawValueIndex | None:
        if self._backend is None:
            return None
        raw_documents, _ = await self._backend.list_documents(self._collections.facilities)
        self._value_index = RawValueIndex.from_documents(raw_documents, self._mapper)
        logger.info("value_index_refreshed", extra={"document_count": len(raw_documents)})
        return self._value_index

    async def reference_options(self) -> ReferenceOptions:
        result = await self.list_facilities()
        return self.derive_reference_options(result.documents)

    def derive_reference_options(self, facilities: Iterable[Facility]) -> ReferenceOptions:
        return derive_reference_options(facilities, self._reference_presets, self._mapper.canonicalizer)

    def build_stats(self, facilities: Sequence[Facility]) -> Stats:
        return build_stats(facilities, self._mapper.status_normalizer)

    async def _append_edit_log(self, entry: EditLogEntry) -> None:
        collection_id = self._collections.edits
        if self._backend is None or not collection_id:
            return
        try:
            await self._backend.create_document(collection_id, edit_entry_to_document(entry))
        except BackendError as exc:
            if self._metrics:
                self._metrics.observe_edit_log_failure()
            logger.warning(
                "edit_log_append_failed",
                extra={"facility_id": entry.facility_id, "action": entry.action, "reason": str(exc)},
            )

    def _fallback_facilities(self) -> list[Facility]:
        return [self._mapper.to_canonical(document) for document in self._fallback_documents]

    def _fallback_result(self, spec: FilterSpecification, reason: str) -> ListResult:
        documents = [facility for facility in self._fallback_facilities() if self._filters.matches(facility, spec)]
        self._observe_list("fallback")
        return ListResult(source="fallback", documents=documents, total=len(documents), error=reason)

    def _fallback_governorates(self) -> list[Governorate]:
        names = sorted({facility.governorate for facility in self._fallback_facilities() if facility.governorate})
        return [Governorate(id=f"gov_{index}", name=name) for index, name in enumerate(names)]

    def _fallback_edits(self, status: str | None, limit: int) -> list[EditLogEntry]:
        entries = seed_edit_entries(self._fallback_facilities())
        if status:
            entries = [entry for entry in entries if entry.status == status]
        return entries[:limit]

    def _observe_list(self, source: str) -> None:
        if self._metrics:
            self._metrics.observe_list(source)

    def _observe_save(self, action: str, outcome: str) -> None:
        if self._metrics:
            self._metrics.observe_save(action, outcome)
