from __future__ import annotations

from datetime import datetime, timezone

import pytest

from facility_registry.core.exceptions import (
    BackendNotConfiguredError,
    BackendUnavailableError,
    DocumentNotFoundError,
    ValidationRejectedError,
)
from facility_registry.core.models import FilterSpecification
from facility_registry.metrics import RegistryMetrics
from facility_registry.repositories.backend import InMemoryDocumentBackend
from facility_registry.repositories.sample_data import SAMPLE_FACILITY_DOCUMENTS
from facility_registry.services.registry_service import CollectionIds, FacilityRegistryService, SaveContext

FIXED_NOW = datetime(2024, 7, 1, 8, 0, tzinfo=timezone.utc)


class UnavailableBackend(InMemoryDocumentBackend):
    async def list_documents(self, collection_id, constraints=(), limit=None):
        raise BackendUnavailableError("backend returned HTTP 503")


class EditLogDownBackend(InMemoryDocumentBackend):
    async def create_document(self, collection_id, data):
        if collection_id == "edits":
            raise BackendUnavailableError("edits collection unavailable")
        return await super().create_document(collection_id, data)


def _form(**overrides):
    form = {
        "facilityName": "Najaf Health Center",
        "governorate": "Najaf",
        "facilityStatus": "operational",
        "facilityTypeLabel": "health center",
        "facilityOwner": "ministry of health",
        "longitude": "44.33",
        "latitude": "32.0",
    }
    form.update(overrides)
    return form


def _service(backend=None, metrics=None, governorates=None) -> FacilityRegistryService:
    if backend is None:
        backend = InMemoryDocumentBackend({"facilities": SAMPLE_FACILITY_DOCUMENTS})
    return FacilityRegistryService(
        backend=backend,
        collections=CollectionIds(governorates=governorates),
        metrics=metrics,
        clock=lambda: FIXED_NOW,
    )


@pytest.mark.asyncio
async def test_list_without_backend_uses_fallback_dataset() -> None:
    service = FacilityRegistryService(backend=None)

    result = await service.list_facilities(FilterSpecification.build(statuses=["operational"]))

    assert result.source == "fallback"
    assert result.is_degraded
    assert result.error == "backend is not configured"
    assert {facility.id for facility in result.documents} == {"fac_001", "fac_002", "fac_005"}
    assert result.total == 3


@pytest.mark.asyncio
async def test_list_falls_back_when_backend_fails() -> None:
    metrics = RegistryMetrics()
    service = _service(backend=UnavailableBackend(), metrics=metrics)

    result = await service.list_facilities()

    assert result.source == "fallback"
    assert result.error == "backend returned HTTP 503"
    assert result.total == len(SAMPLE_FACILITY_DOCUMENTS)
    assert 'facility_list_results_total{source="fallback"} 1.0' in metrics.render()


@pytest.mark.asyncio
async def test_live_list_is_post_filtered_locally() -> None:
    service = _service()

    everything = await service.list_facilities()
    hospitals = await service.list_facilities(FilterSpecification.build(facility_types=["hospital"]))

    assert everything.source == "live"
    assert everything.error is None
    assert everything.total == len(SAMPLE_FACILITY_DOCUMENTS)
    assert {facility.id for facility in hospitals.documents} == {"fac_001", "fac_004"}


@pytest.mark.asyncio
async def test_refreshed_value_index_widens_remote_matches() -> None:
    service = _service()
    index = await service.refresh_value_index()

    assert index is not None
    assert "MoH" in index.variants("facility_owner", "MOH")
    result = await service.list_facilities(FilterSpecification.build(owners=["moh"]))
    assert [facility.id for facility in result.documents] == ["fac_002"]


@pytest.mark.asyncio
async def test_create_facility_persists_backend_form_and_logs_edit() -> None:
    metrics = RegistryMetrics()
    service = _service(metrics=metrics)

    saved = await service.save_facility(_form(), SaveContext(user_id="u-1", user_name="Field Officer"))

    assert saved.id
    assert saved.facility_status == "operational"
    assert saved.facility_status_raw == "تعمل"
    assert saved.facility_type_label == "Health Center"
    assert saved.facility_owner == "Ministry Of Health"
    assert (saved.longitude, saved.latitude) == (44.33, 32.0)
    assert saved.created_by == "u-1"
    assert saved.created_at == FIXED_NOW

    edits = await service.list_edits()
    assert len(edits) == 1
    assert edits[0].facility_id == saved.id
    assert edits[0].action == "created"
    assert edits[0].status == "approved"
    assert edits[0].user_name == "Field Officer"
    assert edits[0].changes["facilityName"] == "Najaf Health Center"
    assert 'facility_saves_total{action="created",outcome="saved"} 1.0' in metrics.render()


@pytest.mark.asyncio
async def test_update_keeps_creation_fields() -> None:
    service = _service()

    saved = await service.save_facility(
        _form(facilityName="Baghdad Teaching Hospital", governorate="Baghdad", facilityStatus="لا تعمل"),
        SaveContext(facility_id="fac_001", user_id="u-2"),
    )

    assert saved.id == "fac_001"
    assert saved.facility_status == "not_operational"
    assert saved.created_by == "seed"
    assert saved.created_at == datetime(2024, 1, 12, 9, 30, tzinfo=timezone.utc)
    assert saved.last_edited_by == "u-2"
    edits = await service.list_edits(status="approved")
    assert edits[0].action == "updated"


@pytest.mark.asyncio
async def test_update_of_legacy_document_can_clear_fields() -> None:
    service = _service()
    form = {
        "facilityName": "Al-Zubair Primary Health Care Center",
        "governorate": "Basra",
        "facilityStatus": "تعمل",
        "facilityTypeLabel": "primary health care center",
        "facilityAffiliation": "",
    }

    saved = await service.save_facility(form, SaveContext(facility_id="fac_002", user_id="u-3"))

    assert saved.facility_affiliation == ""
    assert saved.facility_owner == ""
    assert saved.longitude is None
    assert saved.latitude is None
    again = await service.get_facility("fac_002")
    assert again is not None
    assert again.facility_affiliation == ""
    assert not again.has_coordinates
    assert again.created_at == datetime(2024, 1, 20, 8, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_update_of_missing_facility_is_not_found_before_validation() -> None:
    metrics = RegistryMetrics()
    service = _service(metrics=metrics)

    with pytest.raises(DocumentNotFoundError):
        await service.save_facility(_form(), SaveContext(facility_id="missing"))

    assert 'facility_saves_total{action="updated",outcome="not_found"} 1.0' in metrics.render()


@pytest.mark.asyncio
async def test_invalid_form_is_rejected_before_backend_call() -> None:
    metrics = RegistryMetrics()
    service = _service(metrics=metrics)

    with pytest.raises(ValidationRejectedError) as exc_info:
        await service.save_facility(_form(longitude="-180.0001"))

    assert exc_info.value.errors == {"longitude": "Longitude must be between -180 and 180"}
    assert 'facility_saves_total{action="created",outcome="rejected"} 1.0' in metrics.render()


@pytest.mark.asyncio
async def test_duplicate_name_is_rejected_by_validation_gateway() -> None:
    service = _service()

    with pytest.raises(ValidationRejectedError, match="already exists in Baghdad"):
        await service.save_facility(_form(facilityName="baghdad teaching hospital", governorate="Baghdad"))


@pytest.mark.asyncio
async def test_save_without_backend_is_not_configured() -> None:
    service = FacilityRegistryService(backend=None)
    with pytest.raises(BackendNotConfiguredError):
        await service.save_facility(_form())


@pytest.mark.asyncio
async def test_edit_log_failure_does_not_fail_the_save() -> None:
    metrics = RegistryMetrics()
    backend = EditLogDownBackend({"facilities": SAMPLE_FACILITY_DOCUMENTS})
    service = _service(backend=backend, metrics=metrics)

    saved = await service.save_facility(_form())

    assert saved.facility_name == "Najaf Health Center"
    assert "facility_edit_log_failures_total 1.0" in metrics.render()


@pytest.mark.asyncio
async def test_update_edit_status() -> None:
    service = _service()
    await service.save_facility(_form())
    entry = (await service.list_edits())[0]

    reviewed = await service.update_edit_status(entry.id, "rejected", "duplicate of fac_001")

    assert reviewed.status == "rejected"
    assert reviewed.admin_notes == "duplicate of fac_001"
    with pytest.raises(ValidationRejectedError):
        await service.update_edit_status(entry.id, "archived")


@pytest.mark.asyncio
async def test_governorates_skip_unnamed_documents() -> None:
    backend = InMemoryDocumentBackend(
        {
            "governorates": [
                {"$id": "g1", "name": "بغداد", "nameEn": "Baghdad"},
                {"$id": "g2", "boundary": {"type": "Polygon", "coordinates": []}},
            ]
        }
    )
    service = _service(backend=backend, governorates="governorates")

    governorates = await service.list_governorates()

    assert [item.id for item in governorates] == ["g1"]
    assert governorates[0].name_secondary == "Baghdad"


@pytest.mark.asyncio
async def test_governorates_without_collection_are_derived_from_facilities() -> None:
    service = FacilityRegistryService(backend=None)
    governorates = await service.list_governorates()
    assert [item.name for item in governorates] == ["Anbar", "Baghdad", "Basra", "Erbil", "Nineveh"]


@pytest.mark.asyncio
async def test_fallback_edits_are_seeded_newest_first() -> None:
    service = FacilityRegistryService(backend=None)
    edits = await service.list_edits(limit=3)
    assert [entry.facility_id for entry in edits] == ["fac_001", "fac_002", "fac_005"]
    assert all(entry.action == "seed" for entry in edits)


@pytest.mark.asyncio
async def test_reference_options_and_stats_follow_listed_facilities() -> None:
    service = FacilityRegistryService(backend=None)

    options = await service.reference_options()
    result = await service.list_facilities(FilterSpecification.build(governorate="Basra"))
    stats = service.build_stats(result.documents)

    assert "Hospital" in options.facility_types
    assert stats.total == 2
    assert stats.by_governorate == {"Basra": 2}
