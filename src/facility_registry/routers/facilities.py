from __future__ import annotations

import dataclasses

from fastapi import APIRouter, Body, Depends, Header, Query

from facility_registry.config import RegistrySettings
from facility_registry.core.exceptions import RegistryError
from facility_registry.core.models import FilterSpecification, ListResult
from facility_registry.dependencies import get_registry_service, get_settings
from facility_registry.errors import ApiError
from facility_registry.response import success_response
from facility_registry.routers.errors import to_api_error
from facility_registry.schemas import FacilityForm, FacilityItem
from facility_registry.services.registry_service import FacilityRegistryService, SaveContext

router = APIRouter(prefix="/v1/facilities", tags=["facilities"])


def filter_spec(
    search_term: str | None = Query(default=None, max_length=200),
    governorate: str | None = None,
    statuses: list[str] = Query(default=[]),
    facility_types: list[str] = Query(default=[]),
    owners: list[str] = Query(default=[]),
    affiliations: list[str] = Query(default=[]),
) -> FilterSpecification:
    return FilterSpecification.build(
        search_term=search_term,
        governorate=governorate,
        statuses=statuses,
        facility_types=facility_types,
        owners=owners,
        affiliations=affiliations,
    )


def request_locale(
    locale: str | None = Query(default=None, pattern="^(en|ar)$"),
    settings: RegistrySettings = Depends(get_settings),
) -> str:
    return locale or settings.DEFAULT_LOCALE


def _result_meta(result: ListResult) -> dict[str, object]:
    return {"total": result.total, "source": result.source, "error": result.error}


@router.get("")
async def list_facilities(
    spec: FilterSpecification = Depends(filter_spec),
    locale: str = Depends(request_locale),
    service: FacilityRegistryService = Depends(get_registry_service),
) -> dict:
    result = await service.list_facilities(spec)
    data = [FacilityItem.from_entity(item, locale).model_dump(by_alias=True, mode="json") for item in result.documents]
    return success_response(data, meta=_result_meta(result))


@router.get("/stats")
async def facility_stats(
    spec: FilterSpecification = Depends(filter_spec),
    service: FacilityRegistryService = Depends(get_registry_service),
) -> dict:
    result = await service.list_facilities(spec)
    stats = service.build_stats(result.documents)
    return success_response(dataclasses.asdict(stats), meta=_result_meta(result))


@router.get("/reference-options")
async def reference_options(service: FacilityRegistryService = Depends(get_registry_service)) -> dict:
    options = await service.reference_options()
    return success_response(dataclasses.asdict(options), meta={})


@router.get("/{facility_id}")
async def get_facility(
    facility_id: str,
    locale: str = Depends(request_locale),
    service: FacilityRegistryService = Depends(get_registry_service),
) -> dict:
    try:
        facility = await service.get_facility(facility_id)
    except RegistryError as exc:
        raise to_api_error(exc) from exc
    if facility is None:
        raise ApiError("NOT_FOUND", "Facility not found", 404)
    return success_response(FacilityItem.from_entity(facility, locale).model_dump(by_alias=True, mode="json"))


async def _save(
    service: FacilityRegistryService,
    form: FacilityForm,
    context: SaveContext,
) -> dict:
    try:
        saved = await service.save_facility(form.to_payload(), context)
    except RegistryError as exc:
        raise to_api_error(exc) from exc
    return success_response(FacilityItem.from_entity(saved).model_dump(by_alias=True, mode="json"))


@router.post("", status_code=201)
async def create_facility(
    form: FacilityForm = Body(...),
    x_user_id: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    service: FacilityRegistryService = Depends(get_registry_service),
) -> dict:
    return await _save(service, form, SaveContext(user_id=x_user_id, user_name=x_user_name))


@router.put("/{facility_id}")
async def update_facility(
    facility_id: str,
    form: FacilityForm = Body(...),
    x_user_id: str | None = Header(default=None),
    x_user_name: str | None = Header(default=None),
    service: FacilityRegistryService = Depends(get_registry_service),
) -> dict:
    return await _save(
        service,
        form,
        SaveContext(facility_id=facility_id, user_id=x_user_id, user_name=x_user_name),
    )
