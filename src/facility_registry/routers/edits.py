from __future__ import annotations

from fastapi import APIRouter, Body, Depends, Query

from facility_registry.core.exceptions import RegistryError
from facility_registry.dependencies import get_registry_service
from facility_registry.response import success_response
from facility_registry.routers.errors import to_api_error
from facility_registry.schemas import EditItem, EditStatusUpdate
from facility_registry.services.registry_service import FacilityRegistryService

router = APIRouter(prefix="/v1/edits", tags=["edits"])


@router.get("")
async def list_edits(
    status: str | None = Query(default=None, pattern="^(pending|approved|rejected)$"),
    limit: int = Query(default=25, ge=1, le=100),
    service: FacilityRegistryService = Depends(get_registry_service),
) -> dict:
    entries = await service.list_edits(status=status, limit=limit)
    data = [EditItem.from_entity(entry).model_dump(by_alias=True, mode="json") for entry in entries]
    return success_response(data, meta={"count": len(data)})


@router.patch("/{edit_id}")
async def update_edit_status(
    edit_id: str,
    body: EditStatusUpdate = Body(...),
    service: FacilityRegistryService = Depends(get_registry_service),
) -> dict:
    try:
        entry = await service.update_edit_status(edit_id, body.status, body.admin_notes)
    except RegistryError as exc:
        raise to_api_error(exc) from exc
    return success_response(EditItem.from_entity(entry).model_dump(by_alias=True, mode="json"))
