from __future__ import annotations

from fastapi import APIRouter, Depends

from facility_registry.dependencies import get_registry_service
from facility_registry.response import success_response
from facility_registry.schemas import GovernorateItem
from facility_registry.services.registry_service import FacilityRegistryService

router = APIRouter(prefix="/v1/governorates", tags=["governorates"])


@router.get("")
async def list_governorates(service: FacilityRegistryService = Depends(get_registry_service)) -> dict:
    governorates = await service.list_governorates()
    data = [GovernorateItem.from_entity(item).model_dump(by_alias=True) for item in governorates]
    return success_response(data, meta={"count": len(data)})
