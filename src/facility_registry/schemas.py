from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from facility_registry.core.models import EditLogEntry, Facility, Governorate
from facility_registry.core.status import DEFAULT_STATUS_NORMALIZER


class FacilityForm(BaseModel):
    """Submitted facility form. Field checks happen in the core validator."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    facility_name: str | None = Field(default=None, alias="facilityName")
    establishment_name: str | None = Field(default=None, alias="establishmentName")
    governorate: str | None = None
    facility_status: str | None = Field(default=None, alias="facilityStatus")
    facility_type_label: str | None = Field(default=None, alias="facilityTypeLabel")
    facility_owner: str | None = Field(default=None, alias="facilityOwner")
    facility_affiliation: str | None = Field(default=None, alias="facilityAffiliation")
    longitude: float | str | None = None
    latitude: float | str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class EditStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    admin_notes: str = Field(default="", alias="adminNotes")


class FacilityItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    facility_name: str = Field(alias="facilityName")
    establishment_name: str = Field(alias="establishmentName")
    governorate: str
    facility_status: str = Field(alias="facilityStatus")
    facility_status_label: str = Field(alias="facilityStatusLabel")
    facility_status_detail: str = Field(alias="facilityStatusDetail")
    facility_type_label: str = Field(alias="facilityTypeLabel")
    facility_owner: str = Field(alias="facilityOwner")
    facility_affiliation: str = Field(alias="facilityAffiliation")
    longitude: float | None = None
    latitude: float | None = None
    location: dict[str, Any] | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    created_by: str | None = Field(default=None, alias="createdBy")
    last_edited_by: str | None = Field(default=None, alias="lastEditedBy")

    @classmethod
    def from_entity(cls, facility: Facility, locale: str = "en") -> FacilityItem:
        return cls(
            id=facility.id,
            facility_name=facility.facility_name,
            establishment_name=facility.establishment_name,
            governorate=facility.governorate,
            facility_status=facility.facility_status,
            facility_status_label=DEFAULT_STATUS_NORMALIZER.display(facility.facility_status, locale),
            facility_status_detail=DEFAULT_STATUS_NORMALIZER.describe(facility.facility_status_raw, locale),
            facility_type_label=facility.facility_type_label,
            facility_owner=facility.facility_owner,
            facility_affiliation=facility.facility_affiliation,
            longitude=facility.longitude,
            latitude=facility.latitude,
            location=facility.location,
            created_at=facility.created_at,
            updated_at=facility.updated_at,
            created_by=facility.created_by,
            last_edited_by=facility.last_edited_by,
        )


class GovernorateItem(BaseModel):
    id: str
    name: str
    name_secondary: str = Field(default="", alias="nameSecondary")
    boundary: dict[str, Any] | None = None

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_entity(cls, governorate: Governorate) -> GovernorateItem:
        return cls(
            id=governorate.id,
            name=governorate.name,
            name_secondary=governorate.name_secondary,
            boundary=governorate.boundary,
        )


class EditItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    facility_id: str = Field(alias="facilityId")
    user_id: str = Field(alias="userId")
    user_name: str | None = Field(default=None, alias="userName")
    action: str
    changes: dict[str, Any]
    status: str
    timestamp: datetime
    admin_notes: str = Field(default="", alias="adminNotes")

    @classmethod
    def from_entity(cls, entry: EditLogEntry) -> EditItem:
        return cls(
            id=entry.id,
            facility_id=entry.facility_id,
            user_id=entry.user_id,
            user_name=entry.user_name,
            action=entry.action,
            changes=entry.changes,
            status=entry.status,
            timestamp=entry.timestamp,
            admin_notes=entry.admin_notes,
        )
