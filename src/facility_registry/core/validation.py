from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from facility_registry.core.exceptions import ValidationRejectedError
from facility_registry.core.mapper import DEFAULT_MAPPER, FacilityRecordMapper, parse_number
from facility_registry.core.models import STATUS_UNKNOWN, Facility

MAX_NAME_LENGTH = 255


def _present(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def validate_facility_form(
    payload: Mapping[str, Any],
    mapper: FacilityRecordMapper | None = None,
) -> dict[str, str]:
    """Field-level checks on a submitted form. Empty dict means valid."""
    mapper = mapper or DEFAULT_MAPPER
    errors: dict[str, str] = {}

    name = mapper.resolve(payload, "facility_name")
    if not _present(name):
        errors["facilityName"] = "Facility name is required"
    elif len(str(name).strip()) > MAX_NAME_LENGTH:
        errors["facilityName"] = f"Facility name must be <= {MAX_NAME_LENGTH} characters"

    if not _present(mapper.resolve(payload, "governorate")):
        errors["governorate"] = "Governorate is required"

    status = mapper.resolve(payload, "facility_status")
    if not _present(status):
        errors["facilityStatus"] = "Facility status is required"
    elif mapper.status_normalizer.normalize(status) == STATUS_UNKNOWN:
        errors["facilityStatus"] = "Invalid facility status"

    raw_longitude = mapper.resolve(payload, "longitude")
    raw_latitude = mapper.resolve(payload, "latitude")
    if _present(raw_longitude) or _present(raw_latitude):
        longitude = parse_number(raw_longitude)
        latitude = parse_number(raw_latitude)
        if longitude is None or not -180.0 <= longitude <= 180.0:
            errors["longitude"] = "Longitude must be between -180 and 180"
        if latitude is None or not -90.0 <= latitude <= 90.0:
            errors["latitude"] = "Latitude must be between -90 and 90"
    return errors


def ensure_valid_form(payload: Mapping[str, Any], mapper: FacilityRecordMapper | None = None) -> None:
    errors = validate_facility_form(payload, mapper)
    if errors:
        raise ValidationRejectedError("; ".join(errors.values()), errors=errors)


class FacilityValidator:
    """Server-side checks run before a facility is persisted."""

    def validate(
        self,
        document: Mapping[str, Any],
        existing: Iterable[Facility],
        facility_id: str | None = None,
    ) -> None:
        longitude = parse_number(document.get("longitude"))
        latitude = parse_number(document.get("latitude"))
        if longitude is not None and not -180.0 <= longitude <= 180.0:
            raise ValidationRejectedError("Invalid longitude; must be between -180 and 180")
        if latitude is not None and not -90.0 <= latitude <= 90.0:
            raise ValidationRejectedError("Invalid latitude; must be between -90 and 90")

        name = " ".join(str(document.get("facilityName") or "").split())
        if not name:
            raise ValidationRejectedError("Facility name cannot be empty")

        governorate = " ".join(str(document.get("governorate") or "").split())
        for facility in existing:
            if facility.id == facility_id:
                continue
            if facility.facility_name.casefold() == name.casefold() and facility.governorate == governorate:
                raise ValidationRejectedError(f'Facility "{name}" already exists in {governorate}')
