from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from facility_registry.core.exceptions import RecordMappingError
from facility_registry.core.labels import DEFAULT_CANONICALIZER, LabelCanonicalizer
from facility_registry.core.models import CANONICAL_STATUSES, Facility, Governorate
from facility_registry.core.status import DEFAULT_STATUS_NORMALIZER, StatusNormalizer

Accessor = Callable[[Mapping[str, Any]], Any]

_GEOMETRY_KEYS = ("location", "geometry")
_BOUNDARY_TYPES = frozenset({"Polygon", "MultiPolygon"})


def _is_defined(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _parse_json_object(value: Any) -> dict[str, Any] | None:
    if isinstance(value, Mapping):
        return dict(value)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = json.loads(value)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def point_geometry(longitude: float, latitude: float) -> dict[str, Any]:
    return {"type": "Point", "coordinates": [longitude, latitude]}


def in_range(longitude: float, latitude: float) -> bool:
    return -180.0 <= longitude <= 180.0 and -90.0 <= latitude <= 90.0


@dataclass(frozen=True)
class KeyAccessor:
    key: str

    def __call__(self, document: Mapping[str, Any]) -> Any:
        return document.get(self.key)


@dataclass(frozen=True)
class GeometryCoordinateAccessor:
    """Reads one axis of an embedded GeoJSON ``Point``."""

    index: int
    keys: tuple[str, ...] = _GEOMETRY_KEYS

    def __call__(self, document: Mapping[str, Any]) -> Any:
        for key in self.keys:
            geometry = _parse_json_object(document.get(key))
            if not geometry or geometry.get("type") != "Point":
                continue
            coordinates = geometry.get("coordinates")
            if isinstance(coordinates, (list, tuple)) and len(coordinates) > self.index:
                return coordinates[self.index]
        return None


def _keys(*names: str) -> tuple[Accessor, ...]:
    return tuple(KeyAccessor(name) for name in names)


# Modern backend keys first, legacy import spellings after.
DEFAULT_FIELD_ACCESSORS: Mapping[str, tuple[Accessor, ...]] = MappingProxyType(
    {
        "id": _keys("$id", "id", "_id"),
        "facility_name": _keys("facilityName", "name", "NAME", "اسم المرفق"),
        "establishment_name": _keys("establishmentName", "establishment", "ESTABLISHMENT", "اسم المؤسسة"),
        "governorate": _keys("governorate", "Governorate", "GOVERNORATE", "المحافظة"),
        "facility_status": _keys("facilityStatus", "STATUS", "status", "حالة المرفق"),
        "facility_type_label": _keys("facilityTypeLabel", "facilityType", "type", "TYPE", "نوع المرفق"),
        "facility_owner": _keys("facilityOwner", "Owner", "owner", "OWNER", "الجهة المالكة"),
        "facility_affiliation": _keys("facilityAffiliation", "FOLLOWS", "affiliation", "التبعية"),
        "longitude": _keys("longitude", "X", "x", "lng", "lon") + (GeometryCoordinateAccessor(0),),
        "latitude": _keys("latitude", "Y", "y", "lat") + (GeometryCoordinateAccessor(1),),
        "created_at": _keys("createdAt", "$createdAt"),
        "updated_at": _keys("updatedAt", "$updatedAt"),
        "created_by": _keys("createdBy"),
        "last_edited_by": _keys("lastEditedBy"),
    }
)

DEFAULT_GOVERNORATE_ACCESSORS: Mapping[str, tuple[Accessor, ...]] = MappingProxyType(
    {
        "id": _keys("$id", "id", "_id"),
        "name": _keys("name", "nameAr", "name_ar", "arabicName"),
        "name_secondary": _keys("nameEn", "name_en", "englishName"),
        "boundary": _keys("boundary", "geometry", "geojson", "polygon"),
    }
)

# Logical field -> key written by ``to_backend_form``.
BACKEND_FIELD_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "facility_name": "facilityName",
        "establishment_name": "establishmentName",
        "governorate": "governorate",
        "facility_status": "facilityStatus",
        "facility_type_label": "facilityTypeLabel",
        "facility_owner": "facilityOwner",
        "facility_affiliation": "facilityAffiliation",
        "longitude": "longitude",
        "latitude": "latitude",
        "location": "location",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
        "created_by": "createdBy",
        "last_edited_by": "lastEditedBy",
    }
)


def resolve_field(document: Mapping[str, Any], accessors: tuple[Accessor, ...]) -> Any:
    for accessor in accessors:
        value = accessor(document)
        if _is_defined(value):
            return value
    return None


def _text(value: Any) -> str:
    return " ".join(str(value).split()) if value is not None else ""


class FacilityRecordMapper:
    """The single seam between backend-shaped documents and ``Facility``."""

    def __init__(
        self,
        canonicalizer: LabelCanonicalizer | None = None,
        status_normalizer: StatusNormalizer | None = None,
        accessors: Mapping[str, tuple[Accessor, ...]] | None = None,
        governorate_accessors: Mapping[str, tuple[Accessor, ...]] | None = None,
    ) -> None:
        self._canonicalizer = canonicalizer or DEFAULT_CANONICALIZER
        self._status = status_normalizer or DEFAULT_STATUS_NORMALIZER
        self._accessors = accessors or DEFAULT_FIELD_ACCESSORS
        self._governorate_accessors = governorate_accessors or DEFAULT_GOVERNORATE_ACCESSORS

    @property
    def canonicalizer(self) -> LabelCanonicalizer:
        return self._canonicalizer

    @property
    def status_normalizer(self) -> StatusNormalizer:
        return self._status

    def field_keys(self, field: str) -> tuple[str, ...]:
        return tuple(accessor.key for accessor in self._accessors.get(field, ()) if isinstance(accessor, KeyAccessor))

    def resolve(self, document: Mapping[str, Any], field: str) -> Any:
        return resolve_field(document, self._accessors.get(field, ()))

    def to_canonical(self, document: Mapping[str, Any]) -> Facility:
        raw_status = _text(self.resolve(document, "facility_status"))
        longitude, latitude = self._resolve_coordinates(document)
        return Facility(
            id=_text(self.resolve(document, "id")),
            facility_name=_text(self.resolve(document, "facility_name")),
            establishment_name=_text(self.resolve(document, "establishment_name")),
            governorate=_text(self.resolve(document, "governorate")),
            facility_status=self._status.normalize(raw_status),
            facility_status_raw=raw_status,
            facility_type_label=self._canonicalizer.canonicalize(self.resolve(document, "facility_type_label")),
            facility_owner=self._canonicalizer.canonicalize(self.resolve(document, "facility_owner")),
            facility_affiliation=self._canonicalizer.canonicalize(self.resolve(document, "facility_affiliation")),
            longitude=longitude,
            latitude=latitude,
            location=point_geometry(longitude, latitude) if longitude is not None and latitude is not None else None,
            created_at=parse_timestamp(self.resolve(document, "created_at")),
            updated_at=parse_timestamp(self.resolve(document, "updated_at")),
            created_by=_text(self.resolve(document, "created_by")) or None,
            last_edited_by=_text(self.resolve(document, "last_edited_by")) or None,
        )

    def to_backend_form(
        self,
        payload: Facility | Mapping[str, Any],
        existing: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Build the document written to the backend.

        With ``existing`` (the stored document an update patches), every legacy
        alias key still present on it is written as ``None`` so that a blank
        modern value does not fall through to a stale legacy one on read.
        """
        facility = payload if isinstance(payload, Facility) else self.to_canonical(payload)
        raw_status = facility.facility_status_raw
        if not raw_status or raw_status in CANONICAL_STATUSES:
            raw_status = self._status.backend_value(facility.facility_status)
        names = BACKEND_FIELD_NAMES
        document: dict[str, Any] = {
            names["facility_name"]: facility.facility_name,
            names["establishment_name"]: facility.establishment_name,
            names["governorate"]: facility.governorate,
            names["facility_status"]: raw_status,
            names["facility_type_label"]: self._canonicalizer.canonicalize(facility.facility_type_label),
            names["facility_owner"]: self._canonicalizer.canonicalize(facility.facility_owner),
            names["facility_affiliation"]: self._canonicalizer.canonicalize(facility.facility_affiliation),
            names["longitude"]: facility.longitude if facility.has_coordinates else None,
            names["latitude"]: facility.latitude if facility.has_coordinates else None,
            names["location"]: (
                point_geometry(facility.longitude, facility.latitude) if facility.has_coordinates else None
            ),
        }
        if facility.created_at is not None:
            document[names["created_at"]] = facility.created_at.isoformat()
        if facility.updated_at is not None:
            document[names["updated_at"]] = facility.updated_at.isoformat()
        if facility.created_by:
            document[names["created_by"]] = facility.created_by
        if facility.last_edited_by:
            document[names["last_edited_by"]] = facility.last_edited_by
        if existing is not None:
            document.update(self.stale_aliases(existing))
        return document

    def stale_aliases(self, existing: Mapping[str, Any]) -> dict[str, None]:
        modern = set(BACKEND_FIELD_NAMES.values())
        legacy = {key for field in BACKEND_FIELD_NAMES for key in self.field_keys(field)} | set(_GEOMETRY_KEYS)
        return {
            key: None
            for key in sorted(legacy - modern)
            if not key.startswith("$") and existing.get(key) is not None
        }

    def to_governorate(self, document: Mapping[str, Any]) -> Governorate:
        accessors = self._governorate_accessors
        name = _text(resolve_field(document, accessors["name"]))
        name_secondary = _text(resolve_field(document, accessors["name_secondary"]))
        if not name and not name_secondary:
            raise RecordMappingError("governorate document has no name in any language")
        return Governorate(
            id=_text(resolve_field(document, accessors["id"])) or name or name_secondary,
            name=name,
            name_secondary=name_secondary,
            boundary=parse_boundary(resolve_field(document, accessors["boundary"])),
        )

    def _resolve_coordinates(self, document: Mapping[str, Any]) -> tuple[float | None, float | None]:
        longitude = self._first_number(document, "longitude")
        latitude = self._first_number(document, "latitude")
        if longitude is None or latitude is None or not in_range(longitude, latitude):
            return None, None
        return longitude, latitude

    def _first_number(self, document: Mapping[str, Any], field: str) -> float | None:
        for accessor in self._accessors.get(field, ()):
            number = parse_number(accessor(document))
            if number is not None:
                return number
        return None


def parse_boundary(value: Any) -> dict[str, Any] | None:
    geometry = _parse_json_object(value)
    if geometry is None:
        return None
    if geometry.get("type") == "Feature":
        geometry = _parse_json_object(geometry.get("geometry"))
        if geometry is None:
            return None
    if geometry.get("type") not in _BOUNDARY_TYPES or not isinstance(geometry.get("coordinates"), list):
        return None
    return geometry


DEFAULT_MAPPER = FacilityRecordMapper()


def to_canonical(document: Mapping[str, Any]) -> Facility:
    return DEFAULT_MAPPER.to_canonical(document)


def to_backend_form(payload: Facility | Mapping[str, Any], existing: Mapping[str, Any] | None = None) -> dict[str, Any]:
    return DEFAULT_MAPPER.to_backend_form(payload, existing)
