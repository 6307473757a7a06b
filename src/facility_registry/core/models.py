from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

STATUS_OPERATIONAL = "operational"
STATUS_PARTIALLY_OPERATIONAL = "partially_operational"
STATUS_NOT_OPERATIONAL = "not_operational"
STATUS_UNKNOWN = "unknown"

CANONICAL_STATUSES = (
    STATUS_OPERATIONAL,
    STATUS_PARTIALLY_OPERATIONAL,
    STATUS_NOT_OPERATIONAL,
    STATUS_UNKNOWN,
)

EDIT_STATUSES = ("pending", "approved", "rejected")

ResultSource = Literal["live", "fallback"]


@dataclass(frozen=True)
class Facility:
    id: str
    facility_name: str
    establishment_name: str = ""
    governorate: str = ""
    facility_status: str = STATUS_UNKNOWN
    facility_status_raw: str = ""
    facility_type_label: str = ""
    facility_owner: str = ""
    facility_affiliation: str = ""
    longitude: float | None = None
    latitude: float | None = None
    location: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None
    last_edited_by: str | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.longitude is not None and self.latitude is not None


@dataclass(frozen=True)
class Governorate:
    id: str
    name: str
    name_secondary: str = ""
    boundary: dict[str, Any] | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.name_secondary


def _frozen(values: Iterable[str] | None) -> frozenset[str]:
    if not values:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(value for value in values if value and value.strip())


@dataclass(frozen=True)
class FilterSpecification:
    search_term: str = ""
    governorate: str = ""
    statuses: frozenset[str] = frozenset()
    facility_types: frozenset[str] = frozenset()
    owners: frozenset[str] = frozenset()
    affiliations: frozenset[str] = frozenset()

    @classmethod
    def build(
        cls,
        search_term: str | None = None,
        governorate: str | None = None,
        statuses: Iterable[str] | None = None,
        facility_types: Iterable[str] | None = None,
        owners: Iterable[str] | None = None,
        affiliations: Iterable[str] | None = None,
    ) -> FilterSpecification:
        return cls(
            search_term=search_term or "",
            governorate=governorate or "",
            statuses=_frozen(statuses),
            facility_types=_frozen(facility_types),
            owners=_frozen(owners),
            affiliations=_frozen(affiliations),
        )

    @property
    def normalized_search(self) -> str:
        """Lowercased search term, empty when it is too short to apply."""
        term = self.search_term.strip().lower()
        return term if len(term) > 1 else ""

    @property
    def is_empty(self) -> bool:
        return not (
            self.normalized_search
            or self.governorate.strip()
            or self.statuses
            or self.facility_types
            or self.owners
            or self.affiliations
        )


@dataclass(frozen=True)
class EditLogEntry:
    facility_id: str
    user_id: str
    action: str
    changes: dict[str, Any]
    status: str
    timestamp: datetime
    id: str | None = None
    user_name: str | None = None
    admin_notes: str = ""


@dataclass(frozen=True)
class ListResult:
    source: ResultSource
    documents: list[Facility]
    total: int
    error: str | None = None

    @property
    def is_degraded(self) -> bool:
        return self.source == "fallback"


@dataclass(frozen=True)
class TimelinePoint:
    month: str
    count: int


@dataclass(frozen=True)
class Stats:
    total: int
    by_governorate: dict[str, int]
    by_type: dict[str, int]
    by_status: dict[str, int]
    by_owner: dict[str, int]
    by_owner_category: dict[str, int]
    by_affiliation: dict[str, int]
    timeline: list[TimelinePoint]
    operational: int
    partially_operational: int
    not_operational: int
    unknown: int
    last_updated: datetime | None = None


@dataclass(frozen=True)
class ReferenceOptions:
    facility_types: list[str] = field(default_factory=list)
    owners: list[str] = field(default_factory=list)
    affiliations: list[str] = field(default_factory=list)
    statuses: list[str] = field(default_factory=list)
