from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from facility_registry.core.labels import DEFAULT_CANONICALIZER, LabelCanonicalizer
from facility_registry.core.models import (
    CANONICAL_STATUSES,
    STATUS_NOT_OPERATIONAL,
    STATUS_OPERATIONAL,
    STATUS_PARTIALLY_OPERATIONAL,
    STATUS_UNKNOWN,
    Facility,
    ReferenceOptions,
    Stats,
    TimelinePoint,
)
from facility_registry.core.status import DEFAULT_STATUS_NORMALIZER, StatusNormalizer

UNKNOWN_BUCKET = "Unknown"

OWNER_CATEGORY_NGO = "NGO/INGO"
OWNER_CATEGORY_PRIVATE = "Private"
OWNER_CATEGORY_PUBLIC = "Public"
OWNER_CATEGORY_OTHER = "Other"


@dataclass(frozen=True)
class OwnerCategoryRules:
    """Ordered keyword rules; the first category with a matching keyword wins.

    NGO keywords are checked before public ones so that "non-governmental"
    does not fall into the public bucket.
    """

    rules: tuple[tuple[str, tuple[str, ...]], ...] = (
        (
            OWNER_CATEGORY_NGO,
            ("ngo", "ingo", "non-governmental", "non governmental", "organization", "organisation", "منظمة"),
        ),
        (OWNER_CATEGORY_PRIVATE, ("private", "خاص", "أهلي")),
        (
            OWNER_CATEGORY_PUBLIC,
            ("ministry", "moh", "government", "governmental", "public", "وزارة", "حكوم"),
        ),
    )
    fallback: str = OWNER_CATEGORY_OTHER

    def categorize(self, owner: str | None) -> str:
        lowered = (owner or "").lower()
        if not lowered.strip():
            return self.fallback
        for category, keywords in self.rules:
            if any(keyword in lowered for keyword in keywords):
                return category
        return self.fallback


DEFAULT_OWNER_RULES = OwnerCategoryRules()


def _count(values: Iterable[str]) -> dict[str, int]:
    return dict(Counter(value or UNKNOWN_BUCKET for value in values))


def build_timeline(facilities: Iterable[Facility]) -> list[TimelinePoint]:
    months = Counter(
        facility.created_at.strftime("%Y-%m") for facility in facilities if facility.created_at is not None
    )
    return [TimelinePoint(month=month, count=months[month]) for month in sorted(months)]


def build_stats(
    facilities: Sequence[Facility],
    status_normalizer: StatusNormalizer | None = None,
    owner_rules: OwnerCategoryRules | None = None,
) -> Stats:
    status = status_normalizer or DEFAULT_STATUS_NORMALIZER
    rules = owner_rules or DEFAULT_OWNER_RULES
    statuses = [status.normalize(facility.facility_status) for facility in facilities]
    buckets = Counter(statuses)
    updated = [facility.updated_at for facility in facilities if facility.updated_at is not None]
    return Stats(
        total=len(facilities),
        by_governorate=_count(facility.governorate for facility in facilities),
        by_type=_count(facility.facility_type_label for facility in facilities),
        by_status=dict(buckets),
        by_owner=_count(facility.facility_owner for facility in facilities),
        by_owner_category=dict(Counter(rules.categorize(facility.facility_owner) for facility in facilities)),
        by_affiliation=_count(facility.facility_affiliation for facility in facilities),
        timeline=build_timeline(facilities),
        operational=buckets[STATUS_OPERATIONAL],
        partially_operational=buckets[STATUS_PARTIALLY_OPERATIONAL],
        not_operational=buckets[STATUS_NOT_OPERATIONAL],
        unknown=buckets[STATUS_UNKNOWN],
        last_updated=max(updated) if updated else None,
    )


def _distinct(values: Iterable[str], canonicalizer: LabelCanonicalizer) -> list[str]:
    seen: dict[str, str] = {}
    for value in values:
        label = canonicalizer.canonicalize(value)
        if label:
            seen.setdefault(label.casefold(), label)
    return sorted(seen.values(), key=str.casefold)


def derive_reference_options(
    facilities: Iterable[Facility],
    presets: ReferenceOptions | None = None,
    canonicalizer: LabelCanonicalizer | None = None,
) -> ReferenceOptions:
    canonicalizer = canonicalizer or DEFAULT_CANONICALIZER
    presets = presets or ReferenceOptions()
    items = list(facilities)
    present_statuses = {facility.facility_status for facility in items} | set(presets.statuses)
    return ReferenceOptions(
        facility_types=_distinct(
            [*presets.facility_types, *(facility.facility_type_label for facility in items)], canonicalizer
        ),
        owners=_distinct([*presets.owners, *(facility.facility_owner for facility in items)], canonicalizer),
        affiliations=_distinct(
            [*presets.affiliations, *(facility.facility_affiliation for facility in items)], canonicalizer
        ),
        statuses=[token for token in CANONICAL_STATUSES if token in present_statuses],
    )
