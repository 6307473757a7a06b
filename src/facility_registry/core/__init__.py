"""Facility normalization, filtering and aggregation pipeline."""

from facility_registry.core.filters import (
    QueryConstraint,
    RawValueIndex,
    apply_constraints,
    compile_filter,
    matches_filter,
)
from facility_registry.core.labels import LabelCanonicalizer, canonicalize
from facility_registry.core.mapper import FacilityRecordMapper, to_backend_form, to_canonical
from facility_registry.core.models import (
    EditLogEntry,
    Facility,
    FilterSpecification,
    Governorate,
    ListResult,
    ReferenceOptions,
    Stats,
    TimelinePoint,
)
from facility_registry.core.stats import build_stats, derive_reference_options
from facility_registry.core.status import StatusNormalizer, StatusVocabulary, normalize_status

__all__ = [
    "EditLogEntry",
    "Facility",
    "FacilityRecordMapper",
    "FilterSpecification",
    "Governorate",
    "LabelCanonicalizer",
    "ListResult",
    "QueryConstraint",
    "RawValueIndex",
    "ReferenceOptions",
    "Stats",
    "StatusNormalizer",
    "StatusVocabulary",
    "TimelinePoint",
    "apply_constraints",
    "build_stats",
    "canonicalize",
    "compile_filter",
    "derive_reference_options",
    "matches_filter",
    "normalize_status",
    "to_backend_form",
    "to_canonical",
]
