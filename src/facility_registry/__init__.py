"""Facility registry core: canonical records, filtering and aggregation over a document backend."""

from facility_registry.core import (
    FacilityRecordMapper,
    LabelCanonicalizer,
    StatusNormalizer,
    build_stats,
    canonicalize,
    compile_filter,
    derive_reference_options,
    matches_filter,
    normalize_status,
    to_backend_form,
    to_canonical,
)
from facility_registry.services import CollectionIds, FacilityRegistryService, SaveContext

__all__ = [
    "CollectionIds",
    "FacilityRecordMapper",
    "FacilityRegistryService",
    "LabelCanonicalizer",
    "SaveContext",
    "StatusNormalizer",
    "build_stats",
    "canonicalize",
    "compile_filter",
    "derive_reference_options",
    "matches_filter",
    "normalize_status",
    "to_backend_form",
    "to_canonical",
]
