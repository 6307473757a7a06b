"""Registry service over the document backend."""

from facility_registry.services.registry_service import CollectionIds, FacilityRegistryService, SaveContext

__all__ = ["CollectionIds", "FacilityRegistryService", "SaveContext"]
