"""Clients for external services."""

from facility_registry.clients.baas_client import BaasClient

__all__ = ["BaasClient"]
