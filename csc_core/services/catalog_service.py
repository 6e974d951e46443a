# =============================================================================
# csc_core/services/catalog_service.py
# Catalog Service - the priced list of services offered at the counter
# =============================================================================

from __future__ import annotations
from typing import List

from .base_service import BaseService, ServiceResult, new_record_id
from csc_core.models import Service, validate_service
from csc_core.offline.record_store import RecordStore


class CatalogService(BaseService):
    """
    Usage:
        catalog = CatalogService(db.services)
        result = catalog.save_service(Service(id="", name="PAN Card", base_price=107.0))
    """

    def __init__(self, services: RecordStore[Service]):
        super().__init__()
        self._services = services

    def save_service(self, service: Service) -> ServiceResult:
        """Validate and save a catalog entry; new entries get an id."""
        def _save():
            if not service.id:
                service.id = new_record_id("s")
            validate_service(service)
            return self._services.save(service)

        return self.safe_execute("Saving service", _save)

    def delete_service(self, service_id: str) -> ServiceResult:
        def _delete():
            self._services.delete(service_id)
            return service_id

        return self.safe_execute("Deleting service", _delete)

    def search(self, query: str = "", category: str = "All") -> List[Service]:
        """Name/description match, optionally restricted to one category."""
        needle = (query or "").strip().lower()
        return [
            s for s in self._services.all()
            if (category == "All" or s.category == category)
            and (not needle or needle in s.name.lower() or needle in s.description.lower())
        ]
