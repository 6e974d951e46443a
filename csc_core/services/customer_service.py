# =============================================================================
# csc_core/services/customer_service.py
# Customer Service - registration, edits and lookup
# =============================================================================

from __future__ import annotations
from datetime import datetime
from typing import List

from .base_service import BaseService, ServiceResult
from csc_core.models import Customer, validate_customer
from csc_core.offline.record_store import RecordStore


class CustomerService(BaseService):
    """
    Service for the customer directory.

    Usage:
        service = CustomerService(db.customers)
        result = service.register(Customer(id="c1", name="Asha", aadhaar_number="..."))
        if not result:
            st.error(result.error)
    """

    def __init__(self, customers: RecordStore[Customer]):
        super().__init__()
        self._customers = customers

    def register(self, customer: Customer) -> ServiceResult:
        """
        Validate and save a new customer, stamping ``createdAt``.

        Returns:
            ServiceResult with the saved Customer
        """
        def _register():
            validate_customer(customer)
            if not customer.created_at:
                customer.created_at = datetime.now().isoformat()
            saved = self._customers.save(customer)
            self.logger.info(f"Registered customer {saved.id}")
            return saved

        return self.safe_execute("Registering customer", _register)

    def update(self, customer: Customer) -> ServiceResult:
        """Validate and save an existing customer, keeping its ``createdAt``."""
        def _update():
            validate_customer(customer)
            if not customer.created_at:
                existing = self._customers.get(customer.id)
                customer.created_at = existing.created_at if existing else datetime.now().isoformat()
            return self._customers.save(customer)

        return self.safe_execute("Updating customer", _update)

    def search(self, query: str) -> List[Customer]:
        """Case-insensitive match on name, phone or Aadhaar number."""
        customers = self._customers.all()
        needle = (query or "").strip().lower()
        if not needle:
            return customers
        digits = "".join(needle.split())
        return [
            c for c in customers
            if needle in c.name.lower()
            or needle in c.phone.lower()
            or (digits and digits in c.aadhaar_number)
        ]
