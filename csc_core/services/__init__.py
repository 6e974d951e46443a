# =============================================================================
# csc_core/services/__init__.py
# Service Layer for the CSC ERP
# Separates business rules from the Streamlit page
# =============================================================================
"""
Service Layer for the CSC ERP

Services validate input, call the record stores, and report outcomes as
ServiceResult objects instead of raising into the UI.

Usage Example:
-------------
    from csc_core.database import Database
    from csc_core.services import CustomerService, JobService

    db = Database(load_config())
    customers = CustomerService(db.customers)
    result = customers.register(customer)
    if not result.success:
        st.error(result.error)
"""

from .base_service import BaseService, ServiceResult, new_record_id
from .catalog_service import CatalogService
from .customer_service import CustomerService
from .inventory_service import InventoryService
from .job_service import JobService, JobTask
from .report_service import ReportService, DashboardStats
from .user_service import UserService

__all__ = [
    # Base classes
    "BaseService",
    "ServiceResult",
    "new_record_id",
    # Domain services
    "UserService",
    "CustomerService",
    "CatalogService",
    "InventoryService",
    "JobService",
    "JobTask",
    "ReportService",
    "DashboardStats",
]
