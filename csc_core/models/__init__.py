# =============================================================================
# csc_core/models/__init__.py
# Domain records, derived aggregates and boundary validation
# =============================================================================

from csc_core.models.entities import (
    SETTINGS_KEY,
    UserRole,
    Privilege,
    JobStatus,
    PaymentStatus,
    User,
    Customer,
    Service,
    JobItem,
    Job,
    InventoryItem,
    CompanySettings,
    DEFAULT_SETTINGS,
    DEFAULT_SERVICES,
    SERVICE_CATEGORIES,
)

from csc_core.models.aggregates import (
    JobAggregates,
    line_subtotal,
    derive_job_aggregates,
    apply_job_aggregates,
)

from csc_core.models.validation import (
    normalize_aadhaar,
    validate_aadhaar,
    validate_user,
    validate_customer,
    validate_service,
    validate_job,
    validate_inventory_item,
)

__all__ = [
    "SETTINGS_KEY",
    "UserRole",
    "Privilege",
    "JobStatus",
    "PaymentStatus",
    "User",
    "Customer",
    "Service",
    "JobItem",
    "Job",
    "InventoryItem",
    "CompanySettings",
    "DEFAULT_SETTINGS",
    "DEFAULT_SERVICES",
    "SERVICE_CATEGORIES",
    "JobAggregates",
    "line_subtotal",
    "derive_job_aggregates",
    "apply_job_aggregates",
    "normalize_aadhaar",
    "validate_aadhaar",
    "validate_user",
    "validate_customer",
    "validate_service",
    "validate_job",
    "validate_inventory_item",
]
