# =============================================================================
# csc_core/models/validation.py
# Boundary validation applied before records reach a store
# =============================================================================

from __future__ import annotations
import re

from csc_core.errors import DataValidationError
from csc_core.models.entities import Customer, InventoryItem, Job, Service, User

AADHAAR_LENGTH = 12
_AADHAAR_PATTERN = re.compile(r"^\d{12}$")


def normalize_aadhaar(value: str) -> str:
    """Strip the grouping spaces the UI shows ('1234 5678 9012')."""
    return "".join((value or "").split())


def validate_aadhaar(value: str) -> str:
    """
    Validate an Aadhaar number. Empty is allowed; anything else must be
    exactly 12 digits.

    Returns:
        The normalized number
    """
    number = normalize_aadhaar(value)
    if number and not _AADHAAR_PATTERN.match(number):
        raise DataValidationError(
            "Aadhaar Number must be exactly 12 digits.",
            field="aadhaarNumber",
            expected=f"{AADHAAR_LENGTH} digits",
            actual=number,
        )
    return number


def validate_user(user: User) -> User:
    if not user.id:
        raise DataValidationError("User id is required", field="id")
    if not user.username or user.username != user.username.strip():
        raise DataValidationError(
            "Username is required and cannot start or end with spaces",
            field="username",
            actual=user.username,
        )
    return user


def validate_customer(customer: Customer) -> Customer:
    if not customer.id:
        raise DataValidationError("Customer id is required", field="id")
    if not customer.name.strip():
        raise DataValidationError("Customer name is required", field="name")
    customer.aadhaar_number = validate_aadhaar(customer.aadhaar_number)
    return customer


def validate_service(service: Service) -> Service:
    if not service.id:
        raise DataValidationError("Service id is required", field="id")
    if not service.name.strip():
        raise DataValidationError("Service name is mandatory", field="name")
    if service.base_price < 0:
        raise DataValidationError(
            "Base price cannot be negative",
            field="basePrice",
            expected=">= 0",
            actual=str(service.base_price),
        )
    return service


def validate_job(job: Job) -> Job:
    if not job.id:
        raise DataValidationError("Job id is required", field="id")
    if not job.customer_id:
        raise DataValidationError("Please select a customer", field="customerId")
    if not job.items:
        raise DataValidationError("Add at least one service to the job", field="items")
    for index, item in enumerate(job.items):
        if not item.service_id:
            raise DataValidationError(
                f"Line {index + 1} has no service", field=f"items[{index}].serviceId"
            )
        if item.quantity < 1:
            raise DataValidationError(
                f"Line {index + 1} quantity must be a positive integer",
                field=f"items[{index}].quantity",
                expected=">= 1",
                actual=str(item.quantity),
            )
        if item.unit_price < 0 or item.discount < 0:
            raise DataValidationError(
                f"Line {index + 1} price and discount cannot be negative",
                field=f"items[{index}]",
            )
    if job.paid_amount < 0 or job.discount < 0:
        raise DataValidationError("Amounts cannot be negative", field="paidAmount")
    return job


def validate_inventory_item(item: InventoryItem) -> InventoryItem:
    if not item.id:
        raise DataValidationError("Inventory item id is required", field="id")
    if not item.name.strip():
        raise DataValidationError("Item name is required", field="name")
    if item.quantity < 0 or item.min_stock < 0:
        raise DataValidationError(
            "Quantity and minimum stock cannot be negative", field="quantity"
        )
    return item
