# =============================================================================
# csc_core/models/entities.py
# Domain records for the service-centre ERP
# =============================================================================
"""
Typed records persisted by the record stores.

Every record converts to and from a flat ``dict`` keyed by the camelCase
column names used by the remote tables and the backup workbook. The
``from_record`` constructors follow an accept-and-coerce policy: missing or
empty cells become empty strings, zeros or empty lists instead of errors, so
partially filled spreadsheet rows still produce usable records.
"""

from __future__ import annotations
import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


SETTINGS_KEY = "current_config"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


class Privilege(str, Enum):
    MANAGE_USERS = "MANAGE_USERS"
    VIEW_REPORTS = "VIEW_REPORTS"
    MANAGE_CUSTOMERS = "MANAGE_CUSTOMERS"
    MANAGE_SERVICES = "MANAGE_SERVICES"
    MANAGE_JOBS = "MANAGE_JOBS"
    MANAGE_INVENTORY = "MANAGE_INVENTORY"


class JobStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


# =============================================================================
# COERCION HELPERS
# =============================================================================

def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def as_str(value: Any) -> str:
    """Coerce a cell to text; integral floats lose their '.0' suffix."""
    if _is_missing(value):
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def as_float(value: Any) -> float:
    if _is_missing(value) or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def as_int(value: Any, default: int = 0) -> int:
    if _is_missing(value) or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def as_list(value: Any) -> List[Any]:
    """Accept a list, a JSON-encoded list, or a comma separated string."""
    if _is_missing(value) or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError:
                decoded = None
            if isinstance(decoded, list):
                return decoded
        return [part.strip() for part in text.split(",") if part.strip()]
    return []


def as_enum(enum_cls, value: Any, default):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(as_str(value).strip().upper())
    except ValueError:
        return default


# =============================================================================
# RECORDS
# =============================================================================

@dataclass
class User:
    id: str
    username: str = ""
    email: str = ""
    password: str = ""  # bcrypt hash, never plaintext
    role: UserRole = UserRole.STAFF
    privileges: List[Privilege] = field(default_factory=list)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "password": self.password,
            "role": self.role.value,
            "privileges": [p.value for p in self.privileges],
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> User:
        privileges = []
        for raw in as_list(data.get("privileges")):
            privilege = as_enum(Privilege, raw, None)
            if privilege is not None and privilege not in privileges:
                privileges.append(privilege)
        return cls(
            id=as_str(data.get("id")),
            username=as_str(data.get("username")),
            email=as_str(data.get("email")),
            password=as_str(data.get("password")),
            role=as_enum(UserRole, data.get("role"), UserRole.STAFF),
            privileges=privileges,
        )


@dataclass
class Customer:
    id: str
    name: str = ""
    phone: str = ""
    aadhaar_number: str = ""
    address: str = ""
    created_at: str = ""

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "aadhaarNumber": self.aadhaar_number,
            "address": self.address,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> Customer:
        return cls(
            id=as_str(data.get("id")),
            name=as_str(data.get("name")),
            phone=as_str(data.get("phone")),
            aadhaar_number="".join(as_str(data.get("aadhaarNumber")).split()),
            address=as_str(data.get("address")),
            created_at=as_str(data.get("createdAt")),
        )


@dataclass
class Service:
    id: str
    name: str = ""
    description: str = ""
    base_price: float = 0.0
    category: str = ""

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "basePrice": self.base_price,
            "category": self.category,
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> Service:
        return cls(
            id=as_str(data.get("id")),
            name=as_str(data.get("name")),
            description=as_str(data.get("description")),
            base_price=as_float(data.get("basePrice")),
            category=as_str(data.get("category")),
        )


@dataclass
class JobItem:
    service_id: str = ""
    quantity: int = 1
    unit_price: float = 0.0
    discount: float = 0.0
    subtotal: float = 0.0
    status: JobStatus = JobStatus.PENDING

    def to_record(self) -> Dict[str, Any]:
        return {
            "serviceId": self.service_id,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "discount": self.discount,
            "subtotal": self.subtotal,
            "status": self.status.value,
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> JobItem:
        return cls(
            service_id=as_str(data.get("serviceId")),
            quantity=as_int(data.get("quantity"), default=1),
            unit_price=as_float(data.get("unitPrice")),
            discount=as_float(data.get("discount")),
            subtotal=as_float(data.get("subtotal")),
            status=as_enum(JobStatus, data.get("status"), JobStatus.PENDING),
        )


@dataclass
class Job:
    id: str
    customer_id: str = ""
    items: List[JobItem] = field(default_factory=list)
    status: JobStatus = JobStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    discount: float = 0.0
    total_amount: float = 0.0
    paid_amount: float = 0.0
    balance: float = 0.0
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "items": [item.to_record() for item in self.items],
            "status": self.status.value,
            "paymentStatus": self.payment_status.value,
            "discount": self.discount,
            "totalAmount": self.total_amount,
            "paidAmount": self.paid_amount,
            "balance": self.balance,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> Job:
        items = [
            JobItem.from_record(raw)
            for raw in as_list(data.get("items"))
            if isinstance(raw, dict)
        ]
        return cls(
            id=as_str(data.get("id")),
            customer_id=as_str(data.get("customerId")),
            items=items,
            status=as_enum(JobStatus, data.get("status"), JobStatus.PENDING),
            payment_status=as_enum(
                PaymentStatus, data.get("paymentStatus"), PaymentStatus.UNPAID
            ),
            discount=as_float(data.get("discount")),
            total_amount=as_float(data.get("totalAmount")),
            paid_amount=as_float(data.get("paidAmount")),
            balance=as_float(data.get("balance")),
            notes=as_str(data.get("notes")),
            created_at=as_str(data.get("createdAt")),
            updated_at=as_str(data.get("updatedAt")),
        )


@dataclass
class InventoryItem:
    id: str
    name: str = ""
    quantity: int = 0
    unit: str = "Units"
    min_stock: int = 5
    category: str = ""
    last_updated: str = ""

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_stock

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "minStock": self.min_stock,
            "category": self.category,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> InventoryItem:
        return cls(
            id=as_str(data.get("id")),
            name=as_str(data.get("name")),
            quantity=as_int(data.get("quantity")),
            unit=as_str(data.get("unit")) or "Units",
            min_stock=as_int(data.get("minStock"), default=5),
            category=as_str(data.get("category")),
            last_updated=as_str(data.get("lastUpdated")),
        )


@dataclass
class CompanySettings:
    """Singleton company profile; always stored under SETTINGS_KEY."""
    company_name: str = ""
    mobile_number: str = ""
    address: str = ""
    owner_name: str = ""
    email: str = ""
    website: str = ""

    @property
    def id(self) -> str:
        return SETTINGS_KEY

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": SETTINGS_KEY,
            "companyName": self.company_name,
            "mobileNumber": self.mobile_number,
            "address": self.address,
            "ownerName": self.owner_name,
            "email": self.email,
            "website": self.website,
        }

    @classmethod
    def from_record(cls, data: Dict[str, Any]) -> CompanySettings:
        return cls(
            company_name=as_str(data.get("companyName")),
            mobile_number=as_str(data.get("mobileNumber")),
            address=as_str(data.get("address")),
            owner_name=as_str(data.get("ownerName")),
            email=as_str(data.get("email")),
            website=as_str(data.get("website")),
        )


DEFAULT_SETTINGS = CompanySettings(
    company_name="Regal Jan Seva Kendra",
    mobile_number="+91 98765 43210",
    address="Shop No. 12, Main Market Road, Near Tehsil Office, Regal Chowk, India",
    owner_name="Admin User",
    email="contact@regaljsk.com",
    website="www.regaljsk.com",
)

SERVICE_CATEGORIES = [
    "UIDAI (Aadhaar)", "UTI/IT (PAN/ITR)", "Banking (AePS/DMT)", "G2C (Certificates)",
    "Bill Payments", "Insurance", "Travel (IRCTC/Bus)", "Education",
    "Health", "Agriculture", "Voter/Election", "Other",
]

DEFAULT_SERVICES = [
    Service(id="s1", name="Aadhaar Update", description="Demographic or biometric update",
            base_price=50.0, category="UIDAI (Aadhaar)"),
    Service(id="s2", name="PAN Card Application", description="New PAN or correction",
            base_price=107.0, category="UTI/IT (PAN/ITR)"),
    Service(id="s3", name="Income Certificate", description="State G2C certificate filing",
            base_price=30.0, category="G2C (Certificates)"),
    Service(id="s4", name="Electricity Bill Payment", description="BBPS bill collection",
            base_price=10.0, category="Bill Payments"),
    Service(id="s5", name="Railway Ticket Booking", description="IRCTC e-ticket",
            base_price=40.0, category="Travel (IRCTC/Bus)"),
]


