"""Domain models for manifest import runs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class Priority(str, Enum):
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class RouteStatus(str, Enum):
    PLANNED = "PLANNED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class DeliveryStatus(str, Enum):
    PENDING = "PENDING"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    RETURNED = "RETURNED"


class DriverLookupStrategy(str, Enum):
    """Which driver field a tenant's manifests identify drivers by."""

    CPF = "CPF"
    PHONE = "PHONE"
    EXTERNAL_ID = "EXTERNAL_ID"


@dataclass(frozen=True, slots=True)
class RouteHeader:
    """Route-level data read from a manifest, alive only during one import."""

    name: str
    date: Union[datetime, str, None]
    driver_identifier: Optional[str] = None
    vehicle_plate: Optional[str] = None
    driver_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CandidateDelivery:
    """A recovered manifest line not yet tied to a canonical customer."""

    invoice_number: str
    customer_name: str
    customer_address_text: str
    volume: Decimal = Decimal("0")
    weight: Decimal = Decimal("0")
    value: Decimal = Decimal("0")
    priority: Priority = Priority.NORMAL
    product: Optional[str] = None
    salesperson_name: Optional[str] = None
    customer_document: Optional[str] = None


@dataclass(slots=True)
class ManifestRecovery:
    header: RouteHeader
    deliveries: list[CandidateDelivery]
    skipped_invoices: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Resolved:
    id: str


@dataclass(frozen=True, slots=True)
class Unresolved:
    """No record matched; the caller proceeds without an assignment."""


UNRESOLVED = Unresolved()

Resolution = Union[Resolved, Unresolved]


def resolved_id(resolution: Resolution) -> Optional[str]:
    return resolution.id if isinstance(resolution, Resolved) else None


@dataclass(frozen=True, slots=True)
class RouteGroup:
    """One route's worth of rows from a spreadsheet manifest."""

    header: RouteHeader
    deliveries: tuple[CandidateDelivery, ...]


@dataclass(frozen=True, slots=True)
class ImportFailure:
    route_label: str
    message: str


@dataclass(slots=True)
class ImportSummary:
    success_count: int = 0
    errors: list[ImportFailure] = field(default_factory=list)
    route_ids: list[str] = field(default_factory=list)
