"""Manifest import request/response schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..models.domain import CandidateDelivery, ImportSummary, Priority, RouteHeader
from .routes import RouteModel


class DeliveryImportModel(BaseModel):
    invoice_number: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_address: str = ""
    customer_document: Optional[str] = Field(default=None, description="CNPJ or CPF, masked or digits only.")
    volume: Decimal = Field(default=Decimal("0"), ge=0)
    weight: Decimal = Field(default=Decimal("0"), ge=0)
    value: Decimal = Field(default=Decimal("0"), ge=0)
    priority: Priority = Priority.NORMAL
    product: Optional[str] = None
    salesperson_name: Optional[str] = None

    def to_candidate(self) -> CandidateDelivery:
        return CandidateDelivery(
            invoice_number=self.invoice_number,
            customer_name=self.customer_name,
            customer_address_text=self.customer_address,
            volume=self.volume,
            weight=self.weight,
            value=self.value,
            priority=self.priority,
            product=self.product,
            salesperson_name=self.salesperson_name,
            customer_document=self.customer_document,
        )


class RouteImportRequest(BaseModel):
    """A route already split into fields by the client."""

    tenant_id: str = Field(..., min_length=1)
    name: str
    date: Union[datetime, str] = Field(..., description="ISO date/datetime or DD/MM/YYYY.")
    driver_identifier: Optional[str] = Field(default=None, description="CPF, phone or external id, per tenant setup.")
    vehicle_plate: Optional[str] = None
    deliveries: List[DeliveryImportModel] = Field(default_factory=list)

    def to_header(self) -> RouteHeader:
        return RouteHeader(
            name=self.name,
            date=self.date,
            driver_identifier=self.driver_identifier,
            vehicle_plate=self.vehicle_plate,
        )

    def to_candidates(self) -> List[CandidateDelivery]:
        return [delivery.to_candidate() for delivery in self.deliveries]


class RouteImportResponse(BaseModel):
    route: RouteModel
    delivery_count: int
    skipped_invoices: List[str] = Field(default_factory=list)


class ImportFailureModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    route_label: str = Field(..., alias="routeLabel")
    message: str


class ImportSummaryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success_count: int = Field(..., alias="successCount")
    errors: List[ImportFailureModel]
    route_ids: List[str] = Field(..., alias="routeIds")

    @classmethod
    def from_summary(cls, summary: ImportSummary) -> "ImportSummaryResponse":
        return cls(
            success_count=summary.success_count,
            errors=[ImportFailureModel(route_label=item.route_label, message=item.message) for item in summary.errors],
            route_ids=list(summary.route_ids),
        )


class LayoutModel(BaseModel):
    name: str
    description: str
    row_style: str
    default: bool = False
