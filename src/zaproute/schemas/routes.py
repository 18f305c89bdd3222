"""Imported route read models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from ..models.tables import Delivery, Route


class DeliveryModel(BaseModel):
    id: str
    sequence: int
    invoice_number: str
    customer_id: str
    customer_name: Optional[str] = None
    driver_id: Optional[str] = None
    volume: float
    weight: float
    value: float
    priority: str
    status: str
    product: Optional[str] = None
    salesperson: Optional[str] = None


class RouteModel(BaseModel):
    id: str
    tenant_id: str
    name: str
    date: datetime
    status: str
    driver_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    delivery_count: int
    deliveries: List[DeliveryModel]


class RouteListResponse(BaseModel):
    tenant_id: str
    days: int
    total: int
    routes: List[RouteModel]


def delivery_model(delivery: Delivery, *, with_customer: bool = False) -> DeliveryModel:
    return DeliveryModel(
        id=delivery.id,
        sequence=delivery.sequence,
        invoice_number=delivery.invoice_number,
        customer_id=delivery.customer_id,
        customer_name=delivery.customer.trade_name if with_customer and delivery.customer else None,
        driver_id=delivery.driver_id,
        volume=float(delivery.volume or 0),
        weight=float(delivery.weight or 0),
        value=float(delivery.value or 0),
        priority=delivery.priority,
        status=delivery.status,
        product=delivery.product,
        salesperson=delivery.salesperson,
    )


def route_model(route: Route, *, with_customers: bool = False) -> RouteModel:
    """Serialize a route; ``with_customers`` needs the customers loaded or a live session."""
    deliveries = sorted(route.deliveries, key=lambda item: item.sequence)
    return RouteModel(
        id=route.id,
        tenant_id=route.tenant_id,
        name=route.name,
        date=route.date,
        status=route.status,
        driver_id=route.driver_id,
        vehicle_id=route.vehicle_id,
        delivery_count=len(deliveries),
        deliveries=[delivery_model(item, with_customer=with_customers) for item in deliveries],
    )
