"""SQLAlchemy models for the tenant data touched by manifest imports."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from .domain import DeliveryStatus, Priority, RouteStatus


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255))
    config: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class Driver(Base):
    __tablename__ = "drivers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255))
    cpf: Mapped[Optional[str]] = mapped_column(String(20))
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    external_id: Mapped[Optional[str]] = mapped_column(String(64))

    __table_args__ = (Index("idx_drivers_tenant_cpf", "tenant_id", "cpf"),)


class Vehicle(Base):
    __tablename__ = "vehicles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id"), nullable=False)
    plate: Mapped[str] = mapped_column(String(20))
    model: Mapped[Optional[str]] = mapped_column(String(100))

    __table_args__ = (Index("idx_vehicles_tenant_plate", "tenant_id", "plate"),)


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id"), nullable=False)
    legal_name: Mapped[str] = mapped_column(String(255))
    trade_name: Mapped[str] = mapped_column(String(255))
    cnpj: Mapped[str] = mapped_column(String(20))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(String(20), default="ACTIVE")
    address_details: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    # {"lat": 0, "lng": 0} means the location was never geocoded
    location: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_customers_tenant_cnpj", "tenant_id", "cnpj"),
        Index("idx_customers_tenant_trade_name", "tenant_id", "trade_name"),
    )


class Route(Base):
    __tablename__ = "routes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255))
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), default=RouteStatus.PLANNED.value)
    driver_id: Mapped[Optional[str]] = mapped_column(ForeignKey("drivers.id"))
    vehicle_id: Mapped[Optional[str]] = mapped_column(ForeignKey("vehicles.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    deliveries: Mapped[List["Delivery"]] = relationship(
        back_populates="route",
        cascade="all, delete-orphan",
        order_by="Delivery.sequence",
    )

    __table_args__ = (Index("idx_routes_tenant_date", "tenant_id", "date"),)


class Delivery(Base):
    __tablename__ = "deliveries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    route_id: Mapped[str] = mapped_column(ForeignKey("routes.id"), nullable=False)
    customer_id: Mapped[str] = mapped_column(ForeignKey("customers.id"), nullable=False)
    driver_id: Mapped[Optional[str]] = mapped_column(ForeignKey("drivers.id"))
    sequence: Mapped[int] = mapped_column(Integer, default=0)
    invoice_number: Mapped[str] = mapped_column(String(64))
    volume: Mapped[Decimal] = mapped_column(Numeric(14, 3), default=Decimal("0"))
    weight: Mapped[Decimal] = mapped_column(Numeric(14, 3), default=Decimal("0"))
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    priority: Mapped[str] = mapped_column(String(10), default=Priority.NORMAL.value)
    product: Mapped[Optional[str]] = mapped_column(String(255))
    salesperson: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), default=DeliveryStatus.PENDING.value)
    proof_of_delivery: Mapped[Optional[str]] = mapped_column(Text)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    route: Mapped[Route] = relationship(back_populates="deliveries")
    customer: Mapped["Customer"] = relationship()

    __table_args__ = (
        Index("idx_deliveries_route", "route_id"),
        Index("idx_deliveries_customer", "customer_id"),
    )
