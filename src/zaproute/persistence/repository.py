"""Tenant-scoped data access used by manifest imports.

Every method runs inside the caller's session, so all reads and writes of one
import share a single transaction.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Protocol, Sequence

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..models.domain import DeliveryStatus, DriverLookupStrategy, Priority, RouteStatus
from ..models.tables import Customer, Delivery, Driver, Route, Tenant, Vehicle


class ImportRepository(Protocol):
    def get_tenant_config(self, tenant_id: str) -> dict[str, Any]: ...

    def find_driver_by_tenant_and_identifier(
        self, tenant_id: str, candidates: Sequence[str], strategy: DriverLookupStrategy
    ) -> Optional[Driver]: ...

    def find_vehicle_by_tenant_and_plate(self, tenant_id: str, candidates: Sequence[str]) -> Optional[Vehicle]: ...

    def find_customer_by_tenant_and_document(self, tenant_id: str, candidates: Sequence[str]) -> Optional[Customer]: ...

    def find_customer_by_tenant_and_name(self, tenant_id: str, name: str) -> Optional[Customer]: ...

    def create_customer(self, tenant_id: str, **fields: Any) -> Customer: ...

    def update_customer_address(self, customer: Customer, address_details: dict[str, Any]) -> Customer: ...

    def create_route(
        self,
        tenant_id: str,
        name: str,
        date: Any,
        driver_id: Optional[str],
        vehicle_id: Optional[str],
    ) -> Route: ...

    def create_delivery(self, route: Route, customer_id: str, driver_id: Optional[str], sequence: int, **fields: Any) -> Delivery: ...


class SqlAlchemyImportRepository:
    """``ImportRepository`` over a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_tenant_config(self, tenant_id: str) -> dict[str, Any]:
        tenant = self.session.get(Tenant, tenant_id)
        if tenant is None or not tenant.config:
            return {}
        return dict(tenant.config)

    def find_driver_by_tenant_and_identifier(
        self,
        tenant_id: str,
        candidates: Sequence[str],
        strategy: DriverLookupStrategy = DriverLookupStrategy.CPF,
    ) -> Optional[Driver]:
        values = [value for value in candidates if value]
        if not values:
            return None
        query = select(Driver).where(Driver.tenant_id == tenant_id)
        if strategy is DriverLookupStrategy.PHONE:
            # partial match tolerates a country-code prefix on stored phones
            query = query.where(or_(*[Driver.phone.contains(value) for value in values]))
        elif strategy is DriverLookupStrategy.EXTERNAL_ID:
            query = query.where(Driver.external_id.in_(values))
        else:
            query = query.where(Driver.cpf.in_(values))
        return self.session.scalars(query.limit(1)).first()

    def find_vehicle_by_tenant_and_plate(self, tenant_id: str, candidates: Sequence[str]) -> Optional[Vehicle]:
        values = [value for value in candidates if value]
        if not values:
            return None
        query = select(Vehicle).where(Vehicle.tenant_id == tenant_id, Vehicle.plate.in_(values)).limit(1)
        return self.session.scalars(query).first()

    def find_customer_by_tenant_and_document(self, tenant_id: str, candidates: Sequence[str]) -> Optional[Customer]:
        values = [value for value in candidates if value]
        if not values:
            return None
        query = (
            select(Customer)
            .where(Customer.tenant_id == tenant_id, Customer.cnpj.in_(values))
            .order_by(Customer.created_at)
            .limit(1)
        )
        return self.session.scalars(query).first()

    def find_customer_by_tenant_and_name(self, tenant_id: str, name: str) -> Optional[Customer]:
        if not name:
            return None
        query = (
            select(Customer)
            .where(
                Customer.tenant_id == tenant_id,
                or_(Customer.trade_name == name, Customer.legal_name == name),
            )
            .order_by(Customer.created_at)
            .limit(1)
        )
        return self.session.scalars(query).first()

    def create_customer(self, tenant_id: str, **fields: Any) -> Customer:
        customer = Customer(tenant_id=tenant_id, **fields)
        self.session.add(customer)
        self.session.flush()
        return customer

    def update_customer_address(self, customer: Customer, address_details: dict[str, Any]) -> Customer:
        customer.address_details = address_details
        self.session.flush()
        return customer

    def create_route(
        self,
        tenant_id: str,
        name: str,
        date: Any,
        driver_id: Optional[str] = None,
        vehicle_id: Optional[str] = None,
    ) -> Route:
        route = Route(
            tenant_id=tenant_id,
            name=name,
            date=date,
            status=RouteStatus.PLANNED.value,
            driver_id=driver_id,
            vehicle_id=vehicle_id,
            # an explicit empty list keeps the collection readable after the session closes
            deliveries=[],
        )
        self.session.add(route)
        self.session.flush()
        return route

    def create_delivery(
        self,
        route: Route,
        customer_id: str,
        driver_id: Optional[str],
        sequence: int,
        *,
        invoice_number: str,
        volume: Decimal = Decimal("0"),
        weight: Decimal = Decimal("0"),
        value: Decimal = Decimal("0"),
        priority: Priority = Priority.NORMAL,
        product: Optional[str] = None,
        salesperson: Optional[str] = None,
    ) -> Delivery:
        delivery = Delivery(
            route=route,
            customer_id=customer_id,
            driver_id=driver_id,
            sequence=sequence,
            invoice_number=invoice_number,
            volume=volume,
            weight=weight,
            value=value,
            priority=Priority(priority).value,
            product=product,
            salesperson=salesperson,
            status=DeliveryStatus.PENDING.value,
        )
        self.session.add(delivery)
        self.session.flush()
        return delivery


def list_routes(session: Session, tenant_id: str, since: Any = None, options: Sequence[Any] = ()) -> list[Route]:
    query = select(Route).where(Route.tenant_id == tenant_id)
    if since is not None:
        query = query.where(Route.date >= since)
    query = query.options(*options).order_by(Route.date.desc(), Route.created_at.desc())
    return list(session.scalars(query))


def get_route(session: Session, route_id: str, options: Sequence[Any] = ()) -> Optional[Route]:
    return session.get(Route, route_id, options=list(options))


def get_driver(session: Session, driver_id: str) -> Optional[Driver]:
    return session.get(Driver, driver_id)
