"""Atomic, time-bounded import of one route and its deliveries."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from ...config import settings
from ...exceptions import BudgetExceeded, InvalidRouteHeader, TransactionFailure
from ...models.domain import CandidateDelivery, RouteHeader, resolved_id
from ...models.tables import Route
from ...persistence.repository import ImportRepository, SqlAlchemyImportRepository
from .identity import IdentityResolver, driver_strategy_from_config, normalize_identifier, normalize_plate

RepositoryFactory = Callable[[Session], ImportRepository]


def normalize_route_date(value: Any, pin_hour: int = 12) -> datetime:
    """Keep the calendar day of ``value`` and pin it to ``pin_hour``:00 UTC.

    Accepts datetimes, dates, ISO strings and ``DD/MM/YYYY`` strings.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidRouteHeader("date", value, "A route date is required.")

    day: Optional[date] = None
    if isinstance(value, datetime):
        day = value.date()
    elif isinstance(value, date):
        day = value
    else:
        raw = str(value).strip()
        try:
            day = datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError:
            parts = raw.split("/")
            if len(parts) == 3:
                try:
                    day = date(int(parts[2]), int(parts[1]), int(parts[0]))
                except ValueError:
                    day = None
    if day is None:
        logging.error(f"Invalid route date received: {value}")
        raise InvalidRouteHeader(
            "date",
            value,
            f'Invalid date: "{value}". Use the YYYY-MM-DD or DD/MM/YYYY format.',
        )
    return datetime(day.year, day.month, day.day, pin_hour, tzinfo=timezone.utc)


class ImportBudget:
    """Two independent wall-clock budgets: waiting for a connection, then running the transaction."""

    def __init__(
        self,
        route_name: str,
        acquire_seconds: float,
        execution_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.route_name = route_name
        self.acquire_seconds = acquire_seconds
        self.execution_seconds = execution_seconds
        self._clock = clock
        self._started = clock()
        self._acquired: Optional[float] = None

    def mark_acquired(self) -> None:
        now = self._clock()
        if now - self._started > self.acquire_seconds:
            raise BudgetExceeded(self.route_name, "connection acquisition", self.acquire_seconds)
        self._acquired = now

    def check(self) -> None:
        origin = self._acquired if self._acquired is not None else self._started
        if self._clock() - origin > self.execution_seconds:
            raise BudgetExceeded(self.route_name, "execution", self.execution_seconds)


@dataclass(slots=True)
class RouteImportResult:
    route: Route
    driver_id: Optional[str]
    vehicle_id: Optional[str]
    delivery_count: int
    skipped_invoices: list[str] = field(default_factory=list)


class RouteImportCoordinator:
    """Runs one route import as a single all-or-nothing transaction.

    Header validation happens before any connection is taken. Inside the
    transaction the driver and vehicle are resolved once, the route is
    created, then every candidate delivery is resolved to a customer and
    persisted in encounter order. Any failure rolls the whole route back.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        repository_factory: RepositoryFactory = SqlAlchemyImportRepository,
        *,
        acquire_timeout_seconds: Optional[float] = None,
        execution_timeout_seconds: Optional[float] = None,
        pin_hour: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session_factory = session_factory
        self.repository_factory = repository_factory
        self.acquire_timeout_seconds = (
            settings.import_acquire_timeout_seconds if acquire_timeout_seconds is None else acquire_timeout_seconds
        )
        self.execution_timeout_seconds = (
            settings.import_execution_timeout_seconds if execution_timeout_seconds is None else execution_timeout_seconds
        )
        self.pin_hour = settings.route_date_pin_hour_utc if pin_hour is None else pin_hour
        self.clock = clock

    def _begin(self, session: Session, budget: ImportBudget) -> None:
        try:
            session.connection()
        except PoolTimeoutError as exc:
            raise BudgetExceeded(budget.route_name, "connection acquisition", self.acquire_timeout_seconds) from exc
        budget.mark_acquired()
        if session.get_bind().dialect.name == "postgresql":
            # Lets the server cancel a statement stuck past the budget
            timeout_ms = int(self.execution_timeout_seconds * 1000)
            session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))

    def import_route(
        self,
        tenant_id: str,
        header: RouteHeader,
        deliveries: Sequence[CandidateDelivery],
    ) -> RouteImportResult:
        if not tenant_id:
            raise InvalidRouteHeader("tenant_id", tenant_id, "A tenant id is required.")
        route_name = (header.name or "").strip()
        if not route_name:
            raise InvalidRouteHeader("name", header.name, "A route name is required.")
        route_date = normalize_route_date(header.date, self.pin_hour)
        driver_identifier = normalize_identifier(header.driver_identifier) or None
        vehicle_plate = normalize_plate(header.vehicle_plate) or None

        logging.info(f"Starting import of route '{route_name}' with {len(deliveries)} deliveries (tenant {tenant_id})")
        budget = ImportBudget(route_name, self.acquire_timeout_seconds, self.execution_timeout_seconds, self.clock)
        session = self.session_factory()
        try:
            with session.begin():
                self._begin(session, budget)
                repository = self.repository_factory(session)
                resolver = IdentityResolver(repository)

                strategy = driver_strategy_from_config(repository.get_tenant_config(tenant_id))
                driver_id = resolved_id(resolver.resolve_driver(tenant_id, header.driver_identifier, strategy))
                vehicle_id = resolved_id(resolver.resolve_vehicle(tenant_id, header.vehicle_plate))
                budget.check()

                route = repository.create_route(tenant_id, route_name, route_date, driver_id, vehicle_id)
                for sequence, candidate in enumerate(deliveries, start=1):
                    budget.check()
                    customer_id = resolver.resolve_customer(tenant_id, candidate)
                    # deliveries inherit the route's driver
                    repository.create_delivery(
                        route,
                        customer_id,
                        driver_id,
                        sequence,
                        invoice_number=candidate.invoice_number,
                        volume=candidate.volume,
                        weight=candidate.weight,
                        value=candidate.value,
                        priority=candidate.priority,
                        product=candidate.product,
                        salesperson=candidate.salesperson_name,
                    )
                budget.check()
        except TransactionFailure as exc:
            logging.error(f"Import of route '{route_name}' rolled back: {exc.message}")
            raise
        except PoolTimeoutError as exc:
            logging.error(f"Import of route '{route_name}' could not get a database connection: {exc}")
            raise BudgetExceeded(route_name, "connection acquisition", self.acquire_timeout_seconds) from exc
        except Exception as exc:
            logging.exception(f"Import of route '{route_name}' failed and was rolled back: {exc}")
            raise TransactionFailure(route_name, exc) from exc
        finally:
            session.close()

        logging.info(
            f"Import completed: route {route.id} '{route_name}' "
            f"(driver={driver_identifier or '-'}:{driver_id or 'unassigned'}, "
            f"vehicle={vehicle_plate or '-'}:{vehicle_id or 'unassigned'})"
        )
        return RouteImportResult(
            route=route,
            driver_id=driver_id,
            vehicle_id=vehicle_id,
            delivery_count=len(deliveries),
        )
