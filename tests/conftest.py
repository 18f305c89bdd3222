from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from zaproute.db.session import make_session_factory
from zaproute.models.tables import Base, Customer, Driver, Tenant, Vehicle

TENANT_ID = "tenant-ce"
OTHER_TENANT_ID = "tenant-rn"


class StepClock:
    """Monotonic clock that advances ``step`` seconds on every read."""

    def __init__(self, step: float) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


class FakeTable:
    def __init__(self, rows: list) -> None:
        self.rows = rows

    def insert(self, row: dict) -> "FakeTable":
        self.rows.append(row)
        return self

    def execute(self):
        return self


class FakeSupabase:
    def __init__(self) -> None:
        self.rows: list[dict] = []
        self.tables: list[str] = []

    def table(self, name: str) -> FakeTable:
        self.tables.append(name)
        return FakeTable(self.rows)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def seeded(session_factory) -> dict:
    """Two tenants; only the first one owns the driver and vehicle used by most tests."""
    with session_factory() as session, session.begin():
        session.add_all(
            [
                Tenant(id=TENANT_ID, name="Transportes Ceará", config={}),
                Tenant(id=OTHER_TENANT_ID, name="Transportes Natal", config={}),
            ]
        )
        driver = Driver(
            tenant_id=TENANT_ID,
            name="João Silva",
            cpf="12345678900",
            phone="5585999990000",
            external_id="MOT-7",
        )
        foreign_driver = Driver(tenant_id=OTHER_TENANT_ID, name="Pedro Lima", cpf="11122233344", phone="5584988880000")
        vehicle = Vehicle(tenant_id=TENANT_ID, plate="ABC1D23", model="Volvo FH")
        customer = Customer(
            tenant_id=TENANT_ID,
            legal_name="Posto Central LTDA",
            trade_name="POSTO CENTRAL",
            cnpj="12.345.678/0001-90",
            email="contato@postocentral.com",
            phone="8532320000",
            address_details={"street": "Rua Antiga, 1", "source": "manual"},
            location={"lat": -3.73, "lng": -38.52, "address": "Rua Antiga, 1"},
        )
        session.add_all([driver, foreign_driver, vehicle, customer])
        session.flush()
        ids = {
            "driver_id": driver.id,
            "foreign_driver_id": foreign_driver.id,
            "vehicle_id": vehicle.id,
            "customer_id": customer.id,
        }
    return ids
