import io
from datetime import datetime
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from zaproute.models.domain import Priority
from zaproute.services.extraction.spreadsheet import (
    DEFAULT_CUSTOMER_NAME,
    DEFAULT_ROUTE_NAME,
    TEMPLATE_COLUMNS,
    build_template_workbook,
    group_rows_by_route,
    group_rows_into_routes,
    row_to_delivery,
    rows_to_route_group,
)
from zaproute.services.extraction.text_extractor import extract_spreadsheet_rows


def _row(route: str | None, invoice, **extra) -> dict:
    row = {"Nome da Rota": route, "Nota Fiscal": invoice, "Nome Cliente": "POSTO CENTRAL"}
    row.update(extra)
    return row


def test_rows_group_by_route_name_in_first_seen_order():
    rows = [
        _row("Rota B", "1", **{"Data": "2024-03-05", "CPF Motorista": "123.456.789-00", "Placa Veiculo": "ABC1D23"}),
        _row("Rota A", "2", Data="2024-03-06"),
        _row("Rota B", "3", **{"Data": "2024-12-31", "CPF Motorista": "999"}),
    ]

    groups = group_rows_into_routes(rows)

    assert [group.header.name for group in groups] == ["Rota B", "Rota A"]
    route_b = groups[0]
    assert [delivery.invoice_number for delivery in route_b.deliveries] == ["1", "3"]
    # route-level fields come from the first row of the group
    assert route_b.header.date == "2024-03-05"
    assert route_b.header.driver_identifier == "123.456.789-00"
    assert route_b.header.vehicle_plate == "ABC1D23"


def test_missing_route_and_customer_names_use_defaults():
    groups = group_rows_into_routes([{"Nota Fiscal": "10", "Data (YYYY-MM-DD)": "2024-03-05"}])

    assert groups[0].header.name == DEFAULT_ROUTE_NAME
    assert groups[0].header.date == "2024-03-05"
    assert groups[0].deliveries[0].customer_name == DEFAULT_CUSTOMER_NAME


def test_row_values_are_coerced():
    delivery = row_to_delivery(
        {
            "Nota Fiscal": 123.0,
            "Nome Cliente": "LOJA",
            "Volume": "1.250,50",
            "Peso": 10,
            "Valor": "99.90",
            "Prioridade": "urgent",
            "CNPJ Cliente": 12345678000190.0,
        }
    )

    assert delivery.invoice_number == "123"
    assert delivery.volume == Decimal("1250.50")
    assert delivery.weight == Decimal("10")
    assert delivery.value == Decimal("99.90")
    assert delivery.priority is Priority.URGENT
    assert delivery.customer_document == "12345678000190"


def test_unknown_priority_falls_back_to_normal():
    assert row_to_delivery({"Nota Fiscal": "1", "Prioridade": "ALTA"}).priority is Priority.NORMAL


def test_invalid_number_fails_only_its_route():
    grouped = group_rows_by_route([_row("Rota A", "1", Volume="10"), _row("Rota B", "2", Volume="muito")])

    assert list(grouped) == ["Rota A", "Rota B"]
    assert rows_to_route_group("Rota A", grouped["Rota A"]).deliveries[0].volume == Decimal("10")
    with pytest.raises(ValueError, match="muito"):
        rows_to_route_group("Rota B", grouped["Rota B"])


def test_excel_dates_become_datetimes():
    groups = group_rows_into_routes([_row("Rota", "1", Data=datetime(2024, 3, 5))])

    assert groups[0].header.date == datetime(2024, 3, 5)


def test_template_workbook_reads_back_as_one_route():
    payload = build_template_workbook()

    worksheet = load_workbook(io.BytesIO(payload)).active
    assert [cell.value for cell in worksheet[1]] == TEMPLATE_COLUMNS

    [group] = group_rows_into_routes(extract_spreadsheet_rows(payload, ".xlsx"))
    assert group.header.name == "Rota Centro"
    assert group.header.date == "2024-01-15"
    assert group.deliveries[0].value == Decimal("1250.00")
    assert group.deliveries[0].volume == Decimal("5000")
