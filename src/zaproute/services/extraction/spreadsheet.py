"""Map spreadsheet rows onto route groups, one group per route name."""

from __future__ import annotations

import io
import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from openpyxl import Workbook

from ...models.domain import CandidateDelivery, Priority, RouteGroup, RouteHeader
from .recovery import parse_decimal

DEFAULT_ROUTE_NAME = "Rota Importada"
DEFAULT_CUSTOMER_NAME = "Desconhecido"

# Column headers of the downloadable import template
COLUMN_ROUTE_NAME = "Nome da Rota"
COLUMN_DATE = ("Data", "Data (YYYY-MM-DD)")
COLUMN_DRIVER_CPF = "CPF Motorista"
COLUMN_VEHICLE_PLATE = "Placa Veiculo"
COLUMN_INVOICE = "Nota Fiscal"
COLUMN_CUSTOMER_DOCUMENT = "CNPJ Cliente"
COLUMN_CUSTOMER_NAME = "Nome Cliente"
COLUMN_ADDRESS = "Endereco"
COLUMN_VOLUME = "Volume"
COLUMN_WEIGHT = "Peso"
COLUMN_VALUE = "Valor"
COLUMN_PRIORITY = "Prioridade"

TEMPLATE_COLUMNS = [
    COLUMN_ROUTE_NAME,
    COLUMN_DATE[1],
    COLUMN_DRIVER_CPF,
    COLUMN_VEHICLE_PLATE,
    COLUMN_INVOICE,
    COLUMN_CUSTOMER_DOCUMENT,
    COLUMN_CUSTOMER_NAME,
    COLUMN_ADDRESS,
    COLUMN_VALUE,
    COLUMN_VOLUME,
    COLUMN_WEIGHT,
    COLUMN_PRIORITY,
]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Excel hands back document/invoice numbers as floats
        return str(int(value))
    return str(value).strip()


def _number(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    text = str(value).strip()
    if "," in text:
        return parse_decimal(text)
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Unable to parse number from value '{value}'") from exc


def _priority(value: Any, invoice: str) -> Priority:
    text = _text(value).upper()
    if not text:
        return Priority.NORMAL
    try:
        return Priority(text)
    except ValueError:
        logging.warning(f"Unknown priority '{value}' on invoice {invoice or '?'}; using NORMAL")
        return Priority.NORMAL


def _route_date(value: Any) -> datetime | str:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    text = _text(value)
    return text or datetime.now(timezone.utc)


def _first(row: dict[str, Any], columns: Iterable[str]) -> Any:
    for column in columns:
        value = row.get(column)
        if value not in (None, ""):
            return value
    return None


def row_to_delivery(row: dict[str, Any]) -> CandidateDelivery:
    invoice = _text(row.get(COLUMN_INVOICE))
    return CandidateDelivery(
        invoice_number=invoice,
        customer_name=_text(row.get(COLUMN_CUSTOMER_NAME)) or DEFAULT_CUSTOMER_NAME,
        customer_address_text=_text(row.get(COLUMN_ADDRESS)),
        volume=_number(row.get(COLUMN_VOLUME)),
        weight=_number(row.get(COLUMN_WEIGHT)),
        value=_number(row.get(COLUMN_VALUE)),
        priority=_priority(row.get(COLUMN_PRIORITY), invoice),
        customer_document=_text(row.get(COLUMN_CUSTOMER_DOCUMENT)) or None,
    )


def group_rows_by_route(rows: Iterable[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Bucket raw rows by route name, keeping first-seen order of routes and rows."""
    grouped: dict[str, list[dict[str, Any]]] = {}
    for row in rows:
        route_name = _text(row.get(COLUMN_ROUTE_NAME)) or DEFAULT_ROUTE_NAME
        grouped.setdefault(route_name, []).append(row)
    return grouped


def rows_to_route_group(route_name: str, rows: list[dict[str, Any]]) -> RouteGroup:
    """Convert one route's rows; route-level fields come from its first row.

    Raises ValueError when a numeric cell cannot be read.
    """
    first = rows[0]
    header = RouteHeader(
        name=route_name,
        date=_route_date(_first(first, COLUMN_DATE)),
        driver_identifier=_text(first.get(COLUMN_DRIVER_CPF)) or None,
        vehicle_plate=_text(first.get(COLUMN_VEHICLE_PLATE)) or None,
    )
    return RouteGroup(header=header, deliveries=tuple(row_to_delivery(row) for row in rows))


def group_rows_into_routes(rows: Iterable[dict[str, Any]]) -> list[RouteGroup]:
    return [rows_to_route_group(name, route_rows) for name, route_rows in group_rows_by_route(rows).items()]


def build_template_workbook() -> bytes:
    """Render the empty import template, with one example row, as xlsx bytes."""
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Rotas"
    worksheet.append(TEMPLATE_COLUMNS)
    worksheet.append(
        [
            "Rota Centro",
            "2024-01-15",
            "123.456.789-00",
            "ABC1D23",
            "000123",
            "12.345.678/0001-90",
            "Posto Exemplo",
            "Av. Principal, 100 - Fortaleza",
            "1.250,00",
            "5000",
            "0",
            "NORMAL",
        ]
    )
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
