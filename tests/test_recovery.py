from datetime import datetime, timezone
from decimal import Decimal

import pytest

from zaproute.exceptions import NoDeliveriesRecognized
from zaproute.services.extraction.layouts import DIARIO_VIAGEM, DIARIO_VIAGEM_CSV, get_layout
from zaproute.services.extraction.recovery import (
    UNKNOWN_ADDRESS,
    UNKNOWN_CUSTOMER,
    format_decimal,
    parse_decimal,
    recover_header,
    recover_deliveries,
    recover_manifest,
    split_client_block,
)

# Text as the extractor produces it for the pipe-delimited layout: tokens and
# visual lines are both joined with " | ", pages end with a newline.
DELIMITED_TEXT = (
    "Diário de Viagem | Motorista: | JOAO SILVA | Veículo: | ABC-1D23 | Previsão início: | 05/03/2024"
    " | Pedido | Cliente | Cidade | Vendedor | Produto | Qtd"
    " | 123456 | POSTO CENTRAL | RUA A, 10 | FORTALEZA | MARIA | S10 COMUM | 5.000,00"
    " | 123457 | MERCADINHO BOM | AV B, 20 | CAUCAIA | JOSE | GASOLINA | 1.250,50"
    " | 123458 | CLIENTE SEM CIDADE | LUGAR NENHUM\n"
)

QUOTED_TEXT = (
    "Motorista: JOAO SILVA\n"
    "Veículo: ABC1D23\n"
    "Previsão início: 5 de março de 2024\n"
    '"Pedido","Cliente","Cidade","Vendedor","Produto","Qtd"\n'
    '"654321","POSTO LESTE\nRUA C, 30","MARACANAU","ANA","DIESEL S500","12.000,00"\n'
)


def test_parse_decimal_uses_fixed_brazilian_format():
    assert parse_decimal("1.234.567,89") == Decimal("1234567.89")
    assert parse_decimal("12,5") == Decimal("12.5")
    with pytest.raises(ValueError):
        parse_decimal("abc")


def test_format_decimal_is_inverse_of_parse():
    assert format_decimal(Decimal("1234.5")) == "1.234,50"
    assert parse_decimal(format_decimal(Decimal("98765.43"))) == Decimal("98765.43")


def test_split_client_block_variants():
    assert split_client_block("POSTO X | RUA Y, 1", "FORTALEZA", "|") == ("POSTO X", "RUA Y, 1 - FORTALEZA")
    assert split_client_block("POSTO X, RUA Y", "CRATO", "|") == ("POSTO X", "POSTO X, RUA Y - CRATO")
    assert split_client_block("POSTO X", "CRATO", "|") == ("POSTO X", "POSTO X - CRATO")
    assert split_client_block("  ", "CRATO", "|") == (UNKNOWN_CUSTOMER, f"{UNKNOWN_ADDRESS} - CRATO")


def test_recover_delimited_manifest():
    recovery = recover_manifest(DELIMITED_TEXT, DIARIO_VIAGEM)

    assert recovery.header.name == "Rota PDF - ABC1D23 - JOAO"
    assert recovery.header.vehicle_plate == "ABC1D23"
    assert recovery.header.driver_name == "JOAO SILVA"
    assert recovery.header.driver_identifier is None
    assert recovery.header.date == datetime(2024, 3, 5, tzinfo=timezone.utc)

    assert [delivery.invoice_number for delivery in recovery.deliveries] == ["123456", "123457"]
    first, second = recovery.deliveries
    assert first.customer_name == "POSTO CENTRAL"
    assert first.customer_address_text == "RUA A, 10 - FORTALEZA"
    assert first.salesperson_name == "MARIA"
    assert first.product == "S10 COMUM"
    assert first.volume == Decimal("5000.00")
    assert first.weight == Decimal("0")
    assert second.customer_address_text == "AV B, 20 - CAUCAIA"
    assert second.volume == Decimal("1250.50")

    assert recovery.skipped_invoices == ["123458"]


def test_recover_quoted_manifest_with_multiline_cell():
    recovery = recover_manifest(QUOTED_TEXT, get_layout("diario_viagem_csv"))

    assert recovery.header.date == datetime(2024, 3, 5, tzinfo=timezone.utc)
    assert recovery.header.name == "Rota PDF - ABC1D23 - JOAO"
    [delivery] = recovery.deliveries
    assert delivery.invoice_number == "654321"
    assert delivery.customer_name == "POSTO LESTE"
    assert delivery.customer_address_text == "RUA C, 30 - MARACANAU"
    assert delivery.product == "DIESEL S500"
    assert delivery.volume == Decimal("12000.00")
    assert recovery.skipped_invoices == []


def test_line_without_quantity_does_not_borrow_from_next_line():
    text = (
        " | 123456 | POSTO A | RUA A, 1 | FORTALEZA | MARIA | GASOLINA | -"
        " | 123457 | POSTO B | RUA B, 2 | CAUCAIA | JOSE | S10 COMUM | 2.000,00\n"
    )

    deliveries, skipped = recover_deliveries(text, DIARIO_VIAGEM)

    [delivery] = deliveries
    assert delivery.invoice_number == "123457"
    assert delivery.customer_name == "POSTO B"
    assert delivery.volume == Decimal("2000.00")
    assert skipped == ["123456"]


def test_quoted_line_without_quantity_does_not_borrow_from_next_line():
    text = (
        '"111111","POSTO A\nRUA A","FORTALEZA","MARIA","GASOLINA","-"\n'
        '"222222","POSTO B\nRUA B","CAUCAIA","JOSE","S10 COMUM","2.000,00"\n'
    )

    deliveries, skipped = recover_deliveries(text, DIARIO_VIAGEM_CSV)

    [delivery] = deliveries
    assert delivery.invoice_number == "222222"
    assert delivery.customer_name == "POSTO B"
    assert delivery.customer_address_text == "RUA B - CAUCAIA"
    assert delivery.volume == Decimal("2000.00")
    assert skipped == ["111111"]


def test_header_without_driver_uses_default_label():
    header = recover_header("Veículo: | XYZ9A88 | 654321", DIARIO_VIAGEM)

    assert header.name == "Rota PDF - XYZ9A88 - Diário"
    assert header.driver_name == ""


def test_header_without_date_falls_back_to_today():
    header = recover_header("Motorista: | ANA", DIARIO_VIAGEM)

    assert header.date.date() == datetime.now(timezone.utc).date()
    assert header.name == "Rota PDF - ANA"


def test_layout_detected_but_no_lines():
    with pytest.raises(NoDeliveriesRecognized) as excinfo:
        recover_manifest("Pedido | Cliente | Cidade\n", DIARIO_VIAGEM)

    assert excinfo.value.layout_detected is True
    assert "Layout detected" in excinfo.value.message


def test_wrong_document_reports_layout_not_detected():
    with pytest.raises(NoDeliveriesRecognized) as excinfo:
        recover_manifest("Boleto bancário\n", DIARIO_VIAGEM_CSV)

    assert excinfo.value.layout_detected is False
    assert "diario_viagem_csv" in excinfo.value.message


def test_unknown_layout_lists_available_ones():
    with pytest.raises(KeyError) as excinfo:
        get_layout("romaneio")

    assert "diario_viagem" in str(excinfo.value)
