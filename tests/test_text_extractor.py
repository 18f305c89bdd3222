import io
from datetime import datetime

import pytest
from openpyxl import Workbook

from zaproute.exceptions import EmptyDocument, UnsupportedDocumentType
from zaproute.services.extraction import text_extractor
from zaproute.services.extraction.text_extractor import (
    COMPACT_JOIN,
    SPACED_JOIN,
    extract_pdf_text,
    extract_spreadsheet_rows,
    join_pages,
)


class FakePage:
    def __init__(self, words):
        self.words = words

    def extract_words(self, **kwargs):
        return self.words


class FakePDF:
    def __init__(self, pages):
        self.pages = pages

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def _word(text: str, top: float) -> dict:
    return {"text": text, "top": top}


@pytest.fixture
def fake_pdf(monkeypatch: pytest.MonkeyPatch):
    def install(pages):
        monkeypatch.setattr(text_extractor.pdfplumber, "open", lambda stream: FakePDF(pages))

    return install


def _xlsx(rows) -> bytes:
    workbook = Workbook()
    worksheet = workbook.active
    for row in rows:
        worksheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_join_pages_keeps_page_order():
    pages = [[["A", "B"], ["C"]], [["D"]]]

    assert join_pages(pages, SPACED_JOIN) == "A | B | C\nD\n"
    assert join_pages(pages, COMPACT_JOIN) == "AB\nC\nD\n"


def test_extract_pdf_text_groups_words_into_lines(fake_pdf):
    fake_pdf(
        [
            FakePage([_word("Motorista:", 10.0), _word("JOAO", 11.5), _word("123456", 30.0)]),
            FakePage([_word("FIM", 10.0)]),
        ]
    )

    assert extract_pdf_text(b"%PDF-1.4", SPACED_JOIN) == "Motorista: | JOAO | 123456\nFIM\n"
    assert extract_pdf_text(b"%PDF-1.4", COMPACT_JOIN) == "Motorista:JOAO\n123456\nFIM\n"


def test_extract_pdf_text_rejects_document_without_pages(fake_pdf):
    fake_pdf([])

    with pytest.raises(EmptyDocument):
        extract_pdf_text(b"%PDF-1.4", SPACED_JOIN)


def test_extract_xlsx_rows_skips_blank_lines():
    payload = _xlsx(
        [
            ["Nome da Rota", "Data", "Nota Fiscal", "Volume"],
            ["Rota 1", datetime(2024, 3, 5), "000123", 10],
            [None, None, None, None],
            ["Rota 1", datetime(2024, 3, 5), "000124", 2.5],
        ]
    )

    rows = extract_spreadsheet_rows(payload, ".XLSX")

    assert len(rows) == 2
    assert rows[0] == {"Nome da Rota": "Rota 1", "Data": datetime(2024, 3, 5), "Nota Fiscal": "000123", "Volume": 10}
    assert rows[1]["Volume"] == 2.5


def test_extract_csv_rows_handles_bom():
    payload = "\ufeffNome da Rota,Nota Fiscal\nRota 1, 000123 \n,\n".encode("utf-8")

    rows = extract_spreadsheet_rows(payload, ".csv")

    assert rows == [{"Nome da Rota": "Rota 1", "Nota Fiscal": "000123"}]


def test_extract_rows_rejects_unknown_suffix():
    with pytest.raises(UnsupportedDocumentType) as excinfo:
        extract_spreadsheet_rows(b"", ".ods")

    assert excinfo.value.details["supported"] == [".xlsx", ".csv"]


def test_extract_rows_rejects_header_only_sheet():
    with pytest.raises(EmptyDocument):
        extract_spreadsheet_rows("Nome da Rota,Nota Fiscal\n".encode("utf-8"), ".csv")
