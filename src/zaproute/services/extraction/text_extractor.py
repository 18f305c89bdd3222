"""Turn manifest documents into a text blob (PDF) or row records (spreadsheets)."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Sequence

import pdfplumber
from openpyxl import load_workbook

from ...exceptions import EmptyDocument, UnsupportedDocumentType

SPREADSHEET_SUFFIXES = (".xlsx", ".csv")

# Vertical distance (points) under which two words sit on the same visual line
LINE_TOLERANCE = 3.0


@dataclass(frozen=True, slots=True)
class JoinStrategy:
    """How text runs are glued together when a page is flattened to text."""

    token_separator: str
    line_separator: str
    page_separator: str = "\n"


# Column cells become pipe-delimited tokens; recovery splits on "|"
SPACED_JOIN = JoinStrategy(token_separator=" | ", line_separator=" | ")
# The renderer already emits quoted CSV-like tokens; keep them intact and
# keep line breaks so multi-line quoted cells survive
COMPACT_JOIN = JoinStrategy(token_separator="", line_separator="\n")


def join_pages(pages: Iterable[Sequence[Sequence[str]]], strategy: JoinStrategy) -> str:
    """Flatten pages (lists of lines, each a list of tokens) into one blob, in page order."""
    parts: list[str] = []
    for lines in pages:
        rendered = strategy.line_separator.join(strategy.token_separator.join(tokens) for tokens in lines if tokens)
        parts.append(rendered + strategy.page_separator)
    return "".join(parts)


def _page_lines(page: Any) -> list[list[str]]:
    words = page.extract_words(keep_blank_chars=True, use_text_flow=True)
    lines: list[list[str]] = []
    current_top: float | None = None
    for word in words:
        text = word.get("text", "")
        if not text:
            continue
        top = float(word.get("top", 0.0))
        if current_top is None or abs(top - current_top) > LINE_TOLERANCE:
            lines.append([])
            current_top = top
        lines[-1].append(text)
    return lines


def extract_pdf_text(payload: bytes, strategy: JoinStrategy) -> str:
    """Extract the text of every page, strictly in page order.

    Field recovery relies on page N's text being followed directly by page
    N+1's, so pages are never read out of order.
    """
    with pdfplumber.open(io.BytesIO(payload)) as pdf:
        pages = list(pdf.pages)
        if not pages:
            raise EmptyDocument("PDF")
        text = join_pages((_page_lines(page) for page in pages), strategy)
    logging.info(f"Extracted {len(text)} characters from {len(pages)} PDF page(s)")
    return text


def _cell_to_value(cell: Any) -> Any:
    if cell is None:
        return ""
    if isinstance(cell, (datetime, date)):
        return cell
    if isinstance(cell, str):
        return cell.strip()
    return cell


def _is_blank(row: dict[str, Any]) -> bool:
    return all(value in ("", None) for value in row.values())


def _rows_from_xlsx(payload: bytes) -> list[dict[str, Any]]:
    workbook = load_workbook(filename=io.BytesIO(payload), read_only=True, data_only=True)
    try:
        worksheet = workbook.active
        rows = worksheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        columns = [str(cell).strip() if cell is not None else "" for cell in header]
        records: list[dict[str, Any]] = []
        for row in rows:
            record = {
                column: _cell_to_value(cell)
                for column, cell in zip(columns, row)
                if column
            }
            if record and not _is_blank(record):
                records.append(record)
        return records
    finally:
        workbook.close()


def _rows_from_csv(payload: bytes) -> list[dict[str, Any]]:
    reader = csv.DictReader(io.StringIO(payload.decode("utf-8-sig")))
    if not reader.fieldnames:
        return []
    records: list[dict[str, Any]] = []
    for row in reader:
        record = {
            (column or "").strip(): _cell_to_value(value)
            for column, value in row.items()
            if column
        }
        if record and not _is_blank(record):
            records.append(record)
    return records


def extract_spreadsheet_rows(payload: bytes, suffix: str) -> list[dict[str, Any]]:
    """Read the first sheet as ordered ``header -> cell`` mappings."""
    suffix = suffix.lower()
    if suffix == ".xlsx":
        rows = _rows_from_xlsx(payload)
    elif suffix == ".csv":
        rows = _rows_from_csv(payload)
    else:
        raise UnsupportedDocumentType(suffix, list(SPREADSHEET_SUFFIXES))
    if not rows:
        raise EmptyDocument("spreadsheet")
    logging.info(f"Read {len(rows)} row(s) from {suffix} spreadsheet")
    return rows
